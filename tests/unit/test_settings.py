from __future__ import annotations

import pytest

from coderabbit_reports.config.settings import (
    API_BASE_URL,
    API_TIMEOUT_MS,
    DotEnvSource,
    EnvironSource,
    MappingSource,
    YamlConfigSource,
    lookup,
    resolve_client_config,
)
from coderabbit_reports.config.validated_settings import load_settings
from coderabbit_reports.core.errors import ConfigurationError


def test_defaults_when_nothing_configured():
    cfg = resolve_client_config(sources=[])
    assert cfg.api_key is None
    assert cfg.is_configured is False
    assert cfg.base_url == API_BASE_URL
    assert cfg.timeout_ms == API_TIMEOUT_MS == 600_000


def test_explicit_values_win_over_sources():
    src = MappingSource({"CODERABBIT_API_KEY": "from-env", "CODERABBIT_BASE_URL": "https://env.example/api"})
    cfg = resolve_client_config(api_key="explicit", base_url="https://explicit.example/api/", sources=[src])
    assert cfg.api_key == "explicit"
    assert cfg.base_url == "https://explicit.example/api"


def test_sources_are_consulted_in_order():
    first = MappingSource({"CODERABBIT_API_KEY": "first"})
    second = MappingSource({"CODERABBIT_API_KEY": "second", "CODERABBIT_TIMEOUT_MS": "1500"})
    cfg = resolve_client_config(sources=[first, second])
    assert cfg.api_key == "first"
    assert cfg.timeout_ms == 1500


def test_blank_values_are_skipped():
    assert lookup("K", [MappingSource({"K": "   "}), MappingSource({"K": " v "})]) == "v"


def test_empty_explicit_key_is_not_configured():
    cfg = resolve_client_config(api_key="", sources=[MappingSource({"CODERABBIT_API_KEY": "env"})])
    assert cfg.is_configured is False


@pytest.mark.parametrize("raw", ["soon", "0", "-5"])
def test_invalid_timeout_is_a_configuration_error(raw):
    with pytest.raises(ConfigurationError):
        resolve_client_config(sources=[MappingSource({"CODERABBIT_TIMEOUT_MS": raw})])


def test_environ_source_reads_process_env(monkeypatch):
    monkeypatch.setenv("CODERABBIT_API_KEY", "proc")
    assert EnvironSource().get("CODERABBIT_API_KEY") == "proc"
    assert EnvironSource({"CODERABBIT_API_KEY": "given"}).get("CODERABBIT_API_KEY") == "given"


def test_dotenv_source(tmp_path):
    env_file = tmp_path / ".env.local"
    env_file.write_text("CODERABBIT_API_KEY=dotenv-key\n", encoding="utf-8")
    assert DotEnvSource(env_file).get("CODERABBIT_API_KEY") == "dotenv-key"
    assert DotEnvSource(tmp_path / "missing.env").get("CODERABBIT_API_KEY") is None


def test_yaml_source_ignores_nested_values(tmp_path):
    path = tmp_path / "keys.yaml"
    path.write_text("CODERABBIT_API_KEY: yaml-key\nnested:\n  a: 1\n", encoding="utf-8")
    src = YamlConfigSource(path)
    assert src.get("CODERABBIT_API_KEY") == "yaml-key"
    assert src.get("nested") is None


def test_load_settings_from_yaml(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "\n".join(
            [
                "client:",
                "  api_key: yaml-key",
                "  timeout_ms: 2000",
                "storage:",
                "  backend: sqlalchemy",
                f"  db_url: sqlite:///{tmp_path / 'r.db'}",
                "logging:",
                "  level: DEBUG",
                "unknown_section: ignored",
            ]
        ),
        encoding="utf-8",
    )
    settings = load_settings(path, sources=[])
    assert settings.client.api_key == "yaml-key"
    assert settings.client.timeout_ms == 2000
    assert settings.storage.backend == "sqlalchemy"
    assert settings.logging.level == "DEBUG"


def test_environment_beats_yaml_client_values(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("client:\n  api_key: yaml-key\n", encoding="utf-8")
    env = MappingSource({"CODERABBIT_API_KEY": "env-key", "CODERABBIT_LOG_LEVEL": "warning"})
    settings = load_settings(path, sources=[env])
    assert settings.client.api_key == "env-key"
    assert settings.logging.level == "WARNING"


def test_load_settings_without_file_uses_defaults(monkeypatch):
    monkeypatch.delenv("CODERABBIT_CONFIG", raising=False)
    settings = load_settings(sources=[])
    assert settings.client.is_configured is False
    assert settings.storage.backend == "none"
    assert settings.logging.level == "INFO"
