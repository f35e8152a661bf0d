# coderabbit_reports/config/settings.py
"""
配置解析：显式参数 → 配置来源（按固定优先级）→ 内置默认值。
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

import yaml
from dotenv import dotenv_values

from coderabbit_reports.core.errors import ConfigurationError

API_BASE_URL = "https://api.coderabbit.ai/api"
API_TIMEOUT_MS = 600_000  # 10 minutes

ENV_API_KEY = "CODERABBIT_API_KEY"
ENV_BASE_URL = "CODERABBIT_BASE_URL"
ENV_TIMEOUT_MS = "CODERABBIT_TIMEOUT_MS"
ENV_LOG_LEVEL = "CODERABBIT_LOG_LEVEL"
ENV_CONFIG_PATH = "CODERABBIT_CONFIG"


@runtime_checkable
class ConfigSource(Protocol):
    """A place configuration values can be read from."""

    def get(self, name: str) -> Optional[str]:
        """Return the raw value for ``name`` or None when this source lacks it."""


class EnvironSource:
    """Process environment (``os.environ``)."""

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = environ

    def get(self, name: str) -> Optional[str]:
        env = self._environ if self._environ is not None else os.environ
        return env.get(name)

    def __repr__(self) -> str:
        return "EnvironSource()"


class DotEnvSource:
    """Values from a dotenv file; a missing file yields nothing."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._values: Optional[Dict[str, Optional[str]]] = None

    def _load(self) -> Dict[str, Optional[str]]:
        if self._values is None:
            self._values = dict(dotenv_values(self.path)) if self.path.is_file() else {}
        return self._values

    def get(self, name: str) -> Optional[str]:
        return self._load().get(name)

    def __repr__(self) -> str:
        return f"DotEnvSource({str(self.path)!r})"


class YamlConfigSource:
    """Flat ``KEY: value`` pairs from a YAML file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._values: Optional[Dict[str, str]] = None

    def _load(self) -> Dict[str, str]:
        if self._values is None:
            data = {}
            if self.path.is_file():
                with open(self.path, "r", encoding="utf-8") as f:
                    data = yaml.safe_load(f) or {}
            self._values = {
                str(k): str(v) for k, v in data.items() if v is not None and not isinstance(v, (dict, list))
            }
        return self._values

    def get(self, name: str) -> Optional[str]:
        return self._load().get(name)


class MappingSource:
    """In-memory values (tests, embedding)."""

    def __init__(self, values: Optional[Mapping[str, str]] = None):
        self._values = dict(values or {})

    def get(self, name: str) -> Optional[str]:
        return self._values.get(name)


def default_sources() -> List[ConfigSource]:
    return [EnvironSource(), DotEnvSource(".env.local"), DotEnvSource(".env")]


def lookup(name: str, sources: Sequence[ConfigSource]) -> Optional[str]:
    """First non-empty string wins."""
    for source in sources:
        value = source.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


@dataclass(frozen=True)
class ClientConfig:
    """CodeRabbit 客户端配置"""
    api_key: Optional[str] = None
    base_url: str = API_BASE_URL
    timeout_ms: int = API_TIMEOUT_MS

    @property
    def is_configured(self) -> bool:
        return isinstance(self.api_key, str) and len(self.api_key) > 0


def _parse_timeout(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(message=f"{ENV_TIMEOUT_MS} must be an integer number of milliseconds, got '{raw}'")
    if value <= 0:
        raise ConfigurationError(message=f"{ENV_TIMEOUT_MS} must be positive, got {value}")
    return value


def resolve_client_config(
    api_key: Optional[str] = None,
    base_url: Optional[str] = None,
    timeout_ms: Optional[int] = None,
    sources: Optional[Sequence[ConfigSource]] = None,
) -> ClientConfig:
    srcs = list(sources) if sources is not None else default_sources()

    key = api_key if api_key is not None else lookup(ENV_API_KEY, srcs)
    url = base_url if base_url is not None else (lookup(ENV_BASE_URL, srcs) or API_BASE_URL)
    if timeout_ms is None:
        raw = lookup(ENV_TIMEOUT_MS, srcs)
        timeout_ms = _parse_timeout(raw) if raw is not None else API_TIMEOUT_MS

    return ClientConfig(api_key=key, base_url=url.rstrip("/"), timeout_ms=int(timeout_ms))


@dataclass
class StorageConfig:
    """报告存储配置"""
    backend: str = "none"  # none / local / sqlalchemy
    db_url: Optional[str] = None
    local_path: Optional[str] = None
    local_key: str = "coderabbit:reports"


@dataclass
class LoggingConfig:
    """日志配置"""
    level: str = "INFO"
    file: Optional[str] = None
    max_size: int = 10485760  # 10MB
    backup_count: int = 5
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass
class Settings:
    """应用配置"""
    client: ClientConfig = field(default_factory=ClientConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
