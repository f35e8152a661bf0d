from __future__ import annotations

import argparse

import pytest

from coderabbit_reports.config.settings import ClientConfig
from coderabbit_reports.domain.report import FilterOperator, FilterParameter
from coderabbit_reports.infrastructure.api_clients.coderabbit_client import CodeRabbitClient
from coderabbit_reports.presentation.cli import main as cli_main
from tests.fakes import RecordingTransport, success_body


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ("CODERABBIT_CONFIG", "CODERABBIT_API_KEY", "CODERABBIT_DB_URL", "CODERABBIT_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def _stub_client(monkeypatch, transport):
    def _factory(config=None, **kwargs):
        return CodeRabbitClient(ClientConfig(api_key="k"), transport=transport)

    monkeypatch.setattr(cli_main, "create_coderabbit_client", _factory)


def test_cli_generate_flags():
    parser = cli_main.create_parser()
    args = parser.parse_args(
        [
            "--db-url", "sqlite:///x.db",
            "generate", "--from", "2024-01-01", "--to", "2024-01-31",
            "--template", "Sprint Report",
            "--group-by", "REPOSITORY",
            "--filter", "repository:in:api,web",
            "--filter", "LABEL:NOT_IN:wip",
        ]
    )
    assert args.command == "generate"
    assert args.db_url == "sqlite:///x.db"
    assert args.from_date == "2024-01-01"
    assert args.template == "Sprint Report"
    assert [f.parameter for f in args.filters] == [FilterParameter.REPOSITORY, FilterParameter.LABEL]
    assert args.filters[0].values == ["api", "web"]
    assert args.filters[1].operator is FilterOperator.NOT_IN


def test_cli_template_and_prompt_are_exclusive():
    with pytest.raises(SystemExit):
        cli_main.create_parser().parse_args(
            ["generate", "--from", "2024-01-01", "--to", "2024-01-02", "--template", "Sprint Report", "--prompt", "x"]
        )


@pytest.mark.parametrize("raw", ["REPOSITORY", "REPOSITORY:EQ:x", "PLANET:IN:x"])
def test_parse_filter_rejects_bad_input(raw):
    with pytest.raises(argparse.ArgumentTypeError):
        cli_main.parse_filter(raw)


def test_generate_prints_markdown_and_saves(monkeypatch, tmp_path, capsys):
    transport = RecordingTransport(
        text=success_body([{"group": "api", "report": "- merged #12"}, {"group": "web", "report": "- merged #9"}])
    )
    _stub_client(monkeypatch, transport)
    db_url = f"sqlite:///{tmp_path / 'cli.db'}"

    code = cli_main.run_cli(["--db-url", db_url, "generate", "--from", "2024-01-01", "--to", "2024-01-07"])

    out = capsys.readouterr()
    assert code == 0
    assert "## api\n\n- merged #12" in out.out
    assert "## web" in out.out
    assert "Saved report" in out.err
    assert transport.calls[0]["payload"]["from"] == "2024-01-01"

    assert cli_main.run_cli(["--db-url", db_url, "list"]) == 0
    listing = capsys.readouterr().out
    assert "completed" in listing
    assert "1 of 1 report(s)" in listing


def test_generate_failure_exits_nonzero(monkeypatch, capsys):
    _stub_client(monkeypatch, RecordingTransport(status=401, text="{}"))
    code = cli_main.run_cli(["generate", "--from", "2024-01-01", "--to", "2024-01-07"])
    assert code == 1
    assert "subscription required" in capsys.readouterr().err


def test_invalid_date_range_is_reported(capsys):
    code = cli_main.run_cli(["generate", "--from", "2024-02-01", "--to", "2024-01-01"])
    assert code == 1
    assert "From date must be on or before to date" in capsys.readouterr().err


def test_show_and_delete(tmp_path, capsys):
    from coderabbit_reports.domain.report import NewReport, ReportResult
    from coderabbit_reports.infrastructure.stores import SqlAlchemyReportStore

    db_url = f"sqlite:///{tmp_path / 'cli.db'}"
    store = SqlAlchemyReportStore(db_url=db_url)
    report_id = store.create(NewReport(from_date="2024-01-01", to_date="2024-01-02"))
    store.update_success(report_id, [ReportResult("all", "weekly summary")], 10)
    store.close()

    assert cli_main.run_cli(["--db-url", db_url, "show", report_id]) == 0
    assert "weekly summary" in capsys.readouterr().out

    assert cli_main.run_cli(["--db-url", db_url, "delete", report_id]) == 0
    assert cli_main.run_cli(["--db-url", db_url, "show", report_id]) == 1
    assert "Report not found" in capsys.readouterr().err


def test_history_commands_need_storage(capsys):
    assert cli_main.run_cli(["list"]) == 1
    assert "no report storage configured" in capsys.readouterr().err


def test_config_command_hides_key(monkeypatch, capsys):
    monkeypatch.setenv("CODERABBIT_API_KEY", "super-secret")
    assert cli_main.run_cli(["config"]) == 0
    out = capsys.readouterr().out
    assert '"is_configured": true' in out
    assert "super-secret" not in out


def test_no_command_prints_help(capsys):
    assert cli_main.run_cli([]) == 0
    assert "coderabbit-reports" in capsys.readouterr().out
