from __future__ import annotations

from pathlib import Path

import pytest

from coderabbit_reports.infrastructure.stores.sqlalchemy_db import DEFAULT_DB_URL, create_db_engine, get_db_url


def test_create_db_engine_creates_parent_dir_for_relative_sqlite(monkeypatch, tmp_path: Path):
    monkeypatch.chdir(tmp_path)
    assert not (tmp_path / "data").exists()

    engine = create_db_engine("sqlite:///data/test.db")
    try:
        assert (tmp_path / "data").is_dir()
        # Ensure connection works and file can be created.
        with engine.connect() as conn:
            conn.exec_driver_sql("select 1")
    finally:
        engine.dispose()


def test_in_memory_sqlite_needs_no_directory(monkeypatch, tmp_path: Path):
    monkeypatch.chdir(tmp_path)
    engine = create_db_engine("sqlite:///:memory:")
    engine.dispose()
    assert list(tmp_path.iterdir()) == []


def test_db_url_from_environment(monkeypatch):
    monkeypatch.delenv("CODERABBIT_DB_URL", raising=False)
    assert get_db_url() == DEFAULT_DB_URL
    monkeypatch.setenv("CODERABBIT_DB_URL", "sqlite:///elsewhere.db")
    assert get_db_url() == "sqlite:///elsewhere.db"


def test_transaction_rolls_back_on_error(tmp_path: Path):
    from sqlalchemy import text

    from coderabbit_reports.infrastructure.stores.sqlalchemy_db import SessionProvider

    provider = SessionProvider(f"sqlite:///{tmp_path / 'tx.db'}")
    try:
        with provider.transaction() as session:
            session.execute(text("create table t (x integer)"))

        with pytest.raises(RuntimeError):
            with provider.transaction() as session:
                session.execute(text("insert into t values (1)"))
                raise RuntimeError("abort")

        with provider.session() as session:
            assert session.execute(text("select count(*) from t")).scalar_one() == 0
    finally:
        provider.dispose()
