from __future__ import annotations

import pytest

from coderabbit_reports.config.settings import StorageConfig
from coderabbit_reports.core.errors import ConfigurationError
from coderabbit_reports.infrastructure.stores import (
    JsonFileKeyValue,
    LocalReportStore,
    SqlAlchemyReportStore,
    build_report_store,
)


def test_none_backend_disables_storage():
    assert build_report_store(StorageConfig()) is None


def test_local_backend_in_memory_and_file(tmp_path):
    in_memory = build_report_store(StorageConfig(backend="local"))
    assert isinstance(in_memory, LocalReportStore)

    on_disk = build_report_store(StorageConfig(backend="local", local_path=str(tmp_path / "r.json"), local_key="k"))
    assert isinstance(on_disk._storage, JsonFileKeyValue)
    assert on_disk.key == "k"


def test_sqlalchemy_backend(tmp_path):
    store = build_report_store(StorageConfig(backend="sqlalchemy", db_url=f"sqlite:///{tmp_path / 'r.db'}"))
    try:
        assert isinstance(store, SqlAlchemyReportStore)
        assert store.list().total == 0
    finally:
        store.close()


def test_unknown_backend_is_rejected():
    with pytest.raises(ConfigurationError):
        build_report_store(StorageConfig(backend="redis"))
