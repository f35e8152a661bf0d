from __future__ import annotations

import logging
from typing import Optional

from coderabbit_reports.application.ports.report_storage_port import ReportStoragePort
from coderabbit_reports.config.settings import StorageConfig
from coderabbit_reports.core.errors import ConfigurationError

from .local_report_store import JsonFileKeyValue, LocalReportStore
from .sqlalchemy_report_store import SqlAlchemyReportStore

logger = logging.getLogger(__name__)


def build_report_store(config: StorageConfig) -> Optional[ReportStoragePort]:
    """
    Build the configured backend. ``none`` disables persistence.

    Convex and Supabase stores wrap a caller-owned client and are constructed
    directly rather than from settings.
    """
    backend = (config.backend or "none").lower()
    if backend == "none":
        return None
    if backend == "local":
        storage = JsonFileKeyValue(config.local_path) if config.local_path else None
        logger.info(f"Using local report store ({config.local_path or 'in-memory'})")
        return LocalReportStore(storage, key=config.local_key)
    if backend == "sqlalchemy":
        store = SqlAlchemyReportStore(config.db_url)
        logger.info(f"Using SQLAlchemy report store ({store.db_url})")
        return store
    raise ConfigurationError(message=f"Unknown storage backend '{config.backend}'")
