from __future__ import annotations

import json
import logging
import random
import string
from pathlib import Path
from typing import Dict, Iterator, List, MutableMapping, Optional

from coderabbit_reports.application.ports.report_storage_port import ReportStoragePort
from coderabbit_reports.core.errors import NotFoundError, StorageError
from coderabbit_reports.domain.report import (
    ListOptions,
    ListReportsResponse,
    NewReport,
    ReportResult,
    ReportStatus,
    StoredReport,
    ensure_transition,
)

from .clock import now_ms

logger = logging.getLogger(__name__)

DEFAULT_KEY = "coderabbit:reports"
_ID_ALPHABET = string.digits + string.ascii_lowercase


def new_local_id() -> str:
    suffix = "".join(random.choices(_ID_ALPHABET, k=7))
    return f"report_{now_ms()}_{suffix}"


class JsonFileKeyValue(MutableMapping[str, str]):
    """
    Tiny string key/value store persisted as one JSON object on disk.

    Plays the role of browser localStorage for processes that want their
    reports to survive a restart without a database.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path).expanduser()

    def _read(self) -> Dict[str, str]:
        if not self.path.is_file():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            text = f.read()
        return json.loads(text) if text.strip() else {}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)
        tmp.replace(self.path)

    def __getitem__(self, key: str) -> str:
        return self._read()[key]

    def __setitem__(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def __delitem__(self, key: str) -> None:
        data = self._read()
        del data[key]
        self._write(data)

    def __iter__(self) -> Iterator[str]:
        return iter(self._read())

    def __len__(self) -> int:
        return len(self._read())


def paginate(reports: List[StoredReport], options: Optional[ListOptions]) -> ListReportsResponse:
    opts = options or ListOptions()
    # insertion order breaks created_at ties so the latest write still comes first
    indexed = [(i, r) for i, r in enumerate(reports) if opts.status is None or r.status == opts.status]
    indexed.sort(key=lambda pair: (pair[1].created_at, pair[0]), reverse=True)
    matching = [r for _, r in indexed]
    start = opts.offset
    end = None if opts.limit is None else start + opts.limit
    return ListReportsResponse(reports=matching[start:end], total=len(matching))


class LocalReportStore(ReportStoragePort):
    """
    Key/value report store: all records live as one JSON array (camelCase
    records) under a single key, the same layout the browser localStorage
    adapter uses.

    Defaults to an in-process dict; pass ``JsonFileKeyValue`` to persist.
    """

    def __init__(self, storage: Optional[MutableMapping[str, str]] = None, key: str = DEFAULT_KEY):
        self._storage: MutableMapping[str, str] = storage if storage is not None else {}
        self.key = key

    def _load(self, operation: str) -> List[StoredReport]:
        try:
            raw = self._storage.get(self.key)
            items = json.loads(raw) if raw else []
            return [StoredReport.from_dict(item) for item in items]
        except Exception as e:
            logger.error(f"LocalReportStore read failed: {e}")
            raise StorageError.wrap(operation, e) from e

    def _save(self, reports: List[StoredReport], operation: str) -> None:
        try:
            self._storage[self.key] = json.dumps([r.to_dict() for r in reports], ensure_ascii=False)
        except Exception as e:
            logger.error(f"LocalReportStore write failed: {e}")
            raise StorageError.wrap(operation, e) from e

    @staticmethod
    def _find(reports: List[StoredReport], report_id: str) -> Optional[StoredReport]:
        return next((r for r in reports if r.id == report_id), None)

    def create(self, data: NewReport) -> str:
        reports = self._load("create")
        report_id = new_local_id()
        while self._find(reports, report_id) is not None:
            report_id = new_local_id()
        reports.append(StoredReport.from_new(report_id, now_ms(), data))
        self._save(reports, "create")
        return report_id

    def update_success(self, report_id: str, results: List[ReportResult], duration_ms: int) -> None:
        reports = self._load("update")
        report = self._find(reports, report_id)
        if report is None:
            raise NotFoundError(report_id)
        ensure_transition(report_id, report.status, ReportStatus.COMPLETED)

        report.status = ReportStatus.COMPLETED
        report.results = list(results)
        report.duration_ms = int(duration_ms)
        self._save(reports, "update")

    def update_failure(self, report_id: str, error: str, duration_ms: int) -> None:
        reports = self._load("update")
        report = self._find(reports, report_id)
        if report is None:
            raise NotFoundError(report_id)
        ensure_transition(report_id, report.status, ReportStatus.FAILED)

        report.status = ReportStatus.FAILED
        report.error = error
        report.duration_ms = int(duration_ms)
        self._save(reports, "update")

    def get(self, report_id: str) -> Optional[StoredReport]:
        return self._find(self._load("get"), report_id)

    def list(self, options: Optional[ListOptions] = None) -> ListReportsResponse:
        return paginate(self._load("list"), options)

    def delete(self, report_id: str) -> None:
        reports = self._load("delete")
        remaining = [r for r in reports if r.id != report_id]
        if len(remaining) != len(reports):
            self._save(remaining, "delete")

    def clear(self) -> None:
        """Drop every stored report (useful for tests)."""
        self._storage.pop(self.key, None)
