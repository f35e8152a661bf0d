from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from coderabbit_reports.application.ports.report_storage_port import ReportStoragePort
from coderabbit_reports.core.errors import NotFoundError, StorageError
from coderabbit_reports.domain.report import (
    FilterConfig,
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

DEFAULT_TABLE = "coderabbit_reports"
# PostgREST caps unbounded selects; used as the page end when only an offset is given
MAX_ROWS = 1000


def _ms_to_iso(ms: int) -> str:
    dt = datetime.fromtimestamp(ms // 1000, tz=timezone.utc)
    return dt.replace(microsecond=(ms % 1000) * 1000).isoformat(timespec="milliseconds")


def _to_ms(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return round(dt.timestamp() * 1000)


class SupabaseReportStore(ReportStoragePort):
    """
    Table-per-resource store over a supabase-py style client
    (``client.table(name).insert/update/select/delete ... .execute()``).

    Row-level security is enforced server-side; rows hidden by a policy look
    absent here (``get`` returns None, updates raise NotFoundError).
    """

    def __init__(self, client: Any, table_name: str = DEFAULT_TABLE):
        self.client = client
        self.table_name = table_name

    def _table(self):
        return self.client.table(self.table_name)

    def _execute(self, operation: str, query) -> Any:
        try:
            return query.execute()
        except Exception as e:
            logger.error(f"SupabaseReportStore {operation} failed: {e}")
            raise StorageError.wrap(operation, e) from e

    def create(self, data: NewReport) -> str:
        report_id = str(uuid.uuid4())
        row = {
            "id": report_id,
            "status": data.status.value,
            "from_date": data.from_date,
            "to_date": data.to_date,
            "prompt_template": data.prompt_template,
            "prompt": data.prompt,
            "custom_prompt": data.custom_prompt,
            "group_by": data.group_by,
            "subgroup_by": data.subgroup_by,
            "org_id": data.org_id,
            "parameters": [p.to_dict() for p in data.parameters],
            "results": [r.to_dict() for r in data.results] or None,
            "error": data.error,
            "duration_ms": data.duration_ms,
            "created_at": _ms_to_iso(now_ms()),
        }
        self._execute("create", self._table().insert(row))
        return report_id

    def _finish(self, report_id: str, target: ReportStatus, values: Dict[str, Any]) -> None:
        # Conditional update keeps the pending check and the write in one statement
        query = (
            self._table()
            .update({"status": target.value, **values})
            .eq("id", report_id)
            .eq("status", ReportStatus.PENDING.value)
        )
        response = self._execute("update", query)
        if getattr(response, "data", None):
            return
        current = self.get(report_id)
        if current is None:
            raise NotFoundError(report_id)
        ensure_transition(report_id, current.status, target)
        raise StorageError(message=f"Failed to update report: no rows updated for {report_id}")

    def update_success(self, report_id: str, results: List[ReportResult], duration_ms: int) -> None:
        self._finish(
            report_id,
            ReportStatus.COMPLETED,
            {"results": [r.to_dict() for r in results], "duration_ms": int(duration_ms)},
        )

    def update_failure(self, report_id: str, error: str, duration_ms: int) -> None:
        self._finish(report_id, ReportStatus.FAILED, {"error": error, "duration_ms": int(duration_ms)})

    def get(self, report_id: str) -> Optional[StoredReport]:
        response = self._execute("get", self._table().select("*").eq("id", report_id).limit(1))
        rows = getattr(response, "data", None) or []
        return self._to_stored(rows[0]) if rows else None

    def list(self, options: Optional[ListOptions] = None) -> ListReportsResponse:
        opts = options or ListOptions()
        query = self._table().select("*", count="exact").order("created_at", desc=True)
        if opts.status is not None:
            query = query.eq("status", opts.status.value)
        if opts.offset:
            size = opts.limit if opts.limit is not None else MAX_ROWS
            query = query.range(opts.offset, opts.offset + size - 1)
        elif opts.limit is not None:
            query = query.limit(opts.limit)

        response = self._execute("list", query)
        rows = getattr(response, "data", None) or []
        count = getattr(response, "count", None)
        return ListReportsResponse(
            reports=[self._to_stored(r) for r in rows],
            total=int(count) if count is not None else len(rows),
        )

    def delete(self, report_id: str) -> None:
        self._execute("delete", self._table().delete().eq("id", report_id))

    @staticmethod
    def _to_stored(row: Dict[str, Any]) -> StoredReport:
        return StoredReport(
            id=str(row["id"]),
            from_date=row.get("from_date"),
            to_date=row.get("to_date"),
            status=row.get("status") or ReportStatus.PENDING,
            created_at=_to_ms(row.get("created_at")),
            prompt_template=row.get("prompt_template"),
            prompt=row.get("prompt"),
            custom_prompt=row.get("custom_prompt"),
            group_by=row.get("group_by"),
            subgroup_by=row.get("subgroup_by"),
            org_id=row.get("org_id"),
            parameters=[FilterConfig.from_dict(p) for p in row.get("parameters") or []],
            results=[ReportResult.from_dict(r) for r in row.get("results") or []],
            error=row.get("error"),
            duration_ms=row.get("duration_ms"),
        )
