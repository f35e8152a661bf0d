from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Protocol

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


class DocumentClient(Protocol):
    """Shape of ``convex.ConvexClient``: named queries and mutations with dict args."""

    def query(self, name: str, args: Optional[Dict[str, Any]] = None) -> Any: ...

    def mutation(self, name: str, args: Optional[Dict[str, Any]] = None) -> Any: ...


@dataclass(frozen=True)
class ConvexFunctions:
    """Function references deployed alongside the ``coderabbit_reports`` table."""

    create: str = "coderabbit:createReport"
    update_success: str = "coderabbit:updateReportSuccess"
    update_failure: str = "coderabbit:updateReportFailure"
    get: str = "coderabbit:getReport"
    list: str = "coderabbit:listReports"
    delete: str = "coderabbit:deleteReport"


def _compact(values: Dict[str, Any]) -> Dict[str, Any]:
    # Convex optional validators reject explicit nulls
    return {k: v for k, v in values.items() if v is not None}


class ConvexReportStore(ReportStoragePort):
    """
    Document/real-time report store backed by Convex functions.

    Updates and deletes read the document first so the missing-id and
    terminal-state rules hold regardless of how the server functions behave.
    """

    def __init__(self, client: DocumentClient, functions: Optional[ConvexFunctions] = None):
        self.client = client
        self.functions = functions or ConvexFunctions()

    def _call(self, operation: str, kind: str, name: str, args: Dict[str, Any]) -> Any:
        try:
            if kind == "query":
                return self.client.query(name, args)
            return self.client.mutation(name, args)
        except Exception as e:
            logger.error(f"ConvexReportStore {name} failed: {e}")
            raise StorageError.wrap(operation, e) from e

    def create(self, data: NewReport) -> str:
        args = _compact(
            {
                "fromDate": data.from_date,
                "toDate": data.to_date,
                "promptTemplate": data.prompt_template,
                "prompt": data.prompt,
                "customPrompt": data.custom_prompt,
                "groupBy": data.group_by,
                "subgroupBy": data.subgroup_by,
                "orgId": data.org_id,
                "parameters": [p.to_dict() for p in data.parameters],
                "results": [r.to_dict() for r in data.results],
                "status": data.status.value,
                "error": data.error,
                "durationMs": data.duration_ms,
                "createdAt": now_ms(),
            }
        )
        report_id = self._call("create", "mutation", self.functions.create, args)
        if not report_id:
            raise StorageError(message="Failed to create report: no id returned")
        return str(report_id)

    def _require_pending(self, report_id: str, target: ReportStatus) -> None:
        doc = self._call("update", "query", self.functions.get, {"id": report_id})
        if doc is None:
            raise NotFoundError(report_id)
        ensure_transition(report_id, doc.get("status"), target)

    def update_success(self, report_id: str, results: List[ReportResult], duration_ms: int) -> None:
        self._require_pending(report_id, ReportStatus.COMPLETED)
        self._call(
            "update",
            "mutation",
            self.functions.update_success,
            {"id": report_id, "results": [r.to_dict() for r in results], "durationMs": int(duration_ms)},
        )

    def update_failure(self, report_id: str, error: str, duration_ms: int) -> None:
        self._require_pending(report_id, ReportStatus.FAILED)
        self._call(
            "update",
            "mutation",
            self.functions.update_failure,
            {"id": report_id, "error": error, "durationMs": int(duration_ms)},
        )

    def get(self, report_id: str) -> Optional[StoredReport]:
        doc = self._call("get", "query", self.functions.get, {"id": report_id})
        return self._to_stored(doc) if doc else None

    def list(self, options: Optional[ListOptions] = None) -> ListReportsResponse:
        opts = options or ListOptions()
        args = _compact(
            {
                "limit": opts.limit,
                "offset": opts.offset or None,
                "status": opts.status.value if opts.status is not None else None,
            }
        )
        page = self._call("list", "query", self.functions.list, args) or {}
        return ListReportsResponse(
            reports=[self._to_stored(doc) for doc in page.get("reports") or []],
            total=int(page.get("total") or 0),
        )

    def delete(self, report_id: str) -> None:
        if self._call("delete", "query", self.functions.get, {"id": report_id}) is None:
            return
        self._call("delete", "mutation", self.functions.delete, {"id": report_id})

    @staticmethod
    def _to_stored(doc: Dict[str, Any]) -> StoredReport:
        record = dict(doc)
        record["id"] = record.get("id") or record.get("_id")
        if not record.get("createdAt") and record.get("_creationTime"):
            record["createdAt"] = int(record["_creationTime"])
        return StoredReport.from_dict(record)
