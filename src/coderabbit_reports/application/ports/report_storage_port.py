from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable

from coderabbit_reports.domain.report import (
    ListOptions,
    ListReportsResponse,
    NewReport,
    ReportResult,
    StoredReport,
)


@runtime_checkable
class ReportStoragePort(Protocol):
    """
    Persistence contract for generated reports.

    Every backend behaves identically from the caller's perspective:
    - records start ``pending`` and move once to ``completed`` or ``failed``;
    - updates on a missing id raise NotFoundError, on a terminal record
      InvalidTransitionError;
    - get() returns None for a missing id, delete() is idempotent;
    - list() is newest-first and ``total`` ignores limit/offset;
    - backend failures surface as StorageError("Failed to <op> report: ...").
    Column/field naming is private to each implementation.
    """

    def create(self, data: NewReport) -> str:
        """Persist a new record and return its generated id."""

    def update_success(self, report_id: str, results: List[ReportResult], duration_ms: int) -> None:
        """pending -> completed, storing results and duration."""

    def update_failure(self, report_id: str, error: str, duration_ms: int) -> None:
        """pending -> failed, storing the error message and duration."""

    def get(self, report_id: str) -> Optional[StoredReport]:
        """Return the record or None."""

    def list(self, options: Optional[ListOptions] = None) -> ListReportsResponse:
        """Newest-first page of records plus the total matching count."""

    def delete(self, report_id: str) -> None:
        """Remove the record if present."""
