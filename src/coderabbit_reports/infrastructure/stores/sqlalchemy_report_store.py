from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from sqlalchemy import delete, desc, func, select
from sqlalchemy.exc import SQLAlchemyError

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
from .models import Base, ReportModel
from .sqlalchemy_db import SessionProvider, get_db_url

logger = logging.getLogger(__name__)


class SqlAlchemyReportStore(ReportStoragePort):
    """
    Relational report store (PostgreSQL / MySQL / SQLite via SQLAlchemy URL).

    - snake_case columns in ``coderabbit_reports``; parameters/results as JSON text
    - UUID4 ids, ``created_at`` in epoch milliseconds
    """

    def __init__(self, db_url: Optional[str] = None, *, auto_create_schema: bool = True):
        self.db_url = db_url or get_db_url()
        self._provider = SessionProvider(self.db_url)
        if auto_create_schema:
            # Safety net for local dev/tests; production schemas are managed outside this package.
            Base.metadata.create_all(self._provider.engine)

    def create(self, data: NewReport) -> str:
        report_id = str(uuid.uuid4())
        row = ReportModel(
            id=report_id,
            status=data.status.value,
            from_date=data.from_date,
            to_date=data.to_date,
            prompt_template=data.prompt_template,
            prompt=data.prompt,
            custom_prompt=data.custom_prompt,
            group_by=data.group_by,
            subgroup_by=data.subgroup_by,
            org_id=data.org_id,
            error=data.error,
            duration_ms=data.duration_ms,
            created_at=now_ms(),
        )
        row.set_parameters([p.to_dict() for p in data.parameters])
        row.set_results([r.to_dict() for r in data.results])
        try:
            with self._provider.transaction() as session:
                session.add(row)
        except SQLAlchemyError as e:
            logger.error(f"SqlAlchemyReportStore create failed: {e}")
            raise StorageError.wrap("create", e) from e
        return report_id

    def _finish(
        self,
        report_id: str,
        target: ReportStatus,
        duration_ms: int,
        results: Optional[List[ReportResult]] = None,
        error: Optional[str] = None,
    ) -> None:
        try:
            with self._provider.transaction() as session:
                row = session.get(ReportModel, report_id)
                if row is None:
                    raise NotFoundError(report_id)
                ensure_transition(report_id, row.status, target)
                row.status = target.value
                row.duration_ms = int(duration_ms)
                if results is not None:
                    row.set_results([r.to_dict() for r in results])
                if error is not None:
                    row.error = error
        except SQLAlchemyError as e:
            logger.error(f"SqlAlchemyReportStore update failed: {e}")
            raise StorageError.wrap("update", e) from e

    def update_success(self, report_id: str, results: List[ReportResult], duration_ms: int) -> None:
        self._finish(report_id, ReportStatus.COMPLETED, duration_ms, results=list(results))

    def update_failure(self, report_id: str, error: str, duration_ms: int) -> None:
        self._finish(report_id, ReportStatus.FAILED, duration_ms, error=error)

    def get(self, report_id: str) -> Optional[StoredReport]:
        try:
            with self._provider.session() as session:
                row = session.get(ReportModel, report_id)
                return self._to_stored(row) if row is not None else None
        except SQLAlchemyError as e:
            logger.error(f"SqlAlchemyReportStore get failed: {e}")
            raise StorageError.wrap("get", e) from e

    def list(self, options: Optional[ListOptions] = None) -> ListReportsResponse:
        opts = options or ListOptions()
        stmt = select(ReportModel)
        count_stmt = select(func.count()).select_from(ReportModel)
        if opts.status is not None:
            stmt = stmt.where(ReportModel.status == opts.status.value)
            count_stmt = count_stmt.where(ReportModel.status == opts.status.value)
        stmt = stmt.order_by(desc(ReportModel.created_at)).offset(opts.offset)
        if opts.limit is not None:
            stmt = stmt.limit(opts.limit)
        try:
            with self._provider.session() as session:
                rows = session.execute(stmt).scalars().all()
                total = session.execute(count_stmt).scalar_one()
                return ListReportsResponse(reports=[self._to_stored(r) for r in rows], total=int(total))
        except SQLAlchemyError as e:
            logger.error(f"SqlAlchemyReportStore list failed: {e}")
            raise StorageError.wrap("list", e) from e

    def delete(self, report_id: str) -> None:
        try:
            with self._provider.transaction() as session:
                session.execute(delete(ReportModel).where(ReportModel.id == report_id))
        except SQLAlchemyError as e:
            logger.error(f"SqlAlchemyReportStore delete failed: {e}")
            raise StorageError.wrap("delete", e) from e

    @staticmethod
    def _to_stored(row: ReportModel) -> StoredReport:
        return StoredReport(
            id=row.id,
            from_date=row.from_date,
            to_date=row.to_date,
            status=row.status,
            created_at=int(row.created_at),
            prompt_template=row.prompt_template,
            prompt=row.prompt,
            custom_prompt=row.custom_prompt,
            group_by=row.group_by,
            subgroup_by=row.subgroup_by,
            org_id=row.org_id,
            parameters=[FilterConfig.from_dict(p) for p in row.get_parameters()],
            results=[ReportResult.from_dict(r) for r in row.get_results()],
            error=row.error,
            duration_ms=row.duration_ms,
        )

    def close(self) -> None:
        self._provider.dispose()
