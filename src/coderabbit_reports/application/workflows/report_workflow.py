from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional

from coderabbit_reports.application.ports.report_storage_port import ReportStoragePort
from coderabbit_reports.core.errors import error_message
from coderabbit_reports.domain.report import NewReport, ReportRequest, ReportResult
from coderabbit_reports.infrastructure.api_clients.coderabbit_client import CodeRabbitClient

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[Optional[str], List[ReportResult]], None]
ErrorCallback = Callable[[str], None]


class ReportWorkflow:
    """
    Application-layer boundary for one report generation: record the request,
    call CodeRabbit, then record the outcome.

    The workflow owns the observable state a UI binds to (``is_generating``,
    ``error``) and never raises past ``generate_report``; failures end up in
    ``error`` and the ``on_error`` callback.
    """

    def __init__(
        self,
        client: CodeRabbitClient,
        storage: Optional[ReportStoragePort] = None,
        on_success: Optional[SuccessCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ):
        self.client = client
        self.storage = storage
        self.on_success = on_success
        self.on_error = on_error

        self.is_generating: bool = False
        self.error: Optional[str] = None
        self.last_results: List[ReportResult] = []

    @property
    def is_configured(self) -> bool:
        return self.client.is_configured()

    def clear_error(self) -> None:
        self.error = None

    async def generate_report(self, request: ReportRequest) -> Optional[str]:
        """
        Generate a report and persist its lifecycle when storage is configured.

        Overlapping calls are not serialized; the first one to finish clears
        ``is_generating`` while the other may still be in flight.

        Returns:
            The stored record id (also when generation failed), or None when
            storage is absent or the record could not be created.
        """
        self.is_generating = True
        self.error = None
        started = time.monotonic()
        report_id: Optional[str] = None

        try:
            if self.storage is not None:
                report_id = self.storage.create(NewReport.from_request(request))

            results = await self.client.generate_report(request)
            duration_ms = self._elapsed_ms(started)

            if self.storage is not None and report_id is not None:
                self.storage.update_success(report_id, results, duration_ms)

        except Exception as e:
            duration_ms = self._elapsed_ms(started)
            message = error_message(e)
            self.error = message
            logger.warning(f"Report generation failed after {duration_ms}ms: {message}")

            if self.storage is not None and report_id is not None:
                try:
                    self.storage.update_failure(report_id, message, duration_ms)
                except Exception as storage_error:
                    # the original failure stays the one callers see
                    logger.error(
                        f"Failed to record failure for report {report_id}: {error_message(storage_error)}"
                    )

            self._notify(self.on_error, message)
            return report_id

        finally:
            self.is_generating = False

        self.last_results = list(results)
        self._notify(self.on_success, report_id, results)
        return report_id

    @staticmethod
    def _notify(callback: Optional[Callable[..., None]], *args) -> None:
        # callbacks run after the record is final; their failures do not change it
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception(f"Report workflow callback {getattr(callback, '__name__', callback)!r} failed")

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.monotonic() - started) * 1000)
