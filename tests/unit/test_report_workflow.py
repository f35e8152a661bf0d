from __future__ import annotations

import asyncio
import logging

import pytest

from coderabbit_reports.config.settings import ClientConfig
from coderabbit_reports.core.errors import ApiError, StorageError
from coderabbit_reports.domain.report import ReportRequest, ReportResult, ReportStatus
from coderabbit_reports.application.workflows import ReportWorkflow
from coderabbit_reports.infrastructure.api_clients.coderabbit_client import CodeRabbitClient
from coderabbit_reports.infrastructure.api_clients.error_envelopes import ERROR_MESSAGES
from coderabbit_reports.infrastructure.stores import LocalReportStore
from tests.fakes import HangingTransport, RecordingTransport, success_body


def _request() -> ReportRequest:
    return ReportRequest(from_date="2024-01-01", to_date="2024-01-07", prompt_template="Daily Standup Report")


def _client(transport, api_key="key", timeout_ms=600_000) -> CodeRabbitClient:
    return CodeRabbitClient(ClientConfig(api_key=api_key, timeout_ms=timeout_ms), transport=transport)


class _Callbacks:
    def __init__(self):
        self.successes = []
        self.errors = []

    def on_success(self, report_id, results):
        self.successes.append((report_id, results))

    def on_error(self, message):
        self.errors.append(message)


@pytest.mark.asyncio
async def test_success_records_completed_report_and_fires_callback():
    store = LocalReportStore()
    callbacks = _Callbacks()
    transport = RecordingTransport(text=success_body([{"group": "all", "report": "# Standup"}]))
    workflow = ReportWorkflow(_client(transport), store, callbacks.on_success, callbacks.on_error)

    report_id = await workflow.generate_report(_request())

    report = store.get(report_id)
    assert report.status is ReportStatus.COMPLETED
    assert report.results == [ReportResult("all", "# Standup")]
    assert report.duration_ms is not None and report.duration_ms >= 0
    assert report.prompt_template == "Daily Standup Report"
    assert callbacks.successes == [(report_id, [ReportResult("all", "# Standup")])]
    assert callbacks.errors == []
    assert workflow.error is None
    assert workflow.is_generating is False
    assert workflow.last_results == [ReportResult("all", "# Standup")]


@pytest.mark.asyncio
async def test_api_failure_records_failed_report_and_returns_its_id():
    store = LocalReportStore()
    callbacks = _Callbacks()
    transport = RecordingTransport(status=429, text="slow down")
    workflow = ReportWorkflow(_client(transport), store, callbacks.on_success, callbacks.on_error)

    report_id = await workflow.generate_report(_request())

    assert report_id is not None
    report = store.get(report_id)
    assert report.status is ReportStatus.FAILED
    assert report.error == ERROR_MESSAGES["TOO_MANY_REQUESTS"]
    assert workflow.error == ERROR_MESSAGES["TOO_MANY_REQUESTS"]
    assert callbacks.errors == [ERROR_MESSAGES["TOO_MANY_REQUESTS"]]
    assert callbacks.successes == []
    assert workflow.is_generating is False


@pytest.mark.asyncio
async def test_without_storage_returns_none():
    transport = RecordingTransport(text=success_body([{"group": "g", "report": "r"}]))
    workflow = ReportWorkflow(_client(transport))

    assert await workflow.generate_report(_request()) is None
    assert workflow.last_results == [ReportResult("g", "r")]


@pytest.mark.asyncio
async def test_not_configured_never_calls_transport():
    transport = RecordingTransport()
    callbacks = _Callbacks()
    workflow = ReportWorkflow(_client(transport, api_key=None), on_error=callbacks.on_error)

    assert workflow.is_configured is False
    assert await workflow.generate_report(_request()) is None
    assert transport.calls == []
    assert "CODERABBIT_API_KEY" in workflow.error
    assert len(callbacks.errors) == 1


@pytest.mark.asyncio
async def test_timeout_is_recorded_as_failure():
    store = LocalReportStore()
    transport = HangingTransport()
    workflow = ReportWorkflow(_client(transport, timeout_ms=20), store)

    report_id = await workflow.generate_report(_request())

    assert transport.cancelled is True
    report = store.get(report_id)
    assert report.status is ReportStatus.FAILED
    assert "timed out" in report.error


class _BrokenCreateStore(LocalReportStore):
    def create(self, data):
        raise StorageError(message="Failed to create report: database is locked")


@pytest.mark.asyncio
async def test_create_failure_goes_through_failure_path():
    transport = RecordingTransport()
    callbacks = _Callbacks()
    workflow = ReportWorkflow(_client(transport), _BrokenCreateStore(), on_error=callbacks.on_error)

    assert await workflow.generate_report(_request()) is None
    assert transport.calls == []
    assert workflow.error == "Failed to create report: database is locked"
    assert callbacks.errors == [workflow.error]


class _BrokenUpdatesStore(LocalReportStore):
    def update_success(self, report_id, results, duration_ms):
        raise StorageError(message="Failed to update report: disk full")

    def update_failure(self, report_id, error, duration_ms):
        raise StorageError(message="Failed to update report: still full")


@pytest.mark.asyncio
async def test_secondary_storage_failure_is_logged_not_surfaced(caplog):
    store = _BrokenUpdatesStore()
    callbacks = _Callbacks()
    transport = RecordingTransport(text=success_body([]))
    workflow = ReportWorkflow(_client(transport), store, callbacks.on_success, callbacks.on_error)

    with caplog.at_level(logging.ERROR):
        report_id = await workflow.generate_report(_request())

    # update_success failed, so the report is a failure; update_failure failing too is only logged
    assert workflow.error == "Failed to update report: disk full"
    assert callbacks.errors == ["Failed to update report: disk full"]
    assert callbacks.successes == []
    assert store.get(report_id).status is ReportStatus.PENDING
    assert "still full" in caplog.text


@pytest.mark.asyncio
async def test_clear_error_and_reuse():
    transport = RecordingTransport(status=403, text="")
    workflow = ReportWorkflow(_client(transport))
    await workflow.generate_report(_request())
    assert workflow.error == ERROR_MESSAGES["FORBIDDEN"]

    workflow.clear_error()
    assert workflow.error is None

    transport.status = 200
    transport.text = success_body([])
    await workflow.generate_report(_request())
    assert workflow.error is None


class _BoomClient:
    def is_configured(self):
        return True

    async def generate_report(self, request):
        raise ApiError(message="boom")


@pytest.mark.asyncio
async def test_api_error_marks_record_failed_and_calls_back_once():
    store = LocalReportStore()
    callbacks = _Callbacks()
    workflow = ReportWorkflow(_BoomClient(), store, callbacks.on_success, callbacks.on_error)

    report_id = await workflow.generate_report(_request())

    report = store.get(report_id)
    assert report.status is ReportStatus.FAILED
    assert report.error == "boom"
    assert report.duration_ms is not None
    assert callbacks.errors == ["boom"]


@pytest.mark.asyncio
async def test_overlapping_calls_are_not_blocked():
    store = LocalReportStore()
    transport = RecordingTransport(text=success_body([]))
    workflow = ReportWorkflow(_client(transport), store)

    ids = await asyncio.gather(workflow.generate_report(_request()), workflow.generate_report(_request()))

    assert len(set(ids)) == 2
    assert len(transport.calls) == 2
    assert workflow.is_generating is False


@pytest.mark.asyncio
async def test_empty_result_list_is_a_completed_report_without_error():
    store = LocalReportStore()
    callbacks = _Callbacks()
    transport = RecordingTransport(text=success_body([]))
    workflow = ReportWorkflow(_client(transport), store, callbacks.on_success, callbacks.on_error)

    report_id = await workflow.generate_report(_request())

    report = store.get(report_id)
    assert report.status is ReportStatus.COMPLETED
    assert report.results == []
    assert report.error is None
    assert callbacks.successes == [(report_id, [])]
    assert callbacks.errors == []


@pytest.mark.asyncio
async def test_raising_success_callback_leaves_report_completed(caplog):
    store = LocalReportStore()
    errors = []

    def on_success(report_id, results):
        raise RuntimeError("render failed")

    transport = RecordingTransport(text=success_body([{"group": "all", "report": "# Standup"}]))
    workflow = ReportWorkflow(_client(transport), store, on_success, errors.append)

    with caplog.at_level(logging.ERROR):
        report_id = await workflow.generate_report(_request())

    assert report_id is not None
    report = store.get(report_id)
    assert report.status is ReportStatus.COMPLETED
    assert report.error is None
    assert workflow.error is None
    assert workflow.is_generating is False
    assert errors == []
    assert any("callback" in r.getMessage() for r in caplog.records)
