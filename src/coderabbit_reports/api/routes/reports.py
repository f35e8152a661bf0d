"""
Reports API Route

Generate a report (recording it in the configured store) and browse history.
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, Field

from coderabbit_reports.application.actions import ACTION_NOT_CONFIGURED_MESSAGE
from coderabbit_reports.application.workflows import ReportWorkflow
from coderabbit_reports.core.errors import StorageError, ValidationError
from coderabbit_reports.domain.report import (
    DEFAULT_SCHEDULE_RANGE,
    FilterConfig,
    ListOptions,
    ReportRequest,
)

router = APIRouter()


class FilterBody(BaseModel):
    parameter: str
    operator: str
    values: List[str] = Field(default_factory=list)


class GenerateReportBody(BaseModel):
    from_date: str = Field(..., description="YYYY-MM-DD")
    to_date: str = Field(..., description="YYYY-MM-DD")
    prompt: Optional[str] = None
    prompt_template: Optional[str] = None
    group_by: Optional[str] = None
    subgroup_by: Optional[str] = None
    parameters: List[FilterBody] = Field(default_factory=list)
    org_id: Optional[str] = None
    schedule_range: str = DEFAULT_SCHEDULE_RANGE

    def to_domain(self) -> ReportRequest:
        return ReportRequest(
            from_date=self.from_date,
            to_date=self.to_date,
            prompt=self.prompt,
            prompt_template=self.prompt_template,
            group_by=self.group_by,
            subgroup_by=self.subgroup_by,
            parameters=[FilterConfig(p.parameter, p.operator, p.values) for p in self.parameters],
            org_id=self.org_id,
            schedule_range=self.schedule_range,
        )


def _store(http_request: Request):
    store = getattr(http_request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="report storage not enabled")
    return store


@router.post("/reports")
async def generate_report(body: GenerateReportBody, http_request: Request):
    client = getattr(http_request.app.state, "client", None)
    if client is None or not client.is_configured():
        raise HTTPException(status_code=503, detail=ACTION_NOT_CONFIGURED_MESSAGE)

    try:
        request = body.to_domain()
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.message)

    workflow = ReportWorkflow(client, storage=getattr(http_request.app.state, "store", None))
    report_id = await workflow.generate_report(request)
    results = [] if workflow.error else [r.to_dict() for r in workflow.last_results]
    return {"report_id": report_id, "results": results, "error": workflow.error}


@router.get("/reports")
async def list_reports(
    http_request: Request,
    limit: Optional[int] = Query(None, ge=0, le=1000, description="Max reports to return"),
    offset: int = Query(0, ge=0),
    status: Optional[str] = Query(None, description="pending / completed / failed"),
):
    store = _store(http_request)
    try:
        options = ListOptions(limit=limit, offset=offset, status=status)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.message)
    try:
        return store.list(options).to_dict()
    except StorageError as e:
        raise HTTPException(status_code=500, detail=e.message)


@router.get("/reports/{report_id}")
async def get_report(report_id: str, http_request: Request):
    store = _store(http_request)
    try:
        report = store.get(report_id)
    except StorageError as e:
        raise HTTPException(status_code=500, detail=e.message)
    if report is None:
        raise HTTPException(status_code=404, detail=f"Report not found: {report_id}")
    return report.to_dict()


@router.delete("/reports/{report_id}")
async def delete_report(report_id: str, http_request: Request):
    store = _store(http_request)
    try:
        store.delete(report_id)
    except StorageError as e:
        raise HTTPException(status_code=500, detail=e.message)
    return {"deleted": report_id}
