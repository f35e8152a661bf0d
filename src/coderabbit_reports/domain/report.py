"""
报告数据模型
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from coderabbit_reports.core.errors import InvalidTransitionError, ValidationError


class PromptTemplate(str, Enum):
    DAILY_STANDUP = "Daily Standup Report"
    SPRINT = "Sprint Report"
    RELEASE_NOTES = "Release Notes"
    CUSTOM = "Custom"


class FilterParameter(str, Enum):
    REPOSITORY = "REPOSITORY"
    LABEL = "LABEL"
    TEAM = "TEAM"
    USER = "USER"
    SOURCEBRANCH = "SOURCEBRANCH"
    TARGETBRANCH = "TARGETBRANCH"
    STATE = "STATE"


class FilterOperator(str, Enum):
    IN = "IN"
    ALL = "ALL"
    NOT_IN = "NOT_IN"


class GroupBy(str, Enum):
    NONE = "NONE"
    REPOSITORY = "REPOSITORY"
    LABEL = "LABEL"
    TEAM = "TEAM"
    USER = "USER"
    SOURCEBRANCH = "SOURCEBRANCH"
    TARGETBRANCH = "TARGETBRANCH"
    STATE = "STATE"


class ReportStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


DEFAULT_SCHEDULE_RANGE = "Dates"


def _coerce_enum(enum_cls, value, field_name: str):
    if value is None or isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(message=f"Invalid {field_name} '{value}'. Expected one of: {allowed}")


def _iso_date(value: Union[str, date], field_name: str) -> str:
    if isinstance(value, date):
        return value.isoformat()
    try:
        return date.fromisoformat(str(value)).isoformat()
    except ValueError:
        raise ValidationError(message=f"Invalid {field_name} '{value}'. Expected YYYY-MM-DD")


def _enum_value(value: Optional[Enum]) -> Optional[str]:
    return value.value if value is not None else None


@dataclass
class FilterConfig:
    """报告过滤条件：参数 × 运算符 × 取值列表"""

    parameter: FilterParameter
    operator: FilterOperator
    values: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.parameter = _coerce_enum(FilterParameter, self.parameter, "filter parameter")
        self.operator = _coerce_enum(FilterOperator, self.operator, "filter operator")
        self.values = [str(v) for v in (self.values or [])]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parameter": self.parameter.value,
            "operator": self.operator.value,
            "values": list(self.values),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FilterConfig":
        return cls(
            parameter=data.get("parameter"),
            operator=data.get("operator"),
            values=list(data.get("values") or []),
        )


@dataclass
class ReportRequest:
    """
    报告生成请求。

    ``prompt`` 与 ``prompt_template`` 互斥：要么使用模板，要么使用自定义提示词。
    """

    from_date: str
    to_date: str
    prompt: Optional[str] = None
    prompt_template: Optional[PromptTemplate] = None
    group_by: Optional[GroupBy] = None
    subgroup_by: Optional[GroupBy] = None
    parameters: List[FilterConfig] = field(default_factory=list)
    org_id: Optional[str] = None
    schedule_range: str = DEFAULT_SCHEDULE_RANGE

    def __post_init__(self):
        self.from_date = _iso_date(self.from_date, "from date")
        self.to_date = _iso_date(self.to_date, "to date")
        if self.from_date > self.to_date:
            raise ValidationError(message="From date must be on or before to date")

        self.prompt_template = _coerce_enum(PromptTemplate, self.prompt_template, "prompt template")
        self.group_by = _coerce_enum(GroupBy, self.group_by, "group by")
        self.subgroup_by = _coerce_enum(GroupBy, self.subgroup_by, "subgroup by")
        if self.prompt and self.prompt_template is not None:
            raise ValidationError(message="Use either a prompt template or a custom prompt, not both")

        self.parameters = [
            p if isinstance(p, FilterConfig) else FilterConfig.from_dict(p)
            for p in (self.parameters or [])
        ]

    def to_payload(self) -> Dict[str, Any]:
        """Wire body for ``report.generate``; unset optional keys are left out."""
        payload: Dict[str, Any] = {
            "from": self.from_date,
            "to": self.to_date,
            "scheduleRange": self.schedule_range or DEFAULT_SCHEDULE_RANGE,
            "parameters": [p.to_dict() for p in self.parameters],
        }
        if self.prompt:
            payload["prompt"] = self.prompt
        if self.prompt_template is not None:
            payload["promptTemplate"] = self.prompt_template.value
        if self.group_by is not None:
            payload["groupBy"] = self.group_by.value
        if self.subgroup_by is not None:
            payload["subgroupBy"] = self.subgroup_by.value
        if self.org_id:
            payload["orgId"] = self.org_id
        return payload

    @classmethod
    def from_payload(cls, data: Dict[str, Any]) -> "ReportRequest":
        return cls(
            from_date=data["from"],
            to_date=data["to"],
            prompt=data.get("prompt"),
            prompt_template=data.get("promptTemplate"),
            group_by=data.get("groupBy"),
            subgroup_by=data.get("subgroupBy"),
            parameters=[FilterConfig.from_dict(p) for p in data.get("parameters") or []],
            org_id=data.get("orgId"),
            schedule_range=data.get("scheduleRange") or DEFAULT_SCHEDULE_RANGE,
        )


@dataclass
class ReportResult:
    """单个分组的报告（markdown 文本）"""

    group: str
    report: str

    def to_dict(self) -> Dict[str, Any]:
        return {"group": self.group, "report": self.report}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReportResult":
        return cls(group=data.get("group"), report=data.get("report"))


@dataclass
class NewReport:
    """Creation payload for a storage adapter: a StoredReport without id/created_at."""

    from_date: str
    to_date: str
    status: ReportStatus = ReportStatus.PENDING
    prompt_template: Optional[str] = None
    prompt: Optional[str] = None
    custom_prompt: Optional[str] = None
    group_by: Optional[str] = None
    subgroup_by: Optional[str] = None
    org_id: Optional[str] = None
    parameters: List[FilterConfig] = field(default_factory=list)
    results: List[ReportResult] = field(default_factory=list)
    error: Optional[str] = None
    duration_ms: Optional[int] = None

    def __post_init__(self):
        self.status = _coerce_enum(ReportStatus, self.status or ReportStatus.PENDING, "status")

    @classmethod
    def from_request(cls, request: ReportRequest) -> "NewReport":
        return cls(
            from_date=request.from_date,
            to_date=request.to_date,
            status=ReportStatus.PENDING,
            prompt_template=_enum_value(request.prompt_template),
            prompt=request.prompt,
            group_by=_enum_value(request.group_by),
            subgroup_by=_enum_value(request.subgroup_by),
            org_id=request.org_id,
            parameters=list(request.parameters),
        )


@dataclass
class StoredReport:
    """持久化的报告记录（请求 + 生命周期字段）"""

    id: str
    from_date: str
    to_date: str
    status: ReportStatus
    created_at: int  # epoch milliseconds
    prompt_template: Optional[str] = None
    prompt: Optional[str] = None
    custom_prompt: Optional[str] = None
    group_by: Optional[str] = None
    subgroup_by: Optional[str] = None
    org_id: Optional[str] = None
    parameters: List[FilterConfig] = field(default_factory=list)
    results: List[ReportResult] = field(default_factory=list)
    error: Optional[str] = None
    duration_ms: Optional[int] = None

    def __post_init__(self):
        self.status = _coerce_enum(ReportStatus, self.status, "status")

    @classmethod
    def from_new(cls, report_id: str, created_at: int, data: NewReport) -> "StoredReport":
        return cls(
            id=report_id,
            from_date=data.from_date,
            to_date=data.to_date,
            status=data.status,
            created_at=created_at,
            prompt_template=data.prompt_template,
            prompt=data.prompt,
            custom_prompt=data.custom_prompt,
            group_by=data.group_by,
            subgroup_by=data.subgroup_by,
            org_id=data.org_id,
            parameters=list(data.parameters),
            results=list(data.results),
            error=data.error,
            duration_ms=data.duration_ms,
        )

    def to_dict(self) -> Dict[str, Any]:
        """camelCase record, the shape shared with JS consumers of the same store."""
        return {
            "id": self.id,
            "fromDate": self.from_date,
            "toDate": self.to_date,
            "promptTemplate": self.prompt_template,
            "prompt": self.prompt,
            "customPrompt": self.custom_prompt,
            "groupBy": self.group_by,
            "subgroupBy": self.subgroup_by,
            "orgId": self.org_id,
            "parameters": [p.to_dict() for p in self.parameters],
            "results": [r.to_dict() for r in self.results],
            "status": self.status.value,
            "error": self.error,
            "createdAt": self.created_at,
            "durationMs": self.duration_ms,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoredReport":
        return cls(
            id=str(data["id"]),
            from_date=data.get("fromDate"),
            to_date=data.get("toDate"),
            status=data.get("status") or ReportStatus.PENDING,
            created_at=int(data.get("createdAt") or 0),
            prompt_template=data.get("promptTemplate"),
            prompt=data.get("prompt"),
            custom_prompt=data.get("customPrompt"),
            group_by=data.get("groupBy"),
            subgroup_by=data.get("subgroupBy"),
            org_id=data.get("orgId"),
            parameters=[FilterConfig.from_dict(p) for p in data.get("parameters") or []],
            results=[ReportResult.from_dict(r) for r in data.get("results") or []],
            error=data.get("error"),
            duration_ms=data.get("durationMs"),
        )


@dataclass
class ListOptions:
    limit: Optional[int] = None
    offset: int = 0
    status: Optional[ReportStatus] = None

    def __post_init__(self):
        self.status = _coerce_enum(ReportStatus, self.status, "status")
        self.offset = max(0, int(self.offset or 0))
        if self.limit is not None:
            self.limit = max(0, int(self.limit))


@dataclass
class ListReportsResponse:
    reports: List[StoredReport] = field(default_factory=list)
    total: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {"reports": [r.to_dict() for r in self.reports], "total": self.total}


def ensure_transition(report_id: str, current: ReportStatus, target: ReportStatus) -> None:
    """Only ``pending`` records may move to a terminal state."""
    status = _coerce_enum(ReportStatus, current, "status")
    if status != ReportStatus.PENDING:
        shown = status.value if status is not None else "unknown"
        raise InvalidTransitionError(report_id, shown, target.value)
