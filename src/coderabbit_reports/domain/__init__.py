"""
领域模型层：报告请求、报告结果与持久化记录。
"""

from .report import (
    PromptTemplate,
    FilterParameter,
    FilterOperator,
    GroupBy,
    ReportStatus,
    FilterConfig,
    ReportRequest,
    ReportResult,
    NewReport,
    StoredReport,
    ListOptions,
    ListReportsResponse,
    ensure_transition,
)

__all__ = [
    "PromptTemplate",
    "FilterParameter",
    "FilterOperator",
    "GroupBy",
    "ReportStatus",
    "FilterConfig",
    "ReportRequest",
    "ReportResult",
    "NewReport",
    "StoredReport",
    "ListOptions",
    "ListReportsResponse",
    "ensure_transition",
]
