"""
报告存储适配器。
"""

from .convex_report_store import ConvexFunctions, ConvexReportStore
from .factory import build_report_store
from .local_report_store import JsonFileKeyValue, LocalReportStore
from .sqlalchemy_report_store import SqlAlchemyReportStore
from .supabase_report_store import SupabaseReportStore

__all__ = [
    "ConvexFunctions",
    "ConvexReportStore",
    "JsonFileKeyValue",
    "LocalReportStore",
    "SqlAlchemyReportStore",
    "SupabaseReportStore",
    "build_report_store",
]
