from .report_storage_port import ReportStoragePort

__all__ = ["ReportStoragePort"]
