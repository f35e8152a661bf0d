from .report_workflow import ReportWorkflow

__all__ = ["ReportWorkflow"]
