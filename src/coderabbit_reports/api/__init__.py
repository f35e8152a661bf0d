"""
CodeRabbit Reports API Package
FastAPI backend for report generation and history
"""

from .main import app

__all__ = ["app"]
