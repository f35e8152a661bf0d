"""
API Routes
"""

from . import config_status, reports

__all__ = ["config_status", "reports"]
