"""
统一错误模块。
"""

from .errors import (
    ErrorSeverity,
    CodeRabbitError,
    ConfigurationError,
    ApiError,
    ReportTimeoutError,
    StorageError,
    NotFoundError,
    InvalidTransitionError,
    ValidationError,
    Result,
    error_message,
)

__all__ = [
    "ErrorSeverity",
    "CodeRabbitError",
    "ConfigurationError",
    "ApiError",
    "ReportTimeoutError",
    "StorageError",
    "NotFoundError",
    "InvalidTransitionError",
    "ValidationError",
    "Result",
    "error_message",
]
