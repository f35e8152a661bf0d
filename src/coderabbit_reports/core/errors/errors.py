"""
统一错误与 Result 封装：客户端、存储适配器与编排层共用同一套错误分类。
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Dict, Generic, Optional, TypeVar, Union, cast


class ErrorSeverity(Enum):
    WARNING = "warning"      # 可继续
    ERROR = "error"          # 操作失败
    CRITICAL = "critical"    # 进程应终止


@dataclass(eq=False)
class CodeRabbitError(Exception):
    message: str
    severity: Optional[ErrorSeverity] = None
    code: Optional[str] = None
    context: Dict[str, Any] | None = None

    # 子类通过覆盖这两个类属性声明默认错误码与严重级别
    default_code: ClassVar[str] = "UNKNOWN"
    default_severity: ClassVar[ErrorSeverity] = ErrorSeverity.ERROR

    def __post_init__(self) -> None:
        if self.code is None:
            self.code = self.default_code
        if self.severity is None:
            self.severity = self.default_severity

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"


class ConfigurationError(CodeRabbitError):
    default_code = "CONFIGURATION_ERROR"


class ApiError(CodeRabbitError):
    """Non-2xx response or transport failure; message is already user-facing."""

    default_code = "API_ERROR"

    def __init__(self, message: str, status: Optional[int] = None, **kwargs: Any):
        super().__init__(message=message, **kwargs)
        self.status = status


class ReportTimeoutError(CodeRabbitError):
    default_code = "TIMEOUT"

    def __init__(self, timeout_ms: int, **kwargs: Any):
        seconds = timeout_ms / 1000
        shown = int(seconds) if seconds == int(seconds) else seconds
        super().__init__(
            message=f"CodeRabbit report generation timed out after {shown}s",
            **kwargs,
        )
        self.timeout_ms = timeout_ms


class StorageError(CodeRabbitError):
    default_code = "STORAGE_ERROR"

    @classmethod
    def wrap(cls, operation: str, cause: BaseException) -> "StorageError":
        detail = str(cause) or type(cause).__name__
        return cls(message=f"Failed to {operation} report: {detail}")


class NotFoundError(StorageError):
    default_code = "NOT_FOUND"

    def __init__(self, report_id: str, **kwargs: Any):
        super().__init__(message=f"Report not found: {report_id}", **kwargs)
        self.report_id = report_id


class InvalidTransitionError(StorageError):
    default_code = "INVALID_TRANSITION"

    def __init__(self, report_id: str, current: str, target: str, **kwargs: Any):
        super().__init__(
            message=f"Report {report_id} is already {current}; cannot mark as {target}",
            **kwargs,
        )
        self.report_id = report_id


class ValidationError(CodeRabbitError):
    default_code = "VALIDATION_ERROR"
    default_severity = ErrorSeverity.WARNING


def error_message(exc: BaseException) -> str:
    """Plain message for surfacing to callers (no ``[CODE]`` prefix)."""
    if isinstance(exc, CodeRabbitError):
        return exc.message
    return str(exc) or type(exc).__name__


T = TypeVar("T")
E = TypeVar("E", bound=CodeRabbitError)


@dataclass
class Result(Generic[T, E]):
    """函数式结果封装，避免散落的 {data, error} 字典。"""

    _value: Union[T, E]
    _is_ok: bool

    @classmethod
    def ok(cls, value: T) -> "Result[T, E]":
        return cls(_value=value, _is_ok=True)

    @classmethod
    def err(cls, error: E) -> "Result[T, E]":
        return cls(_value=error, _is_ok=False)

    def is_ok(self) -> bool:
        return self._is_ok

    @property
    def error(self) -> Optional[E]:
        return None if self._is_ok else cast(E, self._value)

    def unwrap(self) -> T:
        if not self._is_ok:
            raise cast(E, self._value)
        return cast(T, self._value)

    def unwrap_or(self, default: T) -> T:
        return cast(T, self._value) if self._is_ok else default

    def map(self, fn) -> "Result[T, E]":
        if self._is_ok:
            return Result.ok(fn(self._value))  # type: ignore[arg-type]
        return self
