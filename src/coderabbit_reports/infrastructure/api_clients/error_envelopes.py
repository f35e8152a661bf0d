"""
Decoding of CodeRabbit error bodies into a tagged union.

Any body carrying an ``error`` object is the RPC envelope, read leniently.
Other JSON objects are tried as the flat shape (``{"message", "code", "issues"}``). Anything else, including
non-JSON text, becomes ``UnknownErrorBody`` carrying the raw status and text.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError as PydanticValidationError, field_validator

ERROR_MESSAGES: Dict[str, str] = {
    "UNAUTHORIZED": (
        "CodeRabbit Pro subscription required. Please upgrade your plan at "
        "https://coderabbit.ai to use the Reports API."
    ),
    "FORBIDDEN": "Access denied. Please check your API key permissions.",
    "TOO_MANY_REQUESTS": "Rate limit exceeded. Please wait a few minutes before trying again.",
    "BAD_REQUEST": "Invalid request. Please check your report parameters.",
}

STATUS_CODE_MAP: Dict[int, str] = {
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    429: "TOO_MANY_REQUESTS",
    400: "BAD_REQUEST",
}


class RpcErrorData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    code: Optional[Any] = None
    httpStatus: Optional[Any] = None
    path: Optional[Any] = None


class RpcErrorBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: Optional[Any] = None
    code: Optional[Any] = None
    data: Optional[RpcErrorData] = None

    @field_validator("data", mode="before")
    @classmethod
    def _drop_non_object_data(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None


class RpcErrorEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    kind: Literal["rpc"] = "rpc"
    error: RpcErrorBody


class ErrorIssue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: Optional[str] = None


class FlatErrorEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    kind: Literal["flat"] = "flat"
    message: Optional[str] = None
    code: Optional[Union[str, int]] = None
    issues: Optional[List[ErrorIssue]] = None


@dataclass
class UnknownErrorBody:
    status: int
    text: str
    kind: str = "unknown"


ErrorEnvelope = Union[RpcErrorEnvelope, FlatErrorEnvelope, UnknownErrorBody]


def decode_error_body(status: int, text: str) -> ErrorEnvelope:
    try:
        data = json.loads(text) if text else None
    except ValueError:
        return UnknownErrorBody(status=status, text=text or "")

    if isinstance(data, dict):
        if isinstance(data.get("error"), dict):
            # an error object alone selects the RPC shape; its fields are read leniently
            return RpcErrorEnvelope.model_validate({"error": data["error"]})
        try:
            return FlatErrorEnvelope.model_validate(data)
        except PydanticValidationError:
            pass
    return UnknownErrorBody(status=status, text=text or "")


def _generic(status: int) -> str:
    return f"API request failed with status {status}"


def _friendly_for_status(status: int) -> Optional[str]:
    mapped = STATUS_CODE_MAP.get(status)
    return ERROR_MESSAGES.get(mapped) if mapped else None


def resolve_error_message(envelope: ErrorEnvelope, status: int) -> str:
    """Turn a decoded error body into the single user-facing message."""
    if isinstance(envelope, RpcErrorEnvelope):
        code = envelope.error.data.code if envelope.error.data else None
        if isinstance(code, str) and code in ERROR_MESSAGES:
            return ERROR_MESSAGES[code]
        message = envelope.error.message
        return message if isinstance(message, str) and message else _generic(status)

    friendly = _friendly_for_status(status)
    if friendly:
        return friendly

    if isinstance(envelope, FlatErrorEnvelope):
        message = envelope.message or _generic(status)
        details = ", ".join(i.message for i in (envelope.issues or []) if i.message)
        return f"{message}: {details}" if details else message

    return _generic(status)


def normalize_error(status: int, text: str) -> str:
    return resolve_error_message(decode_error_body(status, text), status)
