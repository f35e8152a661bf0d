"""
外部 API 客户端。
"""

from .base import AiohttpTransport, HttpTransport, TransportError, TransportResponse
from .coderabbit_client import CodeRabbitClient, create_coderabbit_client

__all__ = [
    "AiohttpTransport",
    "HttpTransport",
    "TransportError",
    "TransportResponse",
    "CodeRabbitClient",
    "create_coderabbit_client",
]
