"""
基础设施层 - CodeRabbit API 客户端、报告存储、日志。
"""

from .api_clients import CodeRabbitClient, create_coderabbit_client
from .stores import build_report_store

__all__ = [
    "CodeRabbitClient",
    "create_coderabbit_client",
    "build_report_store",
]
