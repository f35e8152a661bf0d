"""
CodeRabbit Reports API 客户端

单次 POST {base_url}/v1/report.generate，客户端侧超时，无重试。
错误响应统一归一化为一条可读消息（见 error_envelopes）。
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from coderabbit_reports.config.settings import ClientConfig, ConfigSource, resolve_client_config
from coderabbit_reports.core.errors import ApiError, ConfigurationError, ReportTimeoutError
from coderabbit_reports.domain.report import ReportRequest, ReportResult

from .base import AiohttpTransport, HttpTransport, TransportError, TransportResponse
from .error_envelopes import normalize_error

logger = logging.getLogger(__name__)

API_VERSION = "v1"
REPORT_ENDPOINT = "report.generate"
API_KEY_HEADER = "x-coderabbitai-api-key"

NOT_CONFIGURED_MESSAGE = (
    "CODERABBIT_API_KEY not configured. Set environment variable or pass api_key in config."
)


class CodeRabbitClient:
    """CodeRabbit 报告生成客户端"""

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        transport: Optional[HttpTransport] = None,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_ms: Optional[int] = None,
        sources: Optional[Sequence[ConfigSource]] = None,
    ):
        self.config = config or resolve_client_config(
            api_key=api_key,
            base_url=base_url,
            timeout_ms=timeout_ms,
            sources=sources,
        )
        self._transport = transport

    @property
    def transport(self) -> HttpTransport:
        if self._transport is None:
            self._transport = AiohttpTransport()
        return self._transport

    @property
    def endpoint(self) -> str:
        return f"{self.config.base_url}/{API_VERSION}/{REPORT_ENDPOINT}"

    def is_configured(self) -> bool:
        return self.config.is_configured

    async def generate_report(self, request: ReportRequest) -> List[ReportResult]:
        """
        生成开发者活动报告。

        数据量大时接口可能需要数分钟才返回，超时默认 10 分钟。

        Raises:
            ConfigurationError: 未配置 API key（不会发起任何网络请求）
            ReportTimeoutError: 超过配置的超时时间，进行中的请求已被取消
            ApiError: 非 2xx 响应或连接失败
        """
        if not self.is_configured():
            raise ConfigurationError(message=NOT_CONFIGURED_MESSAGE)

        payload = request.to_payload()
        headers = {
            "Content-Type": "application/json",
            API_KEY_HEADER: self.config.api_key or "",
        }
        url = self.endpoint
        timeout_ms = self.config.timeout_ms

        logger.info(f"Generating CodeRabbit report {payload['from']}..{payload['to']}")
        started = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self.transport.post_json(url, payload, headers),
                timeout=timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            logger.error(f"Request timeout after {timeout_ms}ms: {url}")
            raise ReportTimeoutError(timeout_ms)
        except TransportError as e:
            raise ApiError(message=f"CodeRabbit request failed: {e}") from e

        elapsed_ms = int((time.monotonic() - started) * 1000)
        if not response.ok:
            logger.error(f"API error {response.status}: {response.text[:200]}")
            raise ApiError(message=normalize_error(response.status, response.text), status=response.status)

        results = self._unwrap(response)
        logger.info(f"CodeRabbit report ready: {len(results)} group(s) in {elapsed_ms}ms")
        return results

    @staticmethod
    def _unwrap(response: TransportResponse) -> List[ReportResult]:
        # 成功响应形如 {"result": {"data": [...]}}；条目内容不做校验
        try:
            body: Any = json.loads(response.text)
            data = body["result"]["data"]
        except (ValueError, KeyError, TypeError):
            raise ApiError(
                message="Unexpected response shape from CodeRabbit API",
                status=response.status,
            )
        if not isinstance(data, list):
            raise ApiError(message="Unexpected response shape from CodeRabbit API", status=response.status)
        return [ReportResult.from_dict(item) if isinstance(item, dict) else item for item in data]

    async def close(self) -> None:
        if self._transport is not None:
            await self._transport.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def create_coderabbit_client(config: Optional[ClientConfig] = None, **kwargs: Any) -> CodeRabbitClient:
    """
    创建客户端实例。

    Example:
        client = create_coderabbit_client(api_key="your-key")
        results = await client.generate_report(
            ReportRequest(from_date="2024-01-01", to_date="2024-01-31", prompt_template="Sprint Report")
        )
    """
    return CodeRabbitClient(config, **kwargs)
