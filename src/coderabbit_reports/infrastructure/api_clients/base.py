"""
HTTP 传输层封装（aiohttp）
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, runtime_checkable

import aiohttp
from aiohttp import ClientTimeout

logger = logging.getLogger(__name__)

USER_AGENT = "coderabbit-reports/0.1"


@dataclass
class TransportResponse:
    status: int
    text: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class TransportError(Exception):
    """Connection-level failure (DNS, refused, reset) before any HTTP status."""


@runtime_checkable
class HttpTransport(Protocol):
    async def post_json(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Dict[str, str],
    ) -> TransportResponse:
        """POST a JSON body and return status + raw body text."""

    async def close(self) -> None:
        """Release connections (optional)."""


class AiohttpTransport:
    """通用异步 HTTP 传输，复用单个 aiohttp session"""

    def __init__(self, user_agent: str = USER_AGENT):
        self.user_agent = user_agent
        # 超时由客户端统一控制，这里关闭 aiohttp 默认的 5 分钟总超时
        self.timeout = ClientTimeout(total=None)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """获取或创建 aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
            )
        return self._session

    async def post_json(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Dict[str, str],
    ) -> TransportResponse:
        """发送 POST 请求"""
        session = await self._get_session()
        try:
            async with session.post(url, json=payload, headers=headers) as response:
                text = await response.text()
                return TransportResponse(status=response.status, text=text)
        except aiohttp.ClientError as e:
            logger.error(f"Request failed: {url} - {e}")
            raise TransportError(str(e)) from e

    async def close(self) -> None:
        """关闭 session"""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
