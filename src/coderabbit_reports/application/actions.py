"""
Server-side entry points that keep the API key on the server.

Both functions return plain values and never raise, so they can be called
straight from request handlers or scripts.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from coderabbit_reports.config.settings import ConfigSource, resolve_client_config
from coderabbit_reports.core.errors import (
    CodeRabbitError,
    ConfigurationError,
    Result,
    error_message,
)
from coderabbit_reports.domain.report import ReportRequest, ReportResult
from coderabbit_reports.infrastructure.api_clients.coderabbit_client import CodeRabbitClient

logger = logging.getLogger(__name__)

ACTION_NOT_CONFIGURED_MESSAGE = (
    "CODERABBIT_API_KEY not configured. Set the environment variable in your .env.local file."
)


def check_config(sources: Optional[Sequence[ConfigSource]] = None) -> Dict[str, bool]:
    """Whether an API key is available, without exposing it."""
    try:
        configured = resolve_client_config(sources=sources).is_configured
    except ConfigurationError as e:
        logger.warning(f"Invalid CodeRabbit configuration: {e.message}")
        configured = False
    return {"is_configured": configured}


async def generate_report_action(
    request: ReportRequest,
    client: Optional[CodeRabbitClient] = None,
) -> Result[List[ReportResult], CodeRabbitError]:
    owns_client = client is None
    try:
        client = client or CodeRabbitClient()
    except ConfigurationError as e:
        return Result.err(e)

    try:
        if not client.is_configured():
            return Result.err(ConfigurationError(message=ACTION_NOT_CONFIGURED_MESSAGE))
        return Result.ok(await client.generate_report(request))
    except CodeRabbitError as e:
        return Result.err(e)
    except Exception as e:
        logger.exception("Unexpected error while generating report")
        return Result.err(CodeRabbitError(message=error_message(e)))
    finally:
        if owns_client:
            await client.close()
