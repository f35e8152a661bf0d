from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from coderabbit_reports.config.settings import LoggingConfig

# marks handlers installed here so repeated calls replace rather than stack them
_HANDLER_TAG = "_coderabbit_reports_handler"


def _resolve_level(level: str) -> int:
    value = logging.getLevelName(str(level).upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(config: Optional[LoggingConfig] = None) -> logging.Logger:
    """
    Configure the root logger from ``LoggingConfig``.

    Safe to call more than once (CLI runs, API startup, tests).
    """
    cfg = config or LoggingConfig()
    root = logging.getLogger()
    root.setLevel(_resolve_level(cfg.level))

    for handler in [h for h in root.handlers if getattr(h, _HANDLER_TAG, False)]:
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(cfg.format)
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if cfg.file:
        path = Path(cfg.file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=cfg.max_size,
                backupCount=cfg.backup_count,
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_TAG, True)
        root.addHandler(handler)

    # keep SQL echo out of application logs
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    return root
