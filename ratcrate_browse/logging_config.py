"""Logging setup for the browser.

The terminal belongs to the TUI while it runs, so structured log events are
routed through the standard library into a rotating file. Without a log file
only warnings reach stderr, and only before the UI takes over the screen.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog

LOG_MAX_BYTES = 1_000_000
LOG_BACKUP_COUNT = 3


def configure_logging(log_file: Path | None = None, level: str = "INFO") -> None:
    handler: logging.Handler
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_file,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        log_level = logging.getLevelName(level.upper())
    else:
        handler = logging.StreamHandler()
        log_level = logging.WARNING

    handler.setFormatter(logging.Formatter("%(message)s"))
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(
                key_order=["timestamp", "level", "event"]
            ),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
    )


def silence_console_logging() -> None:
    """Drop console handlers once the TUI owns the terminal."""
    root = logging.getLogger()
    root.handlers = [
        handler
        for handler in root.handlers
        if type(handler) is not logging.StreamHandler
    ]
    if not root.handlers:
        root.addHandler(logging.NullHandler())
