"""
structlog setup shared by the CLI and applications embedding reclog.

Core modules only call ``structlog.get_logger``; nothing is rendered until
``configure_logging`` installs the stdlib bridge.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager
from typing import IO, Any, Iterator, Optional, cast

import structlog
from structlog.dev import ConsoleRenderer
from structlog.stdlib import BoundLogger
from structlog.types import Processor

try:
    from reclog import __version__ as RECLOG_VERSION
except ImportError:
    RECLOG_VERSION = os.getenv("APP_VERSION", "unknown")


def _coerce_level(level: str | int) -> int:
    """Translate a string/int level into the numeric logging level."""
    if isinstance(level, str):
        resolved = logging.getLevelName(level.upper())
        if isinstance(resolved, str):
            raise ValueError(f"Invalid log level: {level}")
        return int(resolved)
    return int(level)


def configure_logging(
    level: str | int = "INFO",
    json_output: bool = True,
    stream: Optional[IO[str]] = None,
) -> None:
    """
    Configure structlog with JSON (or console) rendering and stdlib bridge.

    Args:
        level: Log level name or number
        json_output: JSON lines instead of the colored console renderer
        stream: Where log lines go; stderr by default so record output on
                stdout stays machine-readable
    """
    numeric_level = _coerce_level(level)
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else ConsoleRenderer(colors=False)
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )
    logging.basicConfig(level=numeric_level, handlers=[handler], force=True)


def get_logger(name: str) -> BoundLogger:
    """Return a structlog logger with service name and version bound."""
    return cast(
        BoundLogger,
        structlog.get_logger(name).bind(
            service_name=os.getenv("SERVICE_NAME", "reclog"),
            version=os.getenv("APP_VERSION", RECLOG_VERSION),
        ),
    )


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Bind key/values (e.g. ``path=...``) to every log line inside the block."""
    if not kwargs:
        yield
        return

    tokens = structlog.contextvars.bind_contextvars(**kwargs)
    try:
        yield
    finally:
        structlog.contextvars.reset_contextvars(**tokens)
