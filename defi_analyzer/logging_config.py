"""
Logging setup shared by the API server and the CLI.

Modules log through ``logging.getLogger(__name__)``; those records and
structlog's own loggers render through one structlog formatter, so the
request id and tool name bound in ``structlog.contextvars`` appear on every
line a tool call produces.
"""

import logging
import sys
from typing import Optional

import structlog

from .config import settings

NOISY_LOGGERS = ("uvicorn.access", "httpcore", "httpx")


def resolve_log_format(log_format: str, level: int) -> str:
    """Turn ``auto`` into ``console`` (terminal or DEBUG) or ``json``."""

    if log_format != "auto":
        return log_format
    if level <= logging.DEBUG or sys.stderr.isatty():
        return "console"
    return "json"


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Route stdlib and structlog output to stderr.

    Args:
        log_level: Override settings.log_level
        log_format: ``auto``, ``json`` or ``console``; defaults to settings.log_format
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    fmt = resolve_log_format(log_format or settings.log_format, level)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    renderer: structlog.types.Processor
    if fmt == "console":
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    else:
        shared_processors.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    # stdout is reserved for CLI payloads
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
