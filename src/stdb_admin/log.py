"""
Structured logging setup for stdb_admin.

Modules obtain loggers with ``get_logger(__name__)`` and emit event-style records,
e.g. ``logger.warning("table_discovery_failed", table=name, error=str(exc))``.
``configure_logging`` is called once by entry points (the CLI); library code
never configures logging itself.
"""

from __future__ import annotations

import logging
import sys
from typing import Literal, cast

import structlog
from structlog.typing import FilteringBoundLogger, Processor

__all__ = [
    "configure_logging",
    "get_logger",
]

LogFormat = Literal["console", "json"]


def configure_logging(log_level: str = "WARNING", log_format: LogFormat = "console") -> None:
    """Configure structlog (and stdlib logging for httpx) to write to stderr.

    Args:
        log_level: DEBUG, INFO, WARNING or ERROR.
        log_format: "console" for humans, "json" for log shippers.
    """
    level = getattr(logging, log_level.upper(), logging.WARNING)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
    ]
    if log_format == "json":
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )


def get_logger(name: str | None = None) -> FilteringBoundLogger:
    """Get a structured logger bound to ``name``."""
    return cast(FilteringBoundLogger, structlog.get_logger(name))
