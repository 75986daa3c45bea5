"""Structured logging setup.

All modules log events as ``logger.info("event_name", key=value)``.
"""

import logging
import os
import sys

import structlog

_configured = False


def configure_logging(level: str = None, fmt: str = None) -> None:
    """
    Configure structlog once.

    Level precedence: explicit argument, then LOG_LEVEL, then INFO.
    Format is ``json`` (default) or ``console`` via LOG_FORMAT.
    """
    global _configured
    if _configured:
        return

    level_name = (level or os.getenv("LOG_LEVEL") or "INFO").upper()
    log_level = getattr(logging, level_name, logging.INFO)
    fmt = (fmt or os.getenv("LOG_FORMAT") or "json").lower()

    renderer = (
        structlog.dev.ConsoleRenderer()
        if fmt == "console"
        else structlog.processors.JSONRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_logger(name: str):
    """Get a module logger; ensures structlog is configured."""
    configure_logging()
    return structlog.get_logger().bind(logger=name)
