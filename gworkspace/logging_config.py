"""
Structured logging for gworkspace, routed through stdlib logging.

Every logger returned by get_logger() hands its event dict to the stdlib
logger of the same name, so output is decided solely by stdlib handlers.
Importing the package never touches structlog's global configuration and
never prints: the "gworkspace" logger carries a NullHandler until an
application installs handlers. The CLI calls setup_logging(), which sends
everything to stderr so command output on stdout stays parseable JSON.

Console output by default, JSON lines when GWORKSPACE_LOG_FORMAT=json.

Usage:
    from gworkspace.logging_config import get_logger, setup_logging

    setup_logging()
    logger = get_logger(__name__)
"""

from __future__ import annotations

import logging
import os
import sys

import structlog

PACKAGE_LOGGER = "gworkspace"

# Event dict enrichment shared by our loggers and foreign (stdlib) records
SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.UnicodeDecoder(),
]

logging.getLogger(PACKAGE_LOGGER).addHandler(logging.NullHandler())


def setup_logging(level: str | None = None, json_output: bool | None = None) -> logging.Handler:
    """
    Install a single stderr handler on the root logger.

    Args:
        level: Log level name (default: GWORKSPACE_LOG_LEVEL or WARNING)
        json_output: Render JSON lines (default: GWORKSPACE_LOG_FORMAT == "json")

    Returns:
        The installed handler
    """
    if level is None:
        level = os.environ.get("GWORKSPACE_LOG_LEVEL", "WARNING")

    if json_output is None:
        json_output = os.environ.get("GWORKSPACE_LOG_FORMAT", "").lower() == "json"

    numeric_level = getattr(logging, level.upper(), logging.WARNING)

    if json_output:
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=SHARED_PROCESSORS,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)
    return handler


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to the stdlib logger ``name``."""
    return structlog.wrap_logger(
        logging.getLogger(name or PACKAGE_LOGGER),
        processors=[
            structlog.stdlib.filter_by_level,
            *SHARED_PROCESSORS,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
    )


__all__ = ["PACKAGE_LOGGER", "get_logger", "setup_logging"]
