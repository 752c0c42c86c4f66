"""Structured logging using structlog.

stdout carries model output only. Until :func:`setup_logging` runs, events
are routed through the stdlib root logger, which emits WARNING and above
to stderr, so library callers never see log lines in their output.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def _configure_structlog(*, json_output: bool = False, cache: bool = False) -> None:
    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=cache,
    )


def configure_default_logging() -> None:
    """Install the import-time configuration: stdlib-backed, WARNING, stderr."""
    _configure_structlog()


def setup_logging(*, debug: bool = False, json_output: bool = False) -> None:
    """Configure structlog for the application.

    Logs always go to stderr; stdout carries model output only.

    Args:
        debug: Enable DEBUG level logging.
        json_output: Use JSON output format instead of console.
    """
    level = logging.DEBUG if debug else logging.WARNING

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
        force=True,
    )
    _configure_structlog(json_output=json_output, cache=True)


def get_logger(name: str = "relaycode", **kwargs: Any) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name, **kwargs)


configure_default_logging()
