"""Structured logging for spa-edge.

Every entry is a structlog event with key/value fields. Request-scoped
fields (``request_id`` from the middleware, ``client_ip`` from the router)
live in ``structlog.contextvars`` and are merged into each entry, including
entries written while a proxied body is still streaming.

uvicorn's and httpx's stdlib loggers are rendered by the same formatter, so
the process writes one format to stdout.

Usage::

    from spa_edge.observability.logging import configure_logging, get_logger

    configure_logging()  # once, from the CLI
    logger = get_logger(__name__)
    logger.info("proxy_request", method="GET", path="/query")
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, TextIO

import structlog

LOG_FORMATS = ("json", "console")

# Third-party loggers and the level they are capped at.
_LIBRARY_LEVELS = {
    "uvicorn.error": logging.INFO,
    # request_completed replaces uvicorn's access line.
    "uvicorn.access": logging.WARNING,
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
}

_configured = False


def _drop_color_message(_, __, event_dict: dict) -> dict:
    # uvicorn duplicates every message as an ANSI-colored extra.
    event_dict.pop("color_message", None)
    return event_dict


def bind_request_fields(**fields: Any) -> None:
    """Attach fields to every entry logged for the current request."""
    structlog.contextvars.bind_contextvars(**fields)


def current_request_id() -> str | None:
    return structlog.contextvars.get_contextvars().get("request_id")


def configure_logging(
    *,
    level: str | None = None,
    json_output: bool | None = None,
    stream: TextIO | None = None,
) -> None:
    """Route structlog and stdlib logging through one renderer.

    Args:
        level: Level name. Defaults to ``LOG_LEVEL`` or INFO.
        json_output: JSON lines when True, console rendering when False.
            Defaults to ``LOG_FORMAT`` (``json`` or ``console``).
        stream: Destination, stdout by default.

    Only the first call has any effect.
    """
    global _configured
    if _configured:
        return
    _configured = True

    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    if json_output is None:
        log_format = os.environ.get("LOG_FORMAT", "json").strip().lower()
        json_output = log_format != "console"

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _drop_color_message,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared_processors,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for name, cap in _LIBRARY_LEVELS.items():
        library_logger = logging.getLogger(name)
        # uvicorn installs its own handlers; propagate to the root one instead.
        library_logger.handlers.clear()
        library_logger.propagate = True
        library_logger.setLevel(max(cap, root.level))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to the given name."""
    return structlog.get_logger(name)
