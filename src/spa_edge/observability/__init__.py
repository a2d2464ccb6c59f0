"""Observability infrastructure for spa-edge.

Provides structured logging and request-ID correlation middleware.

Quick start::

    from spa_edge.observability import configure_logging, get_logger
    from spa_edge.observability.middleware import (
        RequestIdMiddleware,
        RequestLoggingMiddleware,
    )

    configure_logging()
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)
"""

from .logging import (
    bind_request_fields,
    configure_logging,
    current_request_id,
    get_logger,
)

__all__ = [
    "bind_request_fields",
    "configure_logging",
    "current_request_id",
    "get_logger",
]
