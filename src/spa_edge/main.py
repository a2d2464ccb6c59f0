"""Edge server FastAPI application factory.

The create_app() factory is the single entry point for building the ASGI
application. It validates the settings, wires the request-ID and access-log
middleware, and registers one catch-all route backed by the Router.

Usage:
    # Production
    settings = EdgeSettings.from_env()
    app = create_app(settings)

    # Testing (inject an upstream transport)
    app = create_app(settings, transport=httpx.MockTransport(handler))
"""

from __future__ import annotations

from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from .observability.logging import get_logger
from .observability.middleware import RequestIdMiddleware, RequestLoggingMiddleware
from .routing.gateway import ForwardGateway
from .routing.router import Router
from .settings import DEFAULT_PROXY_PATHS, EdgeSettings

logger = get_logger(__name__)

CATCH_ALL_PATH = "/{full_path:path}"
# Starlette routes default to GET/HEAD only.
CATCH_ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def log_configuration(settings: EdgeSettings) -> None:
    logger.info(
        "edge_configured",
        dist_dir=str(settings.dist_dir),
        allow_remote_ips=list(settings.allow_remote_ips) or "open",
        proxy_url=settings.proxy_url or None,
        proxy_paths=list(settings.proxy_paths),
        default_proxy_paths=settings.proxy_paths == DEFAULT_PROXY_PATHS,
    )


def create_app(
    settings: EdgeSettings,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the edge application.

    Args:
        settings: Edge configuration. Must pass ``validate()``.
        transport: Optional httpx transport for the upstream client
            (tests inject ``httpx.MockTransport``).

    Raises:
        SettingsError: If the settings are invalid.
    """
    settings.require_valid()

    gateway = None
    if settings.proxy_enabled:
        gateway = ForwardGateway(
            settings.proxy_url,
            timeout=settings.proxy_timeout,
            transport=transport,
        )
    router = Router.from_settings(settings, gateway=gateway)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        log_configuration(settings)
        try:
            yield
        finally:
            if gateway is not None:
                await gateway.close()

    # No docs/OpenAPI routes: every path belongs to the SPA or the upstream.
    app = FastAPI(
        title="SPA Edge",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.edge_router = router

    # Middleware order: last added = outermost.
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    app.add_route(
        CATCH_ALL_PATH,
        router.handle,
        methods=CATCH_ALL_METHODS,
        include_in_schema=False,
    )
    return app
