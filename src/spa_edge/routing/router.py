"""Per-request routing for the edge server.

Every request walks the same fixed sequence and stops at the first
outcome:

1. Access check: the client IP must pass the allow-list, else 403.
2. Proxy check: a path matching a proxy pattern goes upstream, or gets a
   404 when no upstream is configured (the filesystem is not consulted).
3. Static resolution: the file under the root, or the SPA entry document.

The Router holds only read-only collaborators, so one instance serves all
concurrent requests.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response

from ..observability.logging import bind_request_fields, get_logger
from ..settings import EdgeSettings
from .access import AccessGuard
from .client_ip import FORWARDED_FOR_HEADER, format_peer, identify_client
from .gateway import ForwardGateway
from .paths import PathMatcher
from .static import NOT_FOUND_BODY, ServeInstruction, StaticResolver

logger = get_logger(__name__)

FORBIDDEN_BODY = "Forbidden"


class RoutingDecision(str, Enum):
    """Terminal outcome of routing one request."""

    FORBIDDEN = "forbidden"
    PROXY = "proxy"
    NOT_FOUND = "not_found"
    STATIC_FILE = "static_file"
    STATIC_FALLBACK = "static_fallback"


@dataclass(frozen=True, slots=True)
class RouteOutcome:
    decision: RoutingDecision
    client_ip: str
    instruction: ServeInstruction | None = None


class Router:
    """Compose access, proxy, and static handling in that order."""

    def __init__(
        self,
        *,
        guard: AccessGuard,
        matcher: PathMatcher,
        resolver: StaticResolver,
        gateway: ForwardGateway | None = None,
    ) -> None:
        self._guard = guard
        self._matcher = matcher
        self._resolver = resolver
        self._gateway = gateway

    @classmethod
    def from_settings(
        cls,
        settings: EdgeSettings,
        *,
        gateway: ForwardGateway | None = None,
    ) -> Router:
        return cls(
            guard=AccessGuard(settings.allow_remote_ips),
            matcher=PathMatcher(settings.proxy_paths),
            resolver=StaticResolver(settings.dist_dir),
            gateway=gateway,
        )

    @property
    def gateway(self) -> ForwardGateway | None:
        return self._gateway

    def route(self, request: Request) -> RouteOutcome:
        client_ip = identify_client(request.headers, request.client)
        if not self._guard.allows(client_ip):
            return RouteOutcome(RoutingDecision.FORBIDDEN, client_ip)

        path = request.url.path
        if self._matcher.matches(path):
            if self._gateway is None:
                return RouteOutcome(RoutingDecision.NOT_FOUND, client_ip)
            return RouteOutcome(RoutingDecision.PROXY, client_ip)

        instruction = self._resolver.resolve(path)
        decision = (
            RoutingDecision.STATIC_FALLBACK
            if instruction.fallback
            else RoutingDecision.STATIC_FILE
        )
        return RouteOutcome(decision, client_ip, instruction)

    def decide(self, request: Request) -> RoutingDecision:
        return self.route(request).decision

    async def handle(self, request: Request) -> Response:
        outcome = self.route(request)
        # Stays bound for the rest of the request task, body streaming included.
        bind_request_fields(client_ip=outcome.client_ip)

        if outcome.decision is RoutingDecision.FORBIDDEN:
            logger.warning(
                "access_denied",
                client_ip=outcome.client_ip,
                x_forwarded_for=request.headers.get(FORWARDED_FOR_HEADER, ""),
                remote_addr=format_peer(request.client),
            )
            return PlainTextResponse(FORBIDDEN_BODY, status_code=403)

        if outcome.decision is RoutingDecision.PROXY and self._gateway is not None:
            return await self._gateway.forward(request)

        if outcome.instruction is not None:
            return self._resolver.respond(outcome.instruction, request.scope)

        return PlainTextResponse(NOT_FOUND_BODY, status_code=404)
