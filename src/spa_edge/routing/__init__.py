"""Request routing: allow-list, proxy path matching, forwarding, static files."""

from .access import AccessGuard, is_allowed
from .client_ip import format_peer, identify_client
from .gateway import ForwardGateway
from .paths import PathMatcher, matches
from .router import RouteOutcome, Router, RoutingDecision
from .static import NO_CACHE, ServeInstruction, StaticResolver, resolve_static

__all__ = [
    'AccessGuard',
    'ForwardGateway',
    'NO_CACHE',
    'PathMatcher',
    'RouteOutcome',
    'Router',
    'RoutingDecision',
    'ServeInstruction',
    'StaticResolver',
    'format_peer',
    'identify_client',
    'is_allowed',
    'matches',
    'resolve_static',
]
