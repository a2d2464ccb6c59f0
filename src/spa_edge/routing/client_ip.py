"""Best-effort client IP extraction.

The first ``X-Forwarded-For`` entry wins over the transport peer address.
This trusts whatever the header says: there is no trusted-proxy boundary
and no verification, so it is a heuristic for coarse filtering and audit
logs, not an identity.
"""

from __future__ import annotations

from typing import Mapping

FORWARDED_FOR_HEADER = "x-forwarded-for"

Peer = tuple[str, int] | None


def identify_client(headers: Mapping[str, str], client: Peer) -> str:
    """Return the client IP for a request, or ``""`` when unknown.

    ``client`` is the ASGI ``(host, port)`` peer, already split from its port.
    An empty result never matches an allow-list entry.
    """
    forwarded = headers.get(FORWARDED_FOR_HEADER, "")
    if forwarded:
        return forwarded.split(",", 1)[0].strip()
    if client is None:
        return ""
    return client[0] or ""


def format_peer(client: Peer) -> str:
    """Render the raw ``host:port`` peer address for logs."""
    if client is None:
        return ""
    host, port = client[0], client[1]
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"
