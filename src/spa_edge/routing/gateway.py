"""Reverse proxy to the single configured upstream.

The gateway forwards a request to ``proxy_url``:

1. Joins the upstream base path with the raw request path and merges the
   query strings.
2. Copies request headers, dropping hop-by-hop headers and ``Host``, and
   appends the peer address to ``X-Forwarded-For``.
3. Streams the request body through when the request declares one.
4. Streams the upstream status, headers and raw body back unchanged.

Transport failures before the upstream answers become ``502 Bad Gateway``.
Nothing is retried. A client disconnect cancels the in-flight upstream call.
"""

from __future__ import annotations

import asyncio
from typing import AsyncIterator, Iterable, Mapping
from urllib.parse import urlsplit

import httpx
from starlette.background import BackgroundTask
from starlette.requests import ClientDisconnect, Request
from starlette.responses import PlainTextResponse, Response, StreamingResponse
from starlette.types import Receive, Scope

from ..observability.logging import get_logger
from .client_ip import FORWARDED_FOR_HEADER

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0
BAD_GATEWAY_BODY = "Bad Gateway"

# nginx convention; the client never sees it.
CLIENT_CLOSED_REQUEST = 499

# Headers that should NOT be forwarded (hop-by-hop, RFC 9110 section 7.6.1).
HOP_BY_HOP_HEADERS: frozenset[str] = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "proxy-connection",
    "te",
    "trailer",
    "trailers",
    "transfer-encoding",
    "upgrade",
})

# Defaults httpx adds to every request; removed unless the client sent them.
_CLIENT_DEFAULT_HEADERS: tuple[str, ...] = ("accept", "accept-encoding", "user-agent")

HeaderList = list[tuple[str, str]]


def join_url_path(base: str, path: str) -> str:
    """Join two URL paths with exactly one slash between them."""
    base_slash = base.endswith("/")
    path_slash = path.startswith("/")
    if base_slash and path_slash:
        return base + path[1:]
    if not base_slash and not path_slash:
        return f"{base}/{path}"
    return base + path


def merge_query(base: str, query: str) -> str:
    if base and query:
        return f"{base}&{query}"
    return base or query


def _decode_headers(raw: Iterable[tuple[bytes, bytes]]) -> HeaderList:
    return [(k.decode("latin-1"), v.decode("latin-1")) for k, v in raw]


def _connection_tokens(headers: HeaderList) -> set[str]:
    """Header names listed in ``Connection`` are hop-by-hop too."""
    tokens: set[str] = set()
    for key, value in headers:
        if key.lower() == "connection":
            tokens.update(t.strip().lower() for t in value.split(",") if t.strip())
    return tokens


def strip_hop_by_hop(headers: HeaderList, *, extra: Iterable[str] = ()) -> HeaderList:
    drop = HOP_BY_HOP_HEADERS | _connection_tokens(headers) | set(extra)
    return [(k, v) for k, v in headers if k.lower() not in drop]


def build_forward_headers(
    raw_headers: Iterable[tuple[bytes, bytes]],
    peer_host: str,
) -> HeaderList:
    """Build upstream request headers from the incoming raw ASGI headers."""
    headers = _decode_headers(raw_headers)
    forwarded = strip_hop_by_hop(headers, extra=("host", FORWARDED_FOR_HEADER))

    chain = [v for k, v in headers if k.lower() == FORWARDED_FOR_HEADER]
    if peer_host:
        chain.append(peer_host)
    if chain:
        forwarded.append(("X-Forwarded-For", ", ".join(chain)))
    return forwarded


def has_body(headers: Mapping[str, str]) -> bool:
    if "transfer-encoding" in headers:
        return True
    try:
        return int(headers.get("content-length", "0")) > 0
    except ValueError:
        return False


async def _wait_for_disconnect(receive: Receive, body_done: asyncio.Event) -> None:
    # Only safe once the body is drained; earlier receives are body chunks.
    await body_done.wait()
    while True:
        message = await receive()
        if message["type"] == "http.disconnect":
            return


class ForwardGateway:
    """Forward matched requests to one immutable upstream target."""

    def __init__(
        self,
        target_url: str,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._target = urlsplit(target_url)
        self._target_url = target_url
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def target_url(self) -> str:
        return self._target_url

    def _get_client(self) -> httpx.AsyncClient:
        """Return the shared httpx client, creating it lazily."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=False,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the shared HTTP client and release connections."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def build_url(self, scope: Scope) -> str:
        """Upstream URL for a request, keeping its raw (still escaped) path."""
        raw_path = scope.get("raw_path")
        path = raw_path.decode("latin-1").split("?", 1)[0] if raw_path else scope["path"]
        query = merge_query(self._target.query, scope.get("query_string", b"").decode("latin-1"))
        url = f"{self._target.scheme}://{self._target.netloc}{join_url_path(self._target.path, path)}"
        return f"{url}?{query}" if query else url

    async def forward(self, request: Request) -> Response:
        peer_host = request.client.host if request.client else ""
        headers = build_forward_headers(request.headers.raw, peer_host)

        body_done = asyncio.Event()
        content = None
        if has_body(request.headers):
            content = self._stream_body(request, body_done)
        else:
            body_done.set()

        client = self._get_client()
        upstream_request = client.build_request(
            request.method,
            self.build_url(request.scope),
            headers=headers,
            content=content,
        )
        for name in _CLIENT_DEFAULT_HEADERS:
            if name not in request.headers and name in upstream_request.headers:
                del upstream_request.headers[name]

        logger.info("proxy_request", method=request.method, path=request.url.path)

        try:
            upstream = await self._send_until_disconnect(
                client, upstream_request, request.receive, body_done,
            )
        except ClientDisconnect:
            # Client left while its body was still being streamed upstream.
            upstream = None
        except httpx.TransportError as exc:
            logger.error(
                "proxy_error",
                error=str(exc) or type(exc).__name__,
                target=str(upstream_request.url),
            )
            return PlainTextResponse(BAD_GATEWAY_BODY, status_code=502)

        if upstream is None:
            logger.info(
                "proxy_client_disconnected",
                method=request.method,
                path=request.url.path,
            )
            return Response(status_code=CLIENT_CLOSED_REQUEST)

        response = StreamingResponse(
            self._relay(upstream),
            status_code=upstream.status_code,
            background=BackgroundTask(upstream.aclose),
        )
        response.raw_headers = [
            (k.encode("latin-1"), v.encode("latin-1"))
            for k, v in strip_hop_by_hop(_decode_headers(upstream.headers.raw))
        ]
        return response

    async def _send_until_disconnect(
        self,
        client: httpx.AsyncClient,
        upstream_request: httpx.Request,
        receive: Receive,
        body_done: asyncio.Event,
    ) -> httpx.Response | None:
        """Send upstream; return None if the client went away first."""
        send_task = asyncio.ensure_future(client.send(upstream_request, stream=True))
        watch_task = asyncio.ensure_future(_wait_for_disconnect(receive, body_done))
        try:
            done, _ = await asyncio.wait(
                {send_task, watch_task}, return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            watch_task.cancel()
            if not send_task.done():
                send_task.cancel()
                await asyncio.gather(send_task, return_exceptions=True)

        if send_task in done:
            return send_task.result()
        return None

    async def _stream_body(
        self, request: Request, body_done: asyncio.Event,
    ) -> AsyncIterator[bytes]:
        try:
            async for chunk in request.stream():
                if chunk:
                    yield chunk
        finally:
            body_done.set()

    async def _relay(self, upstream: httpx.Response) -> AsyncIterator[bytes]:
        try:
            async for chunk in upstream.aiter_raw():
                yield chunk
        except httpx.TransportError as exc:
            # Headers are already on the wire; all we can do is stop.
            logger.warning(
                "proxy_stream_error",
                error=str(exc) or type(exc).__name__,
                status=upstream.status_code,
            )
        finally:
            await upstream.aclose()
