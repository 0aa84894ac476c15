"""Transport serving unary calls over HTTP and streams over WebSocket."""

from __future__ import annotations

from typing import Any, TypeVar

import aiohttp

from .http import DEFAULT_REQUEST_TIMEOUT, MAX_RESPONSE_SIZE, HttpTransport
from .stream import WebSocketStream, WebSocketTransport
from .transport import CallResult, Extra, to_websocket_url
from .ws import DEFAULT_CONNECT_TIMEOUT, DEFAULT_PING_INTERVAL

OutT = TypeVar("OutT")
ErrT = TypeVar("ErrT")


class HttpWebSocketTransport:
    """Both transport operations against one base URL.

    ``request`` goes through an ``HttpTransport`` on ``base_url``; streams
    are opened by a ``WebSocketTransport`` on the ws(s) form of the same URL.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        max_response_size: int = MAX_RESPONSE_SIZE,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        ping_interval: int | None = DEFAULT_PING_INTERVAL,
    ) -> None:
        self.http = HttpTransport(
            session,
            base_url,
            timeout=timeout,
            max_response_size=max_response_size,
        )
        self.ws = WebSocketTransport(
            to_websocket_url(base_url),
            connect_timeout=connect_timeout,
            ping_interval=ping_interval,
        )

    async def request(
        self,
        endpoint: str,
        body: Any,
        extra: Extra | None = None,
        *,
        out_type: type[OutT],
        err_type: type[ErrT],
    ) -> CallResult[OutT, ErrT]:
        return await self.http.request(
            endpoint, body, extra, out_type=out_type, err_type=err_type
        )

    async def open_stream(
        self, endpoint: str, extra: Extra | None = None
    ) -> WebSocketStream:
        return await self.ws.open_stream(endpoint, extra)
