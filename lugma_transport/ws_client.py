"""WebSocket client wrapper for Lugma streams."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from websockets.asyncio.client import ClientConnection
from websockets.exceptions import ConnectionClosed

from .errors import LugmaError, SendError
from .ws import DEFAULT_CONNECT_TIMEOUT, DEFAULT_PING_INTERVAL, connect_websocket

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

_LOGGER = logging.getLogger(__name__)


class WsMessageType(Enum):
    """Normalized WebSocket message types."""

    TEXT = "text"
    BINARY = "binary"
    CLOSED = "closed"
    ERROR = "error"


@dataclass(frozen=True)
class WsMessage:
    """Normalized WebSocket message payload."""

    type: WsMessageType
    data: str | bytes | None = None


class WsClient:
    """Wrapper around a websockets client connection."""

    def __init__(self, ws: ClientConnection | None = None) -> None:
        self._ws = ws
        # No more traffic: set on peer close, local close or receive failure.
        self._closed = False
        # Socket close() already awaited.
        self._released = False

    async def connect(
        self,
        url: str,
        *,
        ping_interval: int | None = DEFAULT_PING_INTERVAL,
        timeout: float = DEFAULT_CONNECT_TIMEOUT,
    ) -> None:
        """Connect to the websocket endpoint at ``url``."""
        self._ws = await connect_websocket(
            url,
            ping_interval=ping_interval,
            timeout=timeout,
        )
        self._closed = False
        self._released = False

    @property
    def closed(self) -> bool:
        """True once the connection was closed by either side."""
        return self._ws is None or self._closed

    async def close(self, *, timeout: float = 2.0) -> None:
        """Close the websocket connection."""
        self._closed = True
        await self._release(timeout)

    async def _release(self, timeout: float = 2.0) -> None:
        if self._ws is None or self._released:
            return
        self._released = True
        try:
            await asyncio.wait_for(self._ws.close(), timeout=timeout)
        except TimeoutError:
            _LOGGER.warning("WebSocket close timed out")

    async def send_text(self, text: str) -> None:
        """Send a text frame.

        Raises:
            SendError: If not connected or the connection is closed
        """
        await self._send(text)

    async def send_bytes(self, data: bytes) -> None:
        """Send a binary frame.

        Raises:
            SendError: If not connected or the connection is closed
        """
        await self._send(data)

    async def _send(self, frame: str | bytes) -> None:
        if self._ws is None:
            raise SendError("WebSocket is not connected")
        if self._closed:
            raise SendError("WebSocket is closed")
        try:
            await self._ws.send(frame)
        except ConnectionClosed as err:
            self._closed = True
            raise SendError("WebSocket closed while sending") from err

    def __aiter__(self) -> AsyncIterator[WsMessage]:
        if self._ws is None:
            raise LugmaError("WebSocket is not connected")
        return self._iter_messages()

    async def _iter_messages(self) -> AsyncIterator[WsMessage]:
        if self._ws is None:
            raise LugmaError("WebSocket is not connected")

        try:
            async for msg in self._ws:
                yield self._normalize_message(msg)
        except ConnectionClosed:
            self._closed = True
            yield WsMessage(type=WsMessageType.CLOSED)
        except Exception:
            _LOGGER.exception("WebSocket receive failed")
            self._closed = True
            await self._release()
            yield WsMessage(type=WsMessageType.ERROR)
        else:
            # Normal iteration completion means the peer closed gracefully.
            self._closed = True
            yield WsMessage(type=WsMessageType.CLOSED)

    @staticmethod
    def _normalize_message(msg: str | bytes) -> WsMessage:
        """Normalize websockets frames into WsMessage."""
        if isinstance(msg, bytes):
            return WsMessage(WsMessageType.BINARY, msg)
        return WsMessage(WsMessageType.TEXT, msg)

    @staticmethod
    def decode_json(message: WsMessage) -> Any:
        """Decode a TEXT or BINARY message payload as JSON."""
        if message.type not in (WsMessageType.TEXT, WsMessageType.BINARY):
            raise LugmaError("Only data messages can be decoded")
        if not isinstance(message.data, (str, bytes)):
            raise LugmaError("Message data is not text or bytes")
        return json.loads(message.data)
