"""WebSocket connection helper for Lugma streams."""

from __future__ import annotations

import asyncio
from typing import Final

import websockets
from websockets.asyncio.client import ClientConnection
from websockets.exceptions import (
    InvalidHandshake,
    InvalidURI,
    WebSocketException,
)

from .errors import ConnectError, HandshakeError

DEFAULT_CONNECT_TIMEOUT: Final = 15.0
DEFAULT_PING_INTERVAL: Final = 20
CLOSE_TIMEOUT: Final = 5


async def connect_websocket(
    url: str,
    *,
    ping_interval: int | None = DEFAULT_PING_INTERVAL,
    timeout: float = DEFAULT_CONNECT_TIMEOUT,
) -> ClientConnection:
    """Open a WebSocket connection to ``url``.

    The timeout bounds the TCP connect and the opening handshake together.

    Args:
        url: Full ws:// or wss:// URL
        ping_interval: Interval for ping frames
        timeout: Connection timeout, covering the opening handshake

    Raises:
        HandshakeError: If the URI is invalid or the upgrade is rejected
        ConnectError: If the connection times out or the socket fails
    """
    try:
        return await asyncio.wait_for(
            websockets.connect(
                url,
                ping_interval=ping_interval,
                open_timeout=None,
                close_timeout=CLOSE_TIMEOUT,
                max_size=None,
            ),
            timeout=timeout,
        )
    except TimeoutError as err:
        raise ConnectError("WebSocket connection timed out") from err
    except (InvalidHandshake, InvalidURI) as err:
        raise HandshakeError("WebSocket handshake failed") from err
    except (OSError, WebSocketException) as err:
        raise ConnectError("WebSocket connection failed") from err
