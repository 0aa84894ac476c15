"""Event streams over a persistent WebSocket channel.

Usage:
    transport = WebSocketTransport("wss://example.com/api")
    stream = await transport.open_stream("chat", {"Authorization": "Bearer t"})
    stream.on("message", ChatMessage, handle_message)
    await stream.send("message", ChatMessage(text="hi"))
    await stream.close()
"""

from __future__ import annotations

import asyncio
import contextlib
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

from pydantic import TypeAdapter

from .errors import ConnectError, MalformedEnvelope, PayloadDecodeError, SendError
from .protocol import decode_envelope, encode_envelope, encode_json, type_adapter
from .transport import Extra, flatten_extra, join_url
from .ws import DEFAULT_CONNECT_TIMEOUT, DEFAULT_PING_INTERVAL
from .ws_client import WsClient, WsMessageType

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class _Handler:
    """Registered event callback and the validator for its payload."""

    adapter: TypeAdapter[Any]
    callback: Callable[[Any], Awaitable[None] | None]


class WebSocketStream:
    """Stream of tagged events over one WebSocket connection.

    Inbound frames are dispatched one at a time, in arrival order. Frames that
    are not envelopes, carry an unregistered type, or whose payload does not
    decode as a handler's type are skipped without ending the stream.
    """

    def __init__(self, client: WsClient) -> None:
        self._client = client
        self._handlers: dict[str, list[_Handler]] = {}
        self._listen_task: asyncio.Task[None] | None = None

    @property
    def closed(self) -> bool:
        """True once the underlying connection is closed."""
        return self._client.closed

    def on(
        self,
        event: str,
        payload_type: type[T],
        callback: Callable[[T], Awaitable[None] | None],
    ) -> None:
        """Register ``callback`` for events tagged exactly ``event``.

        Callbacks for the same event run in registration order. Coroutine
        callbacks are awaited before the next one runs. The first registration
        starts the receive loop, so it must happen inside a running event loop.

        Raises:
            PydanticSchemaGenerationError: If ``payload_type`` cannot be validated
        """
        handler = _Handler(type_adapter(payload_type), callback)
        self._handlers.setdefault(event, []).append(handler)
        if self._listen_task is None and not self._client.closed:
            self._listen_task = asyncio.create_task(self._listen())

    async def send(self, event: str, item: Any) -> None:
        """Send ``item`` tagged ``event`` as a single text frame.

        Raises:
            PayloadEncodeError: If ``item`` cannot be serialized
            SendError: If the connection is closed or rejects the write
        """
        await self._client.send_text(encode_envelope(event, item))

    async def close(self) -> None:
        """Stop dispatching and close the connection."""
        task = self._listen_task
        if task is not None and task is not asyncio.current_task() and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self._client.close()

    async def wait_closed(self) -> None:
        """Wait until the receive loop has finished."""
        if self._listen_task is not None:
            await asyncio.wait({self._listen_task})

    async def _listen(self) -> None:
        """Dispatch inbound frames until the connection ends."""
        message_count = 0
        try:
            async for msg in self._client:
                if msg.type in (WsMessageType.TEXT, WsMessageType.BINARY):
                    message_count += 1
                    await self._dispatch(msg.data)
                    if self._client.closed:
                        break

                elif msg.type == WsMessageType.CLOSED:
                    _LOGGER.info("Stream closed after %d messages", message_count)
                    break

                elif msg.type == WsMessageType.ERROR:
                    _LOGGER.warning("Stream failed after %d messages", message_count)
                    break

        except asyncio.CancelledError:
            _LOGGER.debug("Stream listener cancelled (%d messages)", message_count)
            raise
        except Exception as err:
            _LOGGER.exception("Stream listener failed: %s", err)
        finally:
            await self._client.close()

    async def _dispatch(self, data: str | bytes | None) -> None:
        if data is None:
            return
        try:
            envelope = decode_envelope(data)
        except MalformedEnvelope as err:
            _LOGGER.debug("Skipping malformed frame: %s", err)
            return

        handlers = self._handlers.get(envelope.type)
        if not handlers:
            _LOGGER.debug("No handler for event: %s", envelope.type)
            return

        for handler in list(handlers):
            try:
                item = envelope.decode(handler.adapter)
            except PayloadDecodeError as err:
                _LOGGER.debug("Skipping %s handler: %s", envelope.type, err)
                continue
            try:
                result = handler.callback(item)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                _LOGGER.exception("Callback for event %s failed", envelope.type)


class StreamState(Enum):
    """Progress of the most recent ``open_stream`` call."""

    IDLE = "idle"
    CONNECTING = "connecting"
    HANDSHAKE_SENT = "handshake_sent"
    READY = "ready"
    FAILED = "failed"


class WebSocketTransport:
    """Stream transport opening WebSocket connections under a base URL."""

    def __init__(
        self,
        base_url: str,
        *,
        connect_timeout: float = DEFAULT_CONNECT_TIMEOUT,
        ping_interval: int | None = DEFAULT_PING_INTERVAL,
    ) -> None:
        self._base_url = base_url
        self._connect_timeout = connect_timeout
        self._ping_interval = ping_interval
        self._state = StreamState.IDLE
        self._state_callback: Callable[[StreamState], None] | None = None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def state(self) -> StreamState:
        return self._state

    def on_state_changed(self, callback: Callable[[StreamState], None]) -> None:
        """Register callback for state transitions."""
        self._state_callback = callback

    def _set_state(self, state: StreamState) -> None:
        """Update state and notify callback."""
        if self._state != state:
            _LOGGER.debug("State: %s → %s", self._state.value, state.value)
            self._state = state
            if self._state_callback:
                self._state_callback(state)

    async def open_stream(
        self, endpoint: str, extra: Extra | None = None
    ) -> WebSocketStream:
        """Connect to ``endpoint`` and send ``extra`` as the handshake frame.

        The handshake is the flattened ``extra`` as a raw binary JSON object,
        sent before any enveloped event.

        Raises:
            ConnectError: If the connection or the handshake write fails
        """
        url = join_url(self._base_url, endpoint)
        handshake = encode_json(flatten_extra(extra))

        self._set_state(StreamState.CONNECTING)
        client = WsClient()
        try:
            await client.connect(
                url,
                ping_interval=self._ping_interval,
                timeout=self._connect_timeout,
            )
        except (ConnectError, asyncio.CancelledError):
            self._set_state(StreamState.FAILED)
            raise

        try:
            await client.send_bytes(handshake)
        except SendError as err:
            await client.close()
            self._set_state(StreamState.FAILED)
            raise ConnectError("Stream handshake could not be sent") from err
        except asyncio.CancelledError:
            await client.close()
            self._set_state(StreamState.FAILED)
            raise

        self._set_state(StreamState.HANDSHAKE_SENT)
        _LOGGER.info("Stream opened to %s", url)
        self._set_state(StreamState.READY)
        return WebSocketStream(client)
