"""Tests for WsClient WebSocket wrapper and connect_websocket()."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, patch

import pytest
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from lugma_transport.errors import ConnectError, HandshakeError, LugmaError, SendError
from lugma_transport.ws import connect_websocket
from lugma_transport.ws_client import WsClient, WsMessage, WsMessageType

from .conftest import FakeConnection


class TestWsMessage:
    """Tests for WsMessage dataclass."""

    def test_create_text_message(self):
        """Test creating a text message."""
        msg = WsMessage(type=WsMessageType.TEXT, data="hello")
        assert msg.type == WsMessageType.TEXT
        assert msg.data == "hello"

    def test_create_closed_message(self):
        """Test creating a closed message."""
        msg = WsMessage(type=WsMessageType.CLOSED)
        assert msg.data is None

    def test_message_is_frozen(self):
        """Test that messages are immutable."""
        msg = WsMessage(type=WsMessageType.TEXT, data="test")
        with pytest.raises(AttributeError):
            msg.data = "modified"  # type: ignore[misc]


class TestConnectWebsocket:
    """Tests for connect_websocket()."""

    async def test_connect_passes_options(self):
        """Test connection options are forwarded to websockets."""
        mock_ws = AsyncMock()
        with patch(
            "lugma_transport.ws.websockets.connect", AsyncMock(return_value=mock_ws)
        ) as mock_connect:
            result = await connect_websocket("ws://10.0.0.1:8080/events", ping_interval=30)

        assert result is mock_ws
        mock_connect.assert_called_once_with(
            "ws://10.0.0.1:8080/events",
            ping_interval=30,
            open_timeout=None,
            close_timeout=5,
            max_size=None,
        )

    @pytest.mark.parametrize(
        ("error", "expected", "match"),
        [
            (TimeoutError(), ConnectError, "timed out"),
            (OSError("Connection refused"), ConnectError, "connection failed"),
            (InvalidHandshake("rejected"), HandshakeError, "handshake failed"),
            (InvalidURI("nope", "bad scheme"), HandshakeError, "handshake failed"),
        ],
    )
    async def test_connect_errors(self, error, expected, match):
        """Test library errors map onto the error hierarchy."""
        with patch(
            "lugma_transport.ws.websockets.connect", AsyncMock(side_effect=error)
        ):
            with pytest.raises(expected, match=match):
                await connect_websocket("ws://10.0.0.1:8080/events")

    def test_handshake_error_is_connect_error(self):
        """Test callers catching ConnectError also see handshake failures."""
        assert issubclass(HandshakeError, ConnectError)


class TestWsClientConnect:
    """Tests for WsClient.connect()."""

    async def test_connect_success(self):
        """Test successful WebSocket connection."""
        fake = FakeConnection()

        with patch(
            "lugma_transport.ws_client.connect_websocket", return_value=fake
        ) as mock_connect:
            client = WsClient()
            await client.connect("ws://192.168.1.100/ws")

            mock_connect.assert_called_once_with(
                "ws://192.168.1.100/ws",
                ping_interval=20,
                timeout=15.0,
            )
            assert client._ws is fake
            assert not client.closed

    async def test_connect_propagates_errors(self):
        """Test that connection errors are propagated."""
        with patch(
            "lugma_transport.ws_client.connect_websocket",
            side_effect=ConnectError("Connection failed"),
        ):
            client = WsClient()
            with pytest.raises(ConnectError, match="Connection failed"):
                await client.connect("ws://192.168.1.100/ws")
            assert client.closed


class TestWsClientClose:
    """Tests for WsClient.close()."""

    async def test_close_connected(self):
        """Test closing a connected client."""
        fake = FakeConnection()
        client = WsClient(fake)

        await client.close()
        await client.close()

        fake.close.assert_awaited_once()
        assert client.closed

    async def test_close_not_connected(self):
        """Test closing when not connected (no error)."""
        client = WsClient()
        await client.close()


class TestWsClientSend:
    """Tests for WsClient.send_text() and send_bytes()."""

    async def test_send_text(self):
        """Test sending a text frame."""
        fake = FakeConnection()
        await WsClient(fake).send_text('{"type":"ping","content":1}')
        fake.send.assert_awaited_once_with('{"type":"ping","content":1}')

    async def test_send_bytes(self):
        """Test sending binary data."""
        fake = FakeConnection()
        await WsClient(fake).send_bytes(b"\x00\x01\x02\x03")
        fake.send.assert_awaited_once_with(b"\x00\x01\x02\x03")

    async def test_send_not_connected(self):
        """Test sending raises when not connected."""
        with pytest.raises(SendError, match="not connected"):
            await WsClient().send_text("x")

    async def test_send_after_close(self):
        """Test sending raises once closed."""
        fake = FakeConnection()
        client = WsClient(fake)
        await client.close()

        with pytest.raises(SendError, match="closed"):
            await client.send_bytes(b"x")
        fake.send.assert_not_awaited()

    async def test_send_rejected(self):
        """Test a write on a closed connection raises SendError."""
        fake = FakeConnection()
        fake.send.side_effect = ConnectionClosed(None, None)
        client = WsClient(fake)

        with pytest.raises(SendError, match="closed while sending"):
            await client.send_text("x")
        assert client.closed


class TestWsClientIteration:
    """Tests for WsClient async iteration."""

    async def test_iter_not_connected(self):
        """Test iteration raises when not connected."""
        with pytest.raises(LugmaError, match="not connected"):
            WsClient().__aiter__()

    async def test_iter_text_and_binary(self):
        """Test text and binary frames are both delivered, then CLOSED."""
        client = WsClient(FakeConnection(["message1", b"\x00\x01"]))

        messages = [msg async for msg in client]

        assert messages == [
            WsMessage(WsMessageType.TEXT, "message1"),
            WsMessage(WsMessageType.BINARY, b"\x00\x01"),
            WsMessage(WsMessageType.CLOSED),
        ]
        assert client.closed

    async def test_iter_connection_closed(self):
        """Test iteration handles ConnectionClosed."""
        client = WsClient(
            FakeConnection(["hello"], raise_on_iter=ConnectionClosed(None, None))
        )

        messages = [msg async for msg in client]

        assert [m.type for m in messages] == [WsMessageType.TEXT, WsMessageType.CLOSED]

    async def test_iter_unexpected_error(self):
        """Test iteration handles unexpected errors."""
        fake = FakeConnection([], raise_on_iter=RuntimeError("Unexpected"))
        client = WsClient(fake)

        messages = [msg async for msg in client]

        assert len(messages) == 1
        assert messages[0].type == WsMessageType.ERROR
        assert client.closed
        fake.close.assert_awaited_once()

    async def test_close_after_peer_close_releases_socket(self):
        """Test close() still closes the socket after the peer ended the stream."""
        fake = FakeConnection(raise_on_iter=ConnectionClosed(None, None))
        client = WsClient(fake)
        async for _ in client:
            pass

        await client.close()
        await client.close()

        fake.close.assert_awaited_once()


class TestWsClientDecodeJson:
    """Tests for WsClient.decode_json()."""

    def test_decode_text(self):
        """Test a TEXT message decodes as JSON."""
        message = WsMessage(WsMessageType.TEXT, '{"type":"chat","content":"hi"}')
        assert WsClient.decode_json(message) == {"type": "chat", "content": "hi"}

    def test_decode_binary(self):
        """Test a BINARY message decodes as JSON."""
        message = WsMessage(WsMessageType.BINARY, b"[1, 2]")
        assert WsClient.decode_json(message) == [1, 2]

    def test_decode_closed_raises(self):
        """Test control messages cannot be decoded."""
        with pytest.raises(LugmaError, match="Only data messages"):
            WsClient.decode_json(WsMessage(WsMessageType.CLOSED))

    def test_decode_non_text_data_raises(self):
        """Test data that is neither str nor bytes is rejected."""
        with pytest.raises(LugmaError, match="not text or bytes"):
            WsClient.decode_json(WsMessage(WsMessageType.TEXT, None))

    def test_decode_invalid_json_raises(self):
        """Test invalid JSON propagates the parser error."""
        with pytest.raises(json.JSONDecodeError):
            WsClient.decode_json(WsMessage(WsMessageType.TEXT, "not json"))
