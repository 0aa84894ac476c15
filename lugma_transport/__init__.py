"""Typed request/response and event streams over HTTP and WebSocket."""

__version__ = "0.1.0"

from .client import HttpWebSocketTransport
from .errors import (
    ConnectError,
    HandshakeError,
    LugmaError,
    MalformedEnvelope,
    PayloadDecodeError,
    PayloadEncodeError,
    RequestTimeout,
    ResponseTooLarge,
    SendError,
)
from .http import HttpTransport
from .protocol import Envelope, decode_envelope, decode_payload, encode_envelope
from .stream import StreamState, WebSocketStream, WebSocketTransport
from .transport import (
    CallResult,
    Failure,
    Stream,
    StreamTransport,
    Success,
    Transport,
    UnaryTransport,
)
from .ws import connect_websocket
from .ws_client import WsClient, WsMessage, WsMessageType

__all__ = [
    "CallResult",
    "ConnectError",
    "Envelope",
    "Failure",
    "HandshakeError",
    "HttpTransport",
    "HttpWebSocketTransport",
    "LugmaError",
    "MalformedEnvelope",
    "PayloadDecodeError",
    "PayloadEncodeError",
    "RequestTimeout",
    "ResponseTooLarge",
    "SendError",
    "Stream",
    "StreamState",
    "StreamTransport",
    "Success",
    "Transport",
    "UnaryTransport",
    "WebSocketStream",
    "WebSocketTransport",
    "WsClient",
    "WsMessage",
    "WsMessageType",
    "__version__",
    "connect_websocket",
    "decode_envelope",
    "decode_payload",
    "encode_envelope",
]
