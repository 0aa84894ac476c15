"""Error types for Lugma transport interactions."""

from __future__ import annotations


class LugmaError(Exception):
    """Base error for Lugma transport failures."""


class MalformedEnvelope(LugmaError):
    """Frame does not parse as a tagged envelope."""


class PayloadDecodeError(LugmaError):
    """Payload does not match the requested type."""


class PayloadEncodeError(LugmaError):
    """Payload could not be serialized to JSON."""


class RequestTimeout(LugmaError):
    """Timeout while waiting for a unary response."""


class ResponseTooLarge(LugmaError):
    """Response body exceeded the configured size cap."""

    def __init__(self, limit: int, message: str) -> None:
        super().__init__(message)
        self.limit = limit


class ConnectError(LugmaError):
    """Network connection to the remote endpoint failed."""


class HandshakeError(ConnectError):
    """WebSocket handshake failed."""


class SendError(LugmaError):
    """Write to an established stream failed."""
