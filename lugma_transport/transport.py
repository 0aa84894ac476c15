"""Transport interfaces shared by the HTTP and WebSocket realizations.

A transport exposes two operations:

- ``request``: a typed unary call returning ``Success`` or ``Failure``
- ``open_stream``: opens a persistent channel and returns a ``Stream``

Concrete transports are picked at construction time; application code only
depends on the protocols defined here.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, Protocol, TypeAlias, TypeVar, Union
from urllib.parse import urlsplit, urlunsplit

T = TypeVar("T")
OutT = TypeVar("OutT")
ErrT = TypeVar("ErrT")

Extra: TypeAlias = Mapping[str, str]


@dataclass(frozen=True, slots=True)
class Success(Generic[OutT]):
    """Decoded response of a call that succeeded."""

    value: OutT

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class Failure(Generic[ErrT]):
    """Decoded domain error of a call the remote side rejected."""

    error: ErrT

    @property
    def ok(self) -> bool:
        return False


CallResult: TypeAlias = Union[Success[OutT], Failure[ErrT]]


class Stream(Protocol):
    """Persistent channel carrying tagged events in both directions."""

    def on(
        self,
        event: str,
        payload_type: type[T],
        callback: Callable[[T], Awaitable[None] | None],
    ) -> None:
        """Register ``callback`` for events tagged ``event``."""
        ...

    async def send(self, event: str, item: Any) -> None:
        """Emit ``item`` tagged ``event``."""
        ...

    async def close(self) -> None:
        """Close the underlying channel."""
        ...


class UnaryTransport(Protocol):
    """Transport able to perform typed unary calls."""

    async def request(
        self,
        endpoint: str,
        body: Any,
        extra: Extra | None = None,
        *,
        out_type: type[OutT],
        err_type: type[ErrT],
    ) -> CallResult[OutT, ErrT]:
        """Send ``body`` to ``endpoint`` and decode the response."""
        ...


class StreamTransport(Protocol):
    """Transport able to open event streams."""

    async def open_stream(self, endpoint: str, extra: Extra | None = None) -> Stream:
        """Open a stream to ``endpoint``, handing ``extra`` to the remote side."""
        ...


class Transport(UnaryTransport, StreamTransport, Protocol):
    """Transport offering both unary calls and streams."""


def join_url(base: str, endpoint: str) -> str:
    """Append ``endpoint`` to ``base`` as a path component."""
    if not endpoint:
        return base
    return f"{base.rstrip('/')}/{endpoint.lstrip('/')}"


def to_websocket_url(url: str) -> str:
    """Map an http(s) URL onto the matching ws(s) URL."""
    parts = urlsplit(url)
    scheme = {"http": "ws", "https": "wss"}.get(parts.scheme, parts.scheme)
    return urlunsplit(parts._replace(scheme=scheme))


def flatten_extra(extra: Extra | None) -> dict[str, str]:
    """Project a header-like bag onto plain string pairs.

    Repeated keys (multidict headers) keep their last value.
    """
    flat: dict[str, str] = {}
    if extra is None:
        return flat
    for key, value in extra.items():
        flat[str(key)] = str(value)
    return flat
