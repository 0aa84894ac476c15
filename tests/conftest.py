"""Pytest configuration and fixtures for lugma_transport tests."""

from __future__ import annotations

from collections.abc import Iterable
from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def mock_session() -> MagicMock:
    """Create a mock aiohttp ClientSession."""
    import aiohttp

    return MagicMock(spec=aiohttp.ClientSession)


def create_mock_response(
    status: int = 200,
    body: bytes = b"",
    *,
    chunks: Iterable[bytes] | None = None,
    content_length: int | None = None,
    read_error: BaseException | None = None,
) -> AsyncMock:
    """Create a configured mock response.

    Args:
        status: HTTP status code
        body: Body delivered as a single chunk
        chunks: Body delivered as several chunks (overrides body)
        content_length: Declared Content-Length
        read_error: Exception raised while streaming the body

    Returns:
        Configured AsyncMock response
    """
    response = AsyncMock()
    response.status = status
    response.content_length = content_length

    parts = list(chunks) if chunks is not None else ([body] if body else [])

    async def iter_chunked(_size: int):
        for part in parts:
            yield part
        if read_error is not None:
            raise read_error

    response.content = MagicMock()
    response.content.iter_chunked = MagicMock(side_effect=iter_chunked)

    response.__aenter__.return_value = response
    response.__aexit__.return_value = None

    return response


class FakeConnection:
    """Stand-in for a websockets ClientConnection.

    Iterates over the given frames, then ends as a graceful close would.
    """

    def __init__(
        self, frames: Iterable[str | bytes] = (), *, raise_on_iter: Exception | None = None
    ) -> None:
        self._frames = list(frames)
        self._index = 0
        self._raise_on_iter = raise_on_iter
        self.send = AsyncMock()
        self.close = AsyncMock()

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._index >= len(self._frames):
            if self._raise_on_iter is not None:
                raise self._raise_on_iter
            raise StopAsyncIteration
        frame = self._frames[self._index]
        self._index += 1
        return frame
