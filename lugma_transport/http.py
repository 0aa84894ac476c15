"""HTTP transport for typed unary calls."""

from __future__ import annotations

import logging
from typing import Any, Final, TypeVar

import aiohttp

from .errors import ConnectError, RequestTimeout, ResponseTooLarge
from .protocol import decode_json_payload, encode_json, type_adapter
from .transport import CallResult, Extra, Failure, Success, join_url

_LOGGER = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT: Final = 30.0
MAX_RESPONSE_SIZE: Final = 1024 * 1024
_CHUNK_SIZE: Final = 64 * 1024

OutT = TypeVar("OutT")
ErrT = TypeVar("ErrT")


class HttpTransport:
    """Unary transport issuing JSON POST requests over aiohttp."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        base_url: str,
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        max_response_size: int = MAX_RESPONSE_SIZE,
    ) -> None:
        self._session = session
        self._base_url = base_url
        self._timeout = timeout
        self._max_response_size = max_response_size

    @property
    def base_url(self) -> str:
        return self._base_url

    def _url(self, endpoint: str) -> str:
        return join_url(self._base_url, endpoint)

    @staticmethod
    def _headers(extra: Extra | None) -> list[tuple[str, str]]:
        headers = list(extra.items()) if extra else []
        if not any(key.lower() == "content-type" for key, _ in headers):
            headers.append(("Content-Type", "application/json"))
        return headers

    async def request(
        self,
        endpoint: str,
        body: Any,
        extra: Extra | None = None,
        *,
        out_type: type[OutT],
        err_type: type[ErrT],
    ) -> CallResult[OutT, ErrT]:
        """POST ``body`` as JSON to ``endpoint`` and decode the response.

        A 200 response is decoded as ``out_type`` and returned as ``Success``;
        any other status is decoded as ``err_type`` and returned as
        ``Failure``. The status alone selects the decode path.

        Raises:
            PayloadEncodeError: If ``body`` cannot be serialized
            PayloadDecodeError: If the body does not match the selected type
            RequestTimeout: If the call exceeds the configured timeout
            ResponseTooLarge: If the body exceeds the size cap
            ConnectError: If the HTTP request fails
            PydanticSchemaGenerationError: If a target type cannot be validated
        """
        out_adapter = type_adapter(out_type)
        err_adapter = type_adapter(err_type)
        url = self._url(endpoint)
        payload = encode_json(body)
        try:
            async with self._session.post(
                url,
                data=payload,
                headers=self._headers(extra),
                timeout=aiohttp.ClientTimeout(total=self._timeout),
            ) as resp:
                status = resp.status
                data = await self._read_body(resp)
        except TimeoutError as err:
            raise RequestTimeout(f"Request to {endpoint} timed out") from err
        except aiohttp.ClientError as err:
            raise ConnectError(f"Request to {endpoint} failed") from err

        _LOGGER.debug("POST %s -> %d (%d bytes)", url, status, len(data))

        if status == 200:
            return Success(decode_json_payload(data, out_adapter))
        return Failure(decode_json_payload(data, err_adapter))

    async def _read_body(self, resp: aiohttp.ClientResponse) -> bytes:
        """Collect the response body, bounded by the size cap."""
        limit = self._max_response_size
        if resp.content_length is not None and resp.content_length > limit:
            raise ResponseTooLarge(
                limit, f"Response declares {resp.content_length} bytes (limit {limit})"
            )

        body = bytearray()
        async for chunk in resp.content.iter_chunked(_CHUNK_SIZE):
            body.extend(chunk)
            if len(body) > limit:
                raise ResponseTooLarge(limit, f"Response exceeds {limit} bytes")
        return bytes(body)
