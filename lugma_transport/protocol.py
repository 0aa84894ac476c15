"""Envelope codec for Lugma stream frames.

Every event on a stream travels as a JSON object with two fields::

    {"type": "<event>", "content": <payload>}

Decoding happens in two stages. ``decode_envelope`` reads the discriminator
and keeps ``content`` as a raw JSON value; the payload is only validated once a
consumer supplies a target type through ``decode_payload``.
"""

from __future__ import annotations

import functools
import json
from dataclasses import dataclass
from typing import Any, TypeVar

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_json

from .errors import MalformedEnvelope, PayloadDecodeError, PayloadEncodeError

T = TypeVar("T")

TYPE_FIELD = "type"
CONTENT_FIELD = "content"


@dataclass(frozen=True, slots=True)
class Envelope:
    """Decoded envelope with a still-opaque payload."""

    type: str
    content: Any

    def decode(self, target: type[T] | TypeAdapter[T]) -> T:
        """Decode the payload as ``target``."""
        return decode_payload(self.content, target)


def encode_json(value: Any) -> bytes:
    """Serialize any pydantic-serializable value to compact JSON bytes."""
    try:
        return to_json(value)
    except PydanticSerializationError as err:
        raise PayloadEncodeError(f"Cannot serialize payload: {err}") from err


def encode_envelope(event: str, payload: Any) -> str:
    """Encode ``payload`` tagged with ``event`` as a JSON text frame."""
    if not event:
        raise ValueError("Envelope type must be a non-empty string")
    return encode_json({TYPE_FIELD: event, CONTENT_FIELD: payload}).decode()


def decode_envelope(data: str | bytes) -> Envelope:
    """Parse a frame and read its discriminator.

    Raises:
        MalformedEnvelope: If the frame is not a JSON object carrying a
            non-empty ``type`` string and a ``content`` field.
    """
    try:
        parsed = json.loads(data)
    except (ValueError, TypeError) as err:
        raise MalformedEnvelope("Frame is not valid JSON") from err
    except RecursionError as err:
        raise MalformedEnvelope("Frame is nested too deeply") from err

    if not isinstance(parsed, dict):
        raise MalformedEnvelope("Frame is not a JSON object")

    msg_type = parsed.get(TYPE_FIELD)
    if not isinstance(msg_type, str) or not msg_type:
        raise MalformedEnvelope("Frame has no valid type field")
    if CONTENT_FIELD not in parsed:
        raise MalformedEnvelope(f"Frame of type {msg_type!r} has no content field")

    return Envelope(type=msg_type, content=parsed[CONTENT_FIELD])


@functools.lru_cache(maxsize=256)
def _cached_adapter(target: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target)


def type_adapter(target: type[T] | TypeAdapter[T]) -> TypeAdapter[T]:
    """Return the validator for ``target``, built once per type.

    Raises:
        PydanticSchemaGenerationError: If pydantic cannot validate ``target``
    """
    if isinstance(target, TypeAdapter):
        return target
    try:
        return _cached_adapter(target)
    except TypeError:
        # Unhashable annotations (e.g. Annotated with dict metadata) skip the cache.
        return TypeAdapter(target)


def decode_payload(raw: Any, target: type[T] | TypeAdapter[T]) -> T:
    """Validate an already-parsed JSON value as ``target``."""
    adapter = type_adapter(target)
    try:
        return adapter.validate_python(raw)
    except ValidationError as err:
        raise PayloadDecodeError(f"Payload does not match {target!r}") from err


def decode_json_payload(data: bytes | str, target: type[T] | TypeAdapter[T]) -> T:
    """Parse JSON text and validate it as ``target``."""
    adapter = type_adapter(target)
    try:
        return adapter.validate_json(data)
    except ValidationError as err:
        raise PayloadDecodeError(f"Body does not match {target!r}") from err
