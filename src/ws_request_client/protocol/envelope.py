"""JSON envelope codec.

Requests are JSON objects extended with two envelope fields:

    {"requestid": <int>, "sent": <epoch ms>, ...application fields}

Responses must echo ``requestid``. Everything else is passed through untouched.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from ws_request_client.const import REQUEST_ID_FIELD, SENT_FIELD
from ws_request_client.protocol.exceptions import MalformedMessageError, SerializationError

__all__ = [
    "build_request_envelope",
    "decode_frame",
    "encode_message",
    "encode_request",
    "extract_request_id",
    "normalize_request_id",
]


def build_request_envelope(payload: Mapping[str, Any], request_id: int, sent: int) -> dict[str, Any]:
    """Return a copy of ``payload`` carrying the envelope fields.

    The envelope fields win over same-named application keys, so a payload
    can never spoof another request's correlation id.

    Raises:
        SerializationError: payload is not a mapping
    """
    if not isinstance(payload, Mapping):
        raise SerializationError("request payload must be a mapping", type(payload).__name__)
    envelope: dict[str, Any] = {REQUEST_ID_FIELD: request_id, SENT_FIELD: sent}
    for key, value in payload.items():
        if key not in envelope:
            envelope[key] = value
    return envelope


def encode_request(payload: Mapping[str, Any], request_id: int, sent: int) -> str:
    """Serialize a request payload into a text frame.

    Raises:
        SerializationError: payload is not a mapping or not JSON serializable
    """
    envelope = build_request_envelope(payload, request_id, sent)
    try:
        return json.dumps(envelope)
    except (TypeError, ValueError) as e:
        raise SerializationError(str(e), type(payload).__name__) from e


def encode_message(payload: Any) -> str:
    """Serialize a fire-and-forget payload (any JSON value).

    Raises:
        SerializationError: payload is not JSON serializable
    """
    try:
        return json.dumps(payload)
    except (TypeError, ValueError) as e:
        raise SerializationError(str(e), type(payload).__name__) from e


def decode_frame(frame: str | bytes) -> Any:
    """Parse an inbound frame into a JSON value.

    Binary frames are decoded as UTF-8 first.

    Raises:
        MalformedMessageError: frame is not UTF-8 or not valid JSON
    """
    if isinstance(frame, (bytes, bytearray, memoryview)):
        try:
            text = bytes(frame).decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedMessageError("invalid_utf8", bytes(frame)) from e
    else:
        text = frame
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedMessageError("invalid_json", text) from e


def normalize_request_id(value: Any) -> int | None:
    """Map a wire ``requestid`` value onto the client's integer id space.

    Peers may echo the id as a number or as a string ("1700000000123"), and
    some JSON encoders turn integers into floats. All of those match the same
    pending request. Anything else returns None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit() or (text.startswith("-") and text[1:].isdigit()):
            return int(text)
    return None


def extract_request_id(data: Any) -> tuple[bool, int | None]:
    """Return (has_field, normalized_id) for a decoded envelope.

    ``has_field`` is False when ``data`` is not a JSON object or has no
    ``requestid`` key; ``normalized_id`` is None when the value cannot match
    any request id this client generates.
    """
    if not isinstance(data, dict) or REQUEST_ID_FIELD not in data:
        return False, None
    return True, normalize_request_id(data[REQUEST_ID_FIELD])
