"""Envelope protocol package - JSON encoding, decoding, and correlation fields.

Public API:
- Envelope codec (encode_request, encode_message, decode_frame)
- Correlation helpers (extract_request_id, normalize_request_id)
- Protocol exceptions
"""

from ws_request_client.protocol.envelope import (
    build_request_envelope,
    decode_frame,
    encode_message,
    encode_request,
    extract_request_id,
    normalize_request_id,
)
from ws_request_client.protocol.exceptions import (
    MalformedMessageError,
    SerializationError,
    WsClientError,
)

__all__ = [
    # Codec
    "build_request_envelope",
    "decode_frame",
    "encode_message",
    "encode_request",
    # Correlation
    "extract_request_id",
    "normalize_request_id",
    # Exceptions
    "MalformedMessageError",
    "SerializationError",
    "WsClientError",
]
