"""Custom exception types for envelope encoding and decoding errors.

This module defines the root of the client's exception hierarchy and the
protocol-level errors raised by the envelope codec.
"""

from __future__ import annotations


class WsClientError(Exception):
    """Base exception for all WebSocket request client errors.

    All client exceptions inherit from this base class, enabling catch-all
    error handling when needed while keeping specific exception types for
    detailed handling.
    """


class MalformedMessageError(WsClientError):
    """Inbound frame cannot be decoded as a JSON envelope.

    Raised by the envelope decoder when a frame is not valid UTF-8 or not
    valid JSON. The dispatcher catches it; it never reaches a caller.

    Attributes:
        reason: Specific failure reason (e.g., "invalid_json", "invalid_utf8")
        data_preview: First 64 characters of the frame (keeps logs bounded)
    """

    def __init__(self, reason: str, data: str | bytes = ""):
        self.reason = reason
        self.data_preview = data[:64] if data else data
        super().__init__(f"Malformed message: {reason}")


class SerializationError(WsClientError):
    """Outbound payload cannot be serialized to JSON.

    For requests this reaches the caller before anything is registered or sent.
    For fire-and-forget messages the client falls back to sending the raw payload.

    Attributes:
        reason: Underlying encoder error text
        payload_type: Type name of the payload that failed
    """

    def __init__(self, reason: str, payload_type: str = ""):
        self.reason = reason
        self.payload_type = payload_type
        super().__init__(f"Serialization failed for {payload_type or 'payload'}: {reason}")
