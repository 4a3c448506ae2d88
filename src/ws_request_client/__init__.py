"""Asyncio WebSocket request/response client with reconnect-on-send."""

from ws_request_client.client import WebSocketClient
from ws_request_client.logging_abstraction import configure_logging
from ws_request_client.protocol import MalformedMessageError, SerializationError, WsClientError
from ws_request_client.transport import (
    ClientClosedError,
    ClientTimeouts,
    ConnectionClosedError,
    ConnectionState,
    DuplicateRequestIdError,
    RequestTimeoutError,
    RetryPolicy,
)

__version__ = "0.1.0"

__all__ = [
    "ClientClosedError",
    "ClientTimeouts",
    "ConnectionClosedError",
    "ConnectionState",
    "DuplicateRequestIdError",
    "MalformedMessageError",
    "RequestTimeoutError",
    "RetryPolicy",
    "SerializationError",
    "WebSocketClient",
    "WsClientError",
    "__version__",
    "configure_logging",
]
