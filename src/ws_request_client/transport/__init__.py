"""Transport layer - connection handle, pending table, outbound queue.

Public API:
- Connection handle (WebSocketConnection)
- Request bookkeeping (PendingRequestTable, OutboundQueue)
- Configuration (ClientTimeouts, RetryPolicy)
- Types and exceptions
"""

from ws_request_client.transport.connection import WebSocketConnection
from ws_request_client.transport.exceptions import (
    ClientClosedError,
    ConnectionClosedError,
    DuplicateRequestIdError,
    RequestTimeoutError,
)
from ws_request_client.transport.outbound_queue import OutboundQueue
from ws_request_client.transport.pending import PendingRequestTable
from ws_request_client.transport.retry_policy import ClientTimeouts, RetryPolicy
from ws_request_client.transport.types import ConnectionState, DispatchOutcome, PendingRequest

__all__ = [
    # Connection
    "WebSocketConnection",
    # Bookkeeping
    "OutboundQueue",
    "PendingRequestTable",
    # Configuration
    "ClientTimeouts",
    "RetryPolicy",
    # Types
    "ConnectionState",
    "DispatchOutcome",
    "PendingRequest",
    # Exceptions
    "ClientClosedError",
    "ConnectionClosedError",
    "DuplicateRequestIdError",
    "RequestTimeoutError",
]
