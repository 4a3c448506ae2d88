"""Custom exception types for transport-layer errors.

This module defines the exception hierarchy for request lifecycle and
connection errors, extending the protocol exceptions.
"""

from __future__ import annotations

from ws_request_client.protocol.exceptions import WsClientError


class ConnectionClosedError(WsClientError):
    """Connection state error (not open, connection lost, etc.)

    Raised when:
    - An operation requires an OPEN connection and the handle is not open
    - The client was closed and can no longer connect

    Note: Named ConnectionClosedError to avoid shadowing Python's built-in ConnectionError.

    Attributes:
        reason: Specific failure reason
        state: Connection state when error occurred
    """

    def __init__(self, reason: str, state: str = "unknown"):
        self.reason = reason
        self.state = state
        super().__init__(f"Connection error: {reason} (state: {state})")


class RequestTimeoutError(WsClientError):
    """No matching response arrived before the request deadline.

    The pending entry has already been removed when this is raised, so a late
    response is treated as unsolicited.

    Attributes:
        request_id: Correlation id of the request that timed out
        timeout_seconds: Deadline that was exceeded
        reason: Always "Timeout"
    """

    reason = "Timeout"

    def __init__(self, request_id: int, timeout_seconds: float):
        self.request_id = request_id
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Timeout: no response to request {request_id} within {timeout_seconds}s")


class ClientClosedError(ConnectionClosedError):
    """The client was shut down; its connection will not be reopened.

    Raised for requests still pending when the client closes, and for
    operations attempted after the client closed.

    Attributes:
        request_id: Correlation id of the abandoned request (0 when not tied to one)
    """

    def __init__(self, request_id: int = 0, state: str = "disconnected"):
        self.request_id = request_id
        reason = f"client closed with request {request_id} pending" if request_id else "client closed"
        super().__init__(reason, state=state)


class DuplicateRequestIdError(WsClientError):
    """A request id was registered while an entry with the same id is pending.

    Attributes:
        request_id: The colliding correlation id
    """

    def __init__(self, request_id: int):
        self.request_id = request_id
        super().__init__(f"Request id {request_id} is already pending")
