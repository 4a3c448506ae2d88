"""Core types for the request/response transport layer.

This module defines the connection state machine, the bookkeeping record for
an outstanding request, and the dispatcher outcome enumeration.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ConnectionState(Enum):
    """Connection state enumeration."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSING = "closing"


class DispatchOutcome(Enum):
    """How the dispatcher handled one inbound frame."""

    RESOLVED = "resolved"
    UNSOLICITED = "unsolicited"
    MISSING_REQUEST_ID = "missing_request_id"
    MALFORMED = "malformed"


@dataclass
class PendingRequest:
    """Tracks a request awaiting its response.

    Attributes:
        request_id: Correlation id sent as ``requestid``
        submitted_at: Submission timestamp in epoch milliseconds (sent as ``sent``)
        future: Single-shot completion handle, resolved with the response payload
        started: time.perf_counter() at submission, for latency measurement
        timer: Timeout handle armed by the client (cancelled on resolution)
    """

    request_id: int
    submitted_at: int
    future: asyncio.Future[dict[str, Any]]
    started: float = 0.0
    timer: asyncio.TimerHandle | None = field(default=None, repr=False)

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None
