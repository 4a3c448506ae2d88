"""
Request id generation and correlation tracking for log output.

Request ids are the wire-level correlation values sent as ``requestid``.
The contextvar-based correlation id is the log-level value printed by the
formatters in ``logging_abstraction``; while a request is in flight the two
are the same value.
"""

from __future__ import annotations

import contextvars
import time
import uuid
from collections.abc import Callable, Generator
from contextlib import contextmanager

__all__ = [
    "RequestIdGenerator",
    "correlation_context",
    "ensure_correlation_id",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
]

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id",
    default=None,
)


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class RequestIdGenerator:
    """Millisecond-timestamp request ids that never repeat.

    Ids follow the wall clock in milliseconds, but each id is at least one
    greater than the previous one, so requests created within the same
    millisecond (or after the clock steps backwards) still get distinct,
    strictly increasing ids.
    """

    def __init__(self, clock: Callable[[], int] = _now_ms) -> None:
        self._clock = clock
        self._last_id = 0

    def next_id(self) -> int:
        """Return the next request id."""
        request_id = max(self._clock(), self._last_id + 1)
        self._last_id = request_id
        return request_id

    @property
    def last_id(self) -> int:
        return self._last_id

    def __repr__(self) -> str:
        return f"RequestIdGenerator(last_id={self._last_id})"


def generate_correlation_id() -> str:
    """
    Generate a new correlation ID.

    Returns:
        New UUID-based correlation ID (format: UUID4 hex without dashes)
    """
    return uuid.uuid4().hex


def get_correlation_id() -> str | None:
    """Get current correlation ID from context."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Set correlation ID in current context (None clears it)."""
    _correlation_id.set(correlation_id)


@contextmanager
def correlation_context(
    correlation_id: str | None = None,
    auto_generate: bool = True,
) -> Generator[str | None]:
    """
    Context manager for correlation ID scope.

    Automatically generates a correlation ID if none is provided and
    auto_generate=True. Restores the previous correlation ID on exit.

    Args:
        correlation_id: Specific correlation ID to use (None to auto-generate)
        auto_generate: Generate new ID if correlation_id is None

    Yields:
        The correlation ID used in this context

    Example:
        with correlation_context(str(request_id)):
            logger.info("Request sent")  # log line carries the request id
    """
    previous_id = get_correlation_id()

    if correlation_id is None and auto_generate:
        correlation_id = generate_correlation_id()

    set_correlation_id(correlation_id)

    try:
        yield correlation_id
    finally:
        set_correlation_id(previous_id)


def ensure_correlation_id() -> str:
    """
    Ensure a correlation ID exists in current context.

    Returns:
        Current or newly generated correlation ID
    """
    current_id = get_correlation_id()
    if current_id is None:
        current_id = generate_correlation_id()
        set_correlation_id(current_id)
    return current_id
