"""Pending-request table keyed by correlation id.

Every method is synchronous: on a single event loop each call runs to
completion without interleaving, so resolve/expire/discard for the same id
cannot race. Whichever runs first removes the entry; later calls find nothing.
"""

from __future__ import annotations

from typing import Any

from ws_request_client.logging_abstraction import get_logger
from ws_request_client.transport.exceptions import DuplicateRequestIdError, RequestTimeoutError
from ws_request_client.transport.types import PendingRequest

logger = get_logger(__name__)


class PendingRequestTable:
    """Map of request id to its outstanding PendingRequest."""

    def __init__(self) -> None:
        self._entries: dict[int, PendingRequest] = {}

    def register(self, pending: PendingRequest) -> None:
        """Add a pending request.

        Raises:
            DuplicateRequestIdError: an entry with the same id is still pending
        """
        if pending.request_id in self._entries:
            raise DuplicateRequestIdError(pending.request_id)
        self._entries[pending.request_id] = pending
        logger.debug(
            "Registered pending request",
            extra={"request_id": pending.request_id, "pending": len(self._entries)},
        )

    def resolve(self, request_id: int, value: dict[str, Any]) -> bool:
        """Complete a request with its response.

        Returns:
            False if the id is absent (already resolved, timed out or discarded)
        """
        pending = self._entries.pop(request_id, None)
        if pending is None:
            return False
        pending.cancel_timer()
        if not pending.future.done():
            pending.future.set_result(value)
        return True

    def expire(self, request_id: int, timeout_seconds: float) -> bool:
        """Fail a request with RequestTimeoutError.

        Returns:
            False if the id is absent (already resolved or discarded)
        """
        pending = self._entries.pop(request_id, None)
        if pending is None:
            return False
        pending.cancel_timer()
        if not pending.future.done():
            pending.future.set_exception(RequestTimeoutError(request_id, timeout_seconds))
        return True

    def discard(self, request_id: int) -> bool:
        """Remove an entry without completing its future."""
        pending = self._entries.pop(request_id, None)
        if pending is None:
            return False
        pending.cancel_timer()
        return True

    def fail_all(self, exc_factory: Any) -> int:
        """Fail and remove every pending request.

        Args:
            exc_factory: Callable taking a request id and returning the exception to set

        Returns:
            Number of requests failed
        """
        entries = list(self._entries.values())
        self._entries.clear()
        for pending in entries:
            pending.cancel_timer()
            if not pending.future.done():
                pending.future.set_exception(exc_factory(pending.request_id))
        if entries:
            logger.info("Failed %d pending requests", len(entries), extra={"failed": len(entries)})
        return len(entries)

    def get(self, request_id: int) -> PendingRequest | None:
        return self._entries.get(request_id)

    def __contains__(self, request_id: object) -> bool:
        return request_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"PendingRequestTable(pending={len(self._entries)})"
