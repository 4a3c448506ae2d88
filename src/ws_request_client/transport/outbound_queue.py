"""FIFO queue of serialized frames awaiting an open connection."""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Awaitable, Callable

from ws_request_client.instrumentation import timed_async
from ws_request_client.logging_abstraction import get_logger

logger = get_logger(__name__)

Frame = str | bytes
FrameSender = Callable[[Frame], Awaitable[bool]]


class OutboundQueue:
    """Ordered backlog of frames, drained in submission order.

    Drains are serialized by an asyncio.Lock. Frames enqueued while a drain is
    running are picked up by that same drain, after the earlier backlog.
    """

    def __init__(self) -> None:
        self._items: deque[Frame] = deque()
        self._drain_lock: asyncio.Lock = asyncio.Lock()
        self._draining: bool = False

    def enqueue(self, frame: Frame) -> int:
        """Append a frame; returns the new queue length."""
        self._items.append(frame)
        logger.debug("Queued frame", extra={"queued": len(self._items)})
        return len(self._items)

    @timed_async("outbound_queue_drain")
    async def drain_into(self, sender: FrameSender) -> int:
        """Send queued frames in FIFO order.

        Each frame is removed only after ``sender`` reports success. If a send
        fails the drain stops; the failed frame and everything behind it stay
        queued in order for the next drain.

        Returns:
            Number of frames sent
        """
        sent = 0
        async with self._drain_lock:
            self._draining = True
            try:
                while self._items:
                    frame = self._items[0]
                    if not await sender(frame):
                        logger.warning(
                            "Drain stopped: send failed, %d frames kept",
                            len(self._items),
                            extra={"sent": sent, "remaining": len(self._items)},
                        )
                        break
                    self._items.popleft()
                    sent += 1
            finally:
                self._draining = False
        if sent:
            logger.info("✓ Drained %d queued frames", sent, extra={"sent": sent, "remaining": len(self._items)})
        return sent

    @property
    def is_draining(self) -> bool:
        return self._draining

    @property
    def has_backlog(self) -> bool:
        """True if frames are waiting or a drain is in progress."""
        return bool(self._items) or self._draining

    def snapshot(self) -> list[Frame]:
        """Copy of the queued frames, oldest first."""
        return list(self._items)

    def clear(self) -> int:
        count = len(self._items)
        self._items.clear()
        return count

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"OutboundQueue(queued={len(self._items)}, draining={self._draining})"
