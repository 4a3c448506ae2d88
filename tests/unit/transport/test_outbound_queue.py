"""Unit tests for OutboundQueue.

Tests cover:
- FIFO drain order
- Frames enqueued during a drain
- Drain stopping on send failure
- Serialized concurrent drains
"""

from __future__ import annotations

import asyncio

import pytest

from ws_request_client.transport.outbound_queue import OutboundQueue


class RecordingSender:
    """Sender that records frames and can fail or pause on demand."""

    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.sent: list[str | bytes] = []
        self.fail_on = fail_on or set()
        self.gate: asyncio.Event | None = None

    async def __call__(self, frame: str | bytes) -> bool:
        if self.gate is not None:
            await self.gate.wait()
        if frame in self.fail_on:
            return False
        self.sent.append(frame)
        return True


@pytest.fixture
def queue() -> OutboundQueue:
    return OutboundQueue()


def test_enqueue_returns_depth(queue: OutboundQueue) -> None:
    assert queue.enqueue("a") == 1
    assert queue.enqueue(b"b") == 2
    assert len(queue) == 2
    assert queue.snapshot() == ["a", b"b"]
    assert queue.has_backlog is True
    assert queue.is_draining is False


def test_empty_queue_has_no_backlog(queue: OutboundQueue) -> None:
    assert queue.has_backlog is False
    assert len(queue) == 0


@pytest.mark.asyncio
async def test_drain_sends_in_fifo_order(queue: OutboundQueue) -> None:
    for frame in ("m1", "m2", "m3"):
        queue.enqueue(frame)
    sender = RecordingSender()

    sent = await queue.drain_into(sender)

    assert sent == 3
    assert sender.sent == ["m1", "m2", "m3"]
    assert len(queue) == 0
    assert queue.has_backlog is False


@pytest.mark.asyncio
async def test_drain_empty_queue(queue: OutboundQueue) -> None:
    sender = RecordingSender()
    assert await queue.drain_into(sender) == 0
    assert sender.sent == []


@pytest.mark.asyncio
async def test_drain_stops_on_failure_and_keeps_order(queue: OutboundQueue) -> None:
    for frame in ("m1", "m2", "m3"):
        queue.enqueue(frame)
    sender = RecordingSender(fail_on={"m2"})

    sent = await queue.drain_into(sender)

    assert sent == 1
    assert sender.sent == ["m1"]
    assert queue.snapshot() == ["m2", "m3"]

    sender.fail_on.clear()
    assert await queue.drain_into(sender) == 2
    assert sender.sent == ["m1", "m2", "m3"]


@pytest.mark.asyncio
async def test_frames_enqueued_during_drain_are_sent_after_backlog(queue: OutboundQueue) -> None:
    queue.enqueue("m1")
    queue.enqueue("m2")
    sender = RecordingSender()
    sender.gate = asyncio.Event()

    drain = asyncio.create_task(queue.drain_into(sender))
    await asyncio.sleep(0)
    assert queue.is_draining is True
    assert queue.has_backlog is True

    queue.enqueue("m3")
    sender.gate.set()
    sent = await drain

    assert sent == 3
    assert sender.sent == ["m1", "m2", "m3"]
    assert queue.is_draining is False


@pytest.mark.asyncio
async def test_concurrent_drains_send_each_frame_once(queue: OutboundQueue) -> None:
    for frame in ("m1", "m2", "m3"):
        queue.enqueue(frame)
    sender = RecordingSender()
    sender.gate = asyncio.Event()

    first = asyncio.create_task(queue.drain_into(sender))
    second = asyncio.create_task(queue.drain_into(sender))
    await asyncio.sleep(0)
    sender.gate.set()
    results = await asyncio.gather(first, second)

    assert sorted(results) == [0, 3]
    assert sender.sent == ["m1", "m2", "m3"]


def test_clear(queue: OutboundQueue) -> None:
    queue.enqueue("m1")
    queue.enqueue("m2")
    assert queue.clear() == 2
    assert len(queue) == 0
