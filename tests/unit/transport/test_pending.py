"""Unit tests for PendingRequestTable.

Tests cover:
- Registration and duplicate detection
- Resolve / expire / discard exclusivity
- Timer cancellation
- fail_all on shutdown
"""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from tests.helpers.expectations import expect_exception
from ws_request_client.transport.exceptions import ClientClosedError, DuplicateRequestIdError, RequestTimeoutError
from ws_request_client.transport.pending import PendingRequestTable
from ws_request_client.transport.types import PendingRequest


def make_pending(request_id: int, timer: MagicMock | None = None) -> PendingRequest:
    future = asyncio.get_running_loop().create_future()
    return PendingRequest(request_id=request_id, submitted_at=request_id, future=future, timer=timer)


@pytest.fixture
def table() -> PendingRequestTable:
    return PendingRequestTable()


@pytest.mark.asyncio
async def test_register_and_lookup(table: PendingRequestTable) -> None:
    pending = make_pending(1)
    table.register(pending)

    assert 1 in table
    assert len(table) == 1
    assert table.get(1) is pending
    assert table.get(2) is None


@pytest.mark.asyncio
async def test_register_duplicate_raises(table: PendingRequestTable) -> None:
    table.register(make_pending(7))

    error = expect_exception(table.register, DuplicateRequestIdError, make_pending(7))

    assert error.request_id == 7
    assert len(table) == 1


@pytest.mark.asyncio
async def test_id_reusable_after_removal(table: PendingRequestTable) -> None:
    table.register(make_pending(7))
    table.discard(7)
    table.register(make_pending(7))
    assert 7 in table


@pytest.mark.asyncio
async def test_resolve_completes_future_and_cancels_timer(table: PendingRequestTable) -> None:
    timer = MagicMock(spec=asyncio.TimerHandle)
    pending = make_pending(1, timer)
    table.register(pending)

    assert table.resolve(1, {"requestid": 1, "ok": True}) is True

    assert pending.future.result() == {"requestid": 1, "ok": True}
    timer.cancel.assert_called_once()
    assert 1 not in table


@pytest.mark.asyncio
async def test_resolve_unknown_id_returns_false(table: PendingRequestTable) -> None:
    assert table.resolve(99, {"requestid": 99}) is False


@pytest.mark.asyncio
async def test_expire_sets_timeout_error(table: PendingRequestTable) -> None:
    pending = make_pending(3)
    table.register(pending)

    assert table.expire(3, 0.25) is True

    error = pending.future.exception()
    assert isinstance(error, RequestTimeoutError)
    assert error.request_id == 3
    assert error.timeout_seconds == 0.25
    assert len(table) == 0


@pytest.mark.asyncio
async def test_resolve_after_expire_is_ignored(table: PendingRequestTable) -> None:
    """First completion wins; the late response finds nothing."""
    pending = make_pending(4)
    table.register(pending)

    table.expire(4, 1.0)

    assert table.resolve(4, {"requestid": 4}) is False
    assert isinstance(pending.future.exception(), RequestTimeoutError)


@pytest.mark.asyncio
async def test_expire_after_resolve_is_ignored(table: PendingRequestTable) -> None:
    pending = make_pending(5)
    table.register(pending)

    table.resolve(5, {"requestid": 5})

    assert table.expire(5, 1.0) is False
    assert pending.future.result() == {"requestid": 5}


@pytest.mark.asyncio
async def test_discard_leaves_future_untouched(table: PendingRequestTable) -> None:
    timer = MagicMock(spec=asyncio.TimerHandle)
    pending = make_pending(6, timer)
    table.register(pending)

    assert table.discard(6) is True
    assert table.discard(6) is False

    assert not pending.future.done()
    timer.cancel.assert_called_once()


@pytest.mark.asyncio
async def test_resolve_skips_cancelled_future(table: PendingRequestTable) -> None:
    pending = make_pending(8)
    table.register(pending)
    pending.future.cancel()

    assert table.resolve(8, {"requestid": 8}) is True
    assert pending.future.cancelled()


@pytest.mark.asyncio
async def test_fail_all(table: PendingRequestTable) -> None:
    first, second = make_pending(1), make_pending(2)
    table.register(first)
    table.register(second)

    failed = table.fail_all(ClientClosedError)

    assert failed == 2
    assert len(table) == 0
    for pending in (first, second):
        error = pending.future.exception()
        assert isinstance(error, ClientClosedError)
        assert error.request_id == pending.request_id


@pytest.mark.asyncio
async def test_fail_all_empty(table: PendingRequestTable) -> None:
    assert table.fail_all(ClientClosedError) == 0


def test_repr() -> None:
    assert repr(PendingRequestTable()) == "PendingRequestTable(pending=0)"
