"""Unit tests for the inbound frame Dispatcher."""

from __future__ import annotations

import asyncio
import json

import pytest

from ws_request_client.dispatcher import Dispatcher
from ws_request_client.transport.pending import PendingRequestTable
from ws_request_client.transport.types import DispatchOutcome, PendingRequest

REQUEST_ID = 1700000000123


@pytest.fixture
def table() -> PendingRequestTable:
    return PendingRequestTable()


@pytest.fixture
def dispatcher(table: PendingRequestTable) -> Dispatcher:
    return Dispatcher(table, endpoint="ws://test")


def register(table: PendingRequestTable, request_id: int = REQUEST_ID) -> PendingRequest:
    pending = PendingRequest(
        request_id=request_id,
        submitted_at=request_id,
        future=asyncio.get_running_loop().create_future(),
    )
    table.register(pending)
    return pending


@pytest.mark.asyncio
async def test_matching_response_resolves(dispatcher: Dispatcher, table: PendingRequestTable) -> None:
    pending = register(table)
    response = {"requestid": REQUEST_ID, "status": "ok", "extra": [1, 2]}

    outcome = dispatcher.dispatch(json.dumps(response))

    assert outcome is DispatchOutcome.RESOLVED
    assert pending.future.result() == response
    assert REQUEST_ID not in table


@pytest.mark.asyncio
async def test_string_request_id_matches(dispatcher: Dispatcher, table: PendingRequestTable) -> None:
    pending = register(table)

    outcome = dispatcher.dispatch(json.dumps({"requestid": str(REQUEST_ID)}))

    assert outcome is DispatchOutcome.RESOLVED
    assert pending.future.result()["requestid"] == str(REQUEST_ID)


@pytest.mark.asyncio
async def test_binary_frame_resolves(dispatcher: Dispatcher, table: PendingRequestTable) -> None:
    pending = register(table)

    outcome = dispatcher.dispatch(json.dumps({"requestid": REQUEST_ID}).encode())

    assert outcome is DispatchOutcome.RESOLVED
    assert pending.future.done()


@pytest.mark.asyncio
async def test_unknown_request_id_is_unsolicited(dispatcher: Dispatcher, table: PendingRequestTable) -> None:
    pending = register(table)

    outcome = dispatcher.dispatch(json.dumps({"requestid": REQUEST_ID + 1}))

    assert outcome is DispatchOutcome.UNSOLICITED
    assert not pending.future.done()
    assert REQUEST_ID in table


@pytest.mark.asyncio
async def test_duplicate_response_is_unsolicited(dispatcher: Dispatcher, table: PendingRequestTable) -> None:
    register(table)
    frame = json.dumps({"requestid": REQUEST_ID})

    assert dispatcher.dispatch(frame) is DispatchOutcome.RESOLVED
    assert dispatcher.dispatch(frame) is DispatchOutcome.UNSOLICITED


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "frame",
    ['{"type": "broadcast"}', '{"requestId": 1700000000123}', "[1, 2, 3]", '"text"', '{"requestid": null}'],
)
async def test_missing_request_id(dispatcher: Dispatcher, table: PendingRequestTable, frame: str) -> None:
    pending = register(table)

    assert dispatcher.dispatch(frame) is DispatchOutcome.MISSING_REQUEST_ID
    assert not pending.future.done()


@pytest.mark.asyncio
@pytest.mark.parametrize("frame", ["not json", b"\xff\xfe", ""])
async def test_malformed_frames_never_touch_pending(
    dispatcher: Dispatcher,
    table: PendingRequestTable,
    frame: str | bytes,
) -> None:
    pending = register(table)

    assert dispatcher.dispatch(frame) is DispatchOutcome.MALFORMED
    assert not pending.future.done()
    assert len(table) == 1
