"""Inbound frame dispatch: decode, correlate, resolve."""

from __future__ import annotations

from ws_request_client.const import REQUEST_ID_FIELD
from ws_request_client.logging_abstraction import get_logger
from ws_request_client.metrics import record_response
from ws_request_client.protocol import MalformedMessageError, decode_frame, extract_request_id
from ws_request_client.transport.pending import PendingRequestTable
from ws_request_client.transport.types import DispatchOutcome

logger = get_logger(__name__)


class Dispatcher:
    """Routes each inbound frame to the pending request it answers.

    Frames that cannot be decoded, carry no request id, or match no pending
    request are logged and dropped. Nothing here raises into the reader task.
    """

    def __init__(self, pending: PendingRequestTable, endpoint: str = ""):
        self._pending = pending
        self._endpoint = endpoint

    def dispatch(self, frame: str | bytes) -> DispatchOutcome:
        outcome = self._dispatch(frame)
        record_response(self._endpoint, outcome.value)
        return outcome

    def _dispatch(self, frame: str | bytes) -> DispatchOutcome:
        try:
            data = decode_frame(frame)
        except MalformedMessageError as e:
            logger.warning(
                "✗ Dropping malformed frame: %s",
                e.reason,
                extra={"reason": e.reason, "preview": e.data_preview},
            )
            return DispatchOutcome.MALFORMED

        has_field, request_id = extract_request_id(data)
        if request_id is None:
            logger.warning(
                "Dropping message without usable %s",
                REQUEST_ID_FIELD,
                extra={"has_field": has_field, "type": type(data).__name__},
            )
            return DispatchOutcome.MISSING_REQUEST_ID

        if not self._pending.resolve(request_id, data):
            logger.warning(
                "Unsolicited message for request %s (already timed out?)",
                request_id,
                extra={"request_id": request_id},
            )
            return DispatchOutcome.UNSOLICITED

        logger.debug("✓ Resolved request %s", request_id, extra={"request_id": request_id})
        return DispatchOutcome.RESOLVED
