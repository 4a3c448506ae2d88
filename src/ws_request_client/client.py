"""Request/response client over a single WebSocket connection.

``WebSocketClient`` turns a bidirectional frame stream into two calls:

- ``request()``: send a JSON payload tagged with a fresh ``requestid`` and
  wait for the response that echoes it (or a timeout).
- ``send_message()``: fire-and-forget; no id, no response.

The connection is opened on demand. Anything sent while it is down is queued
and replayed in order once it is back.
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Callable, Mapping
from types import TracebackType
from typing import Any, Self

from ws_request_client.const import DEFAULT_REQUEST_TIMEOUT_SECONDS
from ws_request_client.correlation import RequestIdGenerator, correlation_context
from ws_request_client.dispatcher import Dispatcher
from ws_request_client.instrumentation import timed_async
from ws_request_client.logging_abstraction import get_logger
from ws_request_client.metrics import (
    record_connect_attempt,
    record_message_sent,
    record_queue_depth,
    record_reconnection,
    record_request,
    record_request_latency,
    record_request_timeout,
    record_serialization_fallback,
)
from ws_request_client.protocol import SerializationError, encode_message, encode_request
from ws_request_client.transport.connection import WebSocketConnection
from ws_request_client.transport.exceptions import ClientClosedError, RequestTimeoutError
from ws_request_client.transport.outbound_queue import OutboundQueue
from ws_request_client.transport.pending import PendingRequestTable
from ws_request_client.transport.retry_policy import ClientTimeouts, RetryPolicy
from ws_request_client.transport.types import ConnectionState, PendingRequest

logger = get_logger(__name__)

SuccessCallback = Callable[[dict[str, Any]], Any]
FailureCallback = Callable[[BaseException], Any]


def _log_request_failure(error: BaseException) -> None:
    logger.warning("✗ Request failed: %s", error, extra={"error": str(error), "type": type(error).__name__})


class WebSocketClient:
    """Correlating request/response client with reconnect-on-send."""

    def __init__(
        self,
        url: str,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        *,
        timeouts: ClientTimeouts | None = None,
        retry_policy: RetryPolicy | None = None,
        max_connect_attempts: int = 1,
        connect_options: dict[str, Any] | None = None,
        connection: WebSocketConnection | None = None,
    ):
        """
        Initialize the client. No connection is made until it is needed.

        Args:
            url: ws:// or wss:// endpoint
            request_timeout: Seconds to wait for a response (ignored if ``timeouts`` is given)
            timeouts: Full timeout configuration
            retry_policy: Backoff between handshake attempts of one connect cycle
            max_connect_attempts: Handshake attempts per on-demand connect cycle
            connect_options: Extra keyword arguments for websockets.connect
            connection: Pre-built connection handle (tests, custom transports)

        Raises:
            ValueError: max_connect_attempts < 1 or a timeout is not positive
        """
        if max_connect_attempts < 1:
            msg = f"max_connect_attempts must be at least 1, got {max_connect_attempts}"
            raise ValueError(msg)

        self.timeouts = timeouts or ClientTimeouts(request_timeout_seconds=request_timeout)
        self.retry_policy = retry_policy or RetryPolicy()
        self.max_connect_attempts = max_connect_attempts
        backoff_budget = self.retry_policy.worst_case_wait(max_connect_attempts)
        if backoff_budget >= self.timeouts.request_timeout_seconds:
            logger.warning(
                "Connect backoff (up to %.2fs) can outlast the request timeout (%.2fs)",
                backoff_budget,
                self.timeouts.request_timeout_seconds,
                extra={"attempts": max_connect_attempts, "retry_policy": repr(self.retry_policy)},
            )

        self._connection = connection or WebSocketConnection(
            url,
            open_timeout=self.timeouts.open_timeout_seconds,
            close_timeout=self.timeouts.close_timeout_seconds,
            connect_options=connect_options,
        )
        self._pending = PendingRequestTable()
        self._queue = OutboundQueue()
        self._dispatcher = Dispatcher(self._pending, endpoint=self._connection.url)
        self._ids = RequestIdGenerator()

        self._connect_task: asyncio.Task[bool] | None = None
        self._rerun_connect = False
        self._callback_tasks: set[asyncio.Task[None]] = set()
        self._closed = False

        self._connection.subscribe(
            on_opened=self._on_opened,
            on_closed=self._on_closed,
            on_frame=self._on_frame,
        )

    # Introspection

    @property
    def url(self) -> str:
        return self._connection.url

    @property
    def state(self) -> ConnectionState:
        return self._connection.state

    @property
    def request_timeout(self) -> float:
        return self.timeouts.request_timeout_seconds

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    @property
    def queued_count(self) -> int:
        return len(self._queue)

    @property
    def is_closed(self) -> bool:
        return self._closed

    # Request/response

    @timed_async("ws_request")
    async def request(self, payload: Mapping[str, Any], *, timeout: float | None = None) -> dict[str, Any]:
        """
        Send a payload and wait for the response carrying the same requestid.

        Args:
            payload: JSON object; ``requestid`` and ``sent`` are added (and win over same-named keys)
            timeout: Override the client's request timeout for this call

        Returns:
            The full decoded response object

        Raises:
            RequestTimeoutError: No response before the deadline
            SerializationError: Payload is not a JSON-serializable mapping (nothing was sent)
            ClientClosedError: Client closed before or while waiting
        """
        self._ensure_open_client()
        timeout_seconds = self.request_timeout if timeout is None else timeout
        request_id = self._ids.next_id()
        submitted_at = time.time_ns() // 1_000_000

        with correlation_context(str(request_id)):
            try:
                frame = encode_request(payload, request_id, submitted_at)
            except SerializationError as e:
                record_request(self.url, "serialization_error")
                logger.error(
                    "✗ Request %s not sent: %s",
                    request_id,
                    e.reason,
                    extra={"request_id": request_id, "payload_type": e.payload_type},
                )
                raise

            loop = asyncio.get_running_loop()
            pending = PendingRequest(
                request_id=request_id,
                submitted_at=submitted_at,
                future=loop.create_future(),
                started=time.perf_counter(),
            )
            self._pending.register(pending)
            pending.timer = loop.call_later(timeout_seconds, self._expire, request_id, timeout_seconds)
            logger.info(
                "→ Sending request %s",
                request_id,
                extra={"request_id": request_id, "timeout": timeout_seconds, "state": self.state.value},
            )

            try:
                await self._deliver(frame, kind="request")
                response = await pending.future
            except RequestTimeoutError:
                record_request(self.url, "timeout")
                raise
            except ClientClosedError:
                record_request(self.url, "closed")
                raise
            except asyncio.CancelledError:
                record_request(self.url, "cancelled")
                logger.debug("Request %s cancelled by caller", request_id, extra={"request_id": request_id})
                raise
            finally:
                self._pending.discard(request_id)

            latency = time.perf_counter() - pending.started
            record_request(self.url, "success")
            record_request_latency(self.url, latency)
            logger.info(
                "✓ Request %s answered in %.1fms",
                request_id,
                latency * 1000,
                extra={"request_id": request_id, "elapsed_ms": round(latency * 1000, 2)},
            )
            return response

    def send_request(
        self,
        payload: Mapping[str, Any],
        on_success: SuccessCallback,
        on_failure: FailureCallback | None = None,
    ) -> asyncio.Task[None]:
        """
        Callback form of ``request()``.

        Exactly one of ``on_success(response)`` or ``on_failure(error)`` runs.
        Without ``on_failure`` the error is logged. Exceptions raised by the
        callbacks are logged and go no further.

        Returns:
            The task running the request (already scheduled)
        """
        task = asyncio.create_task(self._request_with_callbacks(payload, on_success, on_failure or _log_request_failure))
        self._callback_tasks.add(task)
        task.add_done_callback(self._callback_tasks.discard)
        return task

    async def _request_with_callbacks(
        self,
        payload: Mapping[str, Any],
        on_success: SuccessCallback,
        on_failure: FailureCallback,
    ) -> None:
        try:
            response = await self.request(payload)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._invoke_callback(on_failure, e)
        else:
            self._invoke_callback(on_success, response)

    @staticmethod
    def _invoke_callback(callback: Callable[[Any], Any], arg: Any) -> None:
        try:
            callback(arg)
        except Exception:
            logger.exception(
                "Error in request callback %s",
                getattr(callback, "__name__", repr(callback)),
            )

    def _expire(self, request_id: int, timeout_seconds: float) -> None:
        if not self._pending.expire(request_id, timeout_seconds):
            return
        record_request_timeout(self.url)
        logger.warning(
            "✗ Request %s timed out after %.1fs",
            request_id,
            timeout_seconds,
            extra={"request_id": request_id, "timeout": timeout_seconds},
        )

    # Fire-and-forget

    async def send_message(self, payload: Any) -> None:
        """
        Send a payload without expecting a response.

        The payload is JSON-encoded when possible. Otherwise it goes out raw:
        str and bytes unchanged, anything else as ``str(payload)``.

        Raises:
            ClientClosedError: Client already closed
        """
        self._ensure_open_client()
        try:
            frame: str | bytes = encode_message(payload)
        except SerializationError as e:
            logger.warning(
                "Payload not JSON serializable, sending raw: %s",
                e.reason,
                extra={"payload_type": e.payload_type},
            )
            record_serialization_fallback(self.url)
            frame = payload if isinstance(payload, (str, bytes)) else str(payload)
        await self._deliver(frame, kind="message")

    # Delivery and reconnect

    async def _deliver(self, frame: str | bytes, kind: str) -> None:
        """Send now if open with no backlog, else queue behind it."""
        reason = "send_while_disconnected"
        if self._connection.is_open and not self._queue.has_backlog:
            if await self._connection.send(frame):
                record_message_sent(self.url, kind, "sent")
                return
            reason = "send_failed"
            logger.warning("Direct send failed, queueing frame", extra={"kind": kind})

        depth = self._queue.enqueue(frame)
        record_message_sent(self.url, kind, "queued")
        record_queue_depth(self.url, depth)

        if self._connection.is_open:
            await self._drain()
            if len(self._queue) and not self._connection.is_open:
                self._trigger_reconnect("send_failed")
        else:
            self._trigger_reconnect(reason)

    async def _drain(self) -> int:
        sent = await self._queue.drain_into(self._connection.send)
        record_queue_depth(self.url, len(self._queue))
        return sent

    def _trigger_reconnect(self, reason: str) -> None:
        """Start an on-demand connect cycle unless one is already running."""
        if self._closed:
            return
        if self._connect_task is None or self._connect_task.done():
            logger.info("Triggering reconnection", extra={"reason": reason, "queued": len(self._queue)})
            record_reconnection(self.url, reason)
            self._rerun_connect = False
            self._connect_task = asyncio.create_task(self._connect_cycle(reason), name="ws-connect")
            self._connect_task.add_done_callback(self._on_connect_cycle_done)
        else:
            # Rerun once the current cycle ends if frames are still stuck.
            self._rerun_connect = True
            logger.debug("Reconnection already in progress", extra={"reason": reason})

    def _on_connect_cycle_done(self, task: asyncio.Task[bool]) -> None:
        rerun, self._rerun_connect = self._rerun_connect, False
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "✗ Connect cycle crashed: %r",
                error,
                extra={"error": str(error), "type": type(error).__name__},
            )
        if rerun and len(self._queue) and not self._connection.is_open:
            self._trigger_reconnect("send_failed")

    async def _open_once(self, attempt: int) -> bool:
        try:
            return await self._connection.open()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(
                "✗ Unexpected error while connecting to %s",
                self.url,
                extra={"attempt": attempt + 1},
            )
            record_connect_attempt(self.url, "error")
            return False

    async def _connect_cycle(self, reason: str) -> bool:
        for attempt in range(self.max_connect_attempts):
            if await self._open_once(attempt):
                if self._queue.has_backlog:
                    await self._drain()
                return True
            if attempt < self.max_connect_attempts - 1:
                delay = self.retry_policy.get_delay(attempt)
                logger.debug(
                    "Retrying connect in %.2fs",
                    delay,
                    extra={"attempt": attempt + 1, "delay": round(delay, 3)},
                )
                await asyncio.sleep(delay)

        logger.error(
            "✗ Reconnection failed",
            extra={
                "reason": reason,
                "attempts": self.max_connect_attempts,
                "queued": len(self._queue),
            },
        )
        return False

    # Connection events

    async def _on_opened(self) -> None:
        if len(self._queue):
            logger.info("→ Draining %d queued frames", len(self._queue), extra={"queued": len(self._queue)})
            await self._drain()

    async def _on_closed(self, reason: str) -> None:
        logger.debug(
            "Connection closed",
            extra={"reason": reason, "pending": len(self._pending), "queued": len(self._queue)},
        )

    def _on_frame(self, frame: str | bytes) -> None:
        self._dispatcher.dispatch(frame)

    # Manual lifecycle

    async def open_socket(self) -> bool:
        """Open the connection now instead of waiting for a send."""
        self._ensure_open_client()
        return await self._connection.open()

    async def close_socket(self) -> None:
        """Close the connection, aborting any automatic connect in progress.

        Pending requests keep waiting; the next send reconnects.
        """
        task = self._connect_task
        self._connect_task = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        await self._connection.close()

    async def aclose(self) -> None:
        """Close the connection for good and fail every pending request."""
        if self._closed:
            return
        self._closed = True
        logger.info("→ Closing client", extra={"pending": len(self._pending), "queued": len(self._queue)})
        await self.close_socket()
        failed = self._pending.fail_all(lambda request_id: ClientClosedError(request_id, self.state.value))
        dropped = self._queue.clear()
        record_queue_depth(self.url, 0)
        logger.info("✓ Client closed", extra={"failed_requests": failed, "dropped_frames": dropped})

    def _ensure_open_client(self) -> None:
        if self._closed:
            raise ClientClosedError(state=self.state.value)

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return (
            f"WebSocketClient(url={self.url!r}, state={self.state.value}, "
            f"pending={len(self._pending)}, queued={len(self._queue)})"
        )
