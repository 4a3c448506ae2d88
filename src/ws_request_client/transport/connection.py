"""WebSocket connection handle with explicit lifecycle states."""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections.abc import Awaitable, Callable
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK, InvalidHandshake, InvalidURI

from ws_request_client.const import DEFAULT_CLOSE_TIMEOUT_SECONDS, DEFAULT_OPEN_TIMEOUT_SECONDS
from ws_request_client.logging_abstraction import get_logger
from ws_request_client.metrics import record_connect_attempt, record_connection_closed, record_connection_state
from ws_request_client.transport.types import ConnectionState

logger = get_logger(__name__)

Frame = str | bytes
OpenedCallback = Callable[[], Awaitable[None]]
ClosedCallback = Callable[[str], Awaitable[None]]
FrameCallback = Callable[[Frame], None]

# Close reasons reported to on_closed
CLOSED_BY_CLIENT = "closed_by_client"
REMOTE_CLOSED = "remote_closed"
CONNECTION_LOST = "connection_lost"
SEND_FAILED = "send_failed"


class WebSocketConnection:
    """Owns at most one live WebSocket and reports its lifecycle as events.

    Every socket gets a generation number. Frames and close notifications
    from a socket whose generation is no longer current are dropped, so a
    replaced or closed socket never touches handle state.
    """

    def __init__(
        self,
        url: str,
        *,
        open_timeout: float = DEFAULT_OPEN_TIMEOUT_SECONDS,
        close_timeout: float = DEFAULT_CLOSE_TIMEOUT_SECONDS,
        connect_options: dict[str, Any] | None = None,
    ):
        """
        Initialize connection parameters.

        Args:
            url: ws:// or wss:// endpoint
            open_timeout: Opening handshake timeout in seconds
            close_timeout: Closing handshake timeout in seconds
            connect_options: Extra keyword arguments for websockets.connect
        """
        self.url = url
        self.open_timeout = open_timeout
        self.close_timeout = close_timeout
        self.connect_options: dict[str, Any] = dict(connect_options or {})

        self._ws: Any = None
        self._state = ConnectionState.DISCONNECTED
        self._generation = 0
        self._lifecycle_lock = asyncio.Lock()
        self._connect_attempt: asyncio.Future[Any] | None = None
        self._reader_task: asyncio.Task[None] | None = None

        self._on_opened: OpenedCallback | None = None
        self._on_closed: ClosedCallback | None = None
        self._on_frame: FrameCallback | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def generation(self) -> int:
        """Generation of the current (or most recent) socket."""
        return self._generation

    @property
    def is_open(self) -> bool:
        return self._state is ConnectionState.OPEN

    def subscribe(
        self,
        on_opened: OpenedCallback | None = None,
        on_closed: ClosedCallback | None = None,
        on_frame: FrameCallback | None = None,
    ) -> None:
        """Register event callbacks, replacing any previous ones."""
        self._on_opened = on_opened
        self._on_closed = on_closed
        self._on_frame = on_frame

    def _set_state(self, state: ConnectionState) -> None:
        if state is self._state:
            return
        logger.debug(
            "Connection state %s -> %s",
            self._state.value,
            state.value,
            extra={"url": self.url, "from": self._state.value, "to": state.value},
        )
        self._state = state
        record_connection_state(self.url, state.value)

    async def _connect(self) -> Any:
        """Run one opening handshake and return the client connection."""
        return await websockets.connect(
            self.url,
            open_timeout=self.open_timeout,
            close_timeout=self.close_timeout,
            **self.connect_options,
        )

    async def open(self) -> bool:
        """
        Open the WebSocket (no-op if already open).

        Returns:
            True if the connection is open, False if the handshake failed,
            timed out, or was aborted by close()
        """
        async with self._lifecycle_lock:
            if self._state is ConnectionState.OPEN:
                return True

            self._set_state(ConnectionState.CONNECTING)
            start_time = time.perf_counter()
            logger.info(
                "→ Connecting to %s (timeout: %.1fs)",
                self.url,
                self.open_timeout,
                extra={"url": self.url, "timeout": self.open_timeout},
            )
            attempt = asyncio.ensure_future(self._connect())
            self._connect_attempt = attempt
            try:
                await asyncio.wait({attempt})
            except asyncio.CancelledError:
                attempt.cancel()
                self._set_state(ConnectionState.DISCONNECTED)
                raise
            finally:
                self._connect_attempt = None

            elapsed_ms = (time.perf_counter() - start_time) * 1000
            if attempt.cancelled():
                logger.info(
                    "Connect to %s aborted by close after %.1fms",
                    self.url,
                    elapsed_ms,
                    extra={"url": self.url, "elapsed_ms": elapsed_ms},
                )
                record_connect_attempt(self.url, "aborted")
                self._set_state(ConnectionState.DISCONNECTED)
                return False

            error = attempt.exception()
            if error is not None:
                if not isinstance(error, (OSError, TimeoutError, InvalidHandshake, InvalidURI)):
                    self._set_state(ConnectionState.DISCONNECTED)
                    raise error
                logger.warning(
                    "✗ Connect to %s failed after %.1fms: %s",
                    self.url,
                    elapsed_ms,
                    error,
                    extra={"url": self.url, "elapsed_ms": elapsed_ms, "error": str(error)},
                )
                record_connect_attempt(self.url, "failure")
                self._set_state(ConnectionState.DISCONNECTED)
                return False

            self._ws = attempt.result()
            self._generation += 1
            self._set_state(ConnectionState.OPEN)
            self._reader_task = asyncio.create_task(
                self._read_loop(self._ws, self._generation),
                name=f"ws-reader-{self._generation}",
            )
            record_connect_attempt(self.url, "success")
            logger.info(
                "✓ Connected to %s in %.1fms",
                self.url,
                elapsed_ms,
                extra={"url": self.url, "elapsed_ms": elapsed_ms, "generation": self._generation},
            )

        await self._emit_opened()
        return True

    async def send(self, data: Frame) -> bool:
        """
        Send one frame.

        Args:
            data: Text (str) or binary (bytes) frame

        Returns:
            True if written, False if not open or the write failed
        """
        ws = self._ws
        if self._state is not ConnectionState.OPEN or ws is None:
            logger.debug(
                "Cannot send: connection %s",
                self._state.value,
                extra={"url": self.url, "state": self._state.value},
            )
            return False

        generation = self._generation
        try:
            await ws.send(data)
        except (ConnectionClosed, OSError) as e:
            logger.warning(
                "✗ Send to %s failed: %s",
                self.url,
                e,
                extra={"url": self.url, "error": str(e), "generation": generation},
            )
            await self._handle_lost(generation, SEND_FAILED)
            return False
        logger.debug("Sent frame", extra={"url": self.url, "size": len(data)})
        return True

    async def close(self) -> None:
        """Abort any in-flight connect and close the current socket."""
        attempt = self._connect_attempt
        if attempt is not None and not attempt.done():
            logger.info("→ Aborting in-flight connect to %s", self.url, extra={"url": self.url})
            attempt.cancel()

        async with self._lifecycle_lock:
            ws = self._ws
            if ws is None:
                self._set_state(ConnectionState.DISCONNECTED)
                return

            self._generation += 1
            self._ws = None
            reader = self._reader_task
            self._reader_task = None
            self._set_state(ConnectionState.CLOSING)
            logger.info("→ Closing connection to %s", self.url, extra={"url": self.url})
            try:
                await ws.close()
            finally:
                self._set_state(ConnectionState.DISCONNECTED)

        if reader is not None and reader is not asyncio.current_task():
            reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader

        record_connection_closed(self.url, CLOSED_BY_CLIENT)
        logger.info("✓ Connection to %s closed", self.url, extra={"url": self.url})
        await self._emit_closed(CLOSED_BY_CLIENT)

    async def _read_loop(self, ws: Any, generation: int) -> None:
        reason = REMOTE_CLOSED
        try:
            async for frame in ws:
                if generation != self._generation:
                    return
                self._emit_frame(frame)
        except ConnectionClosedOK:
            reason = REMOTE_CLOSED
        except (ConnectionClosed, OSError) as e:
            reason = CONNECTION_LOST
            logger.warning(
                "✗ Connection to %s lost: %s",
                self.url,
                e,
                extra={"url": self.url, "error": str(e), "generation": generation},
            )
        await self._handle_lost(generation, reason)

    async def _handle_lost(self, generation: int, reason: str) -> None:
        if generation != self._generation:
            return
        ws = self._ws
        self._generation += 1
        self._ws = None
        self._reader_task = None
        self._set_state(ConnectionState.DISCONNECTED)
        record_connection_closed(self.url, reason)
        logger.info(
            "Connection to %s closed: %s",
            self.url,
            reason,
            extra={"url": self.url, "reason": reason, "generation": generation},
        )
        if ws is not None and reason == SEND_FAILED:
            await ws.close()
        await self._emit_closed(reason)

    async def _emit_opened(self) -> None:
        if self._on_opened is None:
            return
        try:
            await self._on_opened()
        except Exception:
            logger.exception("Error in opened handler", extra={"url": self.url})

    async def _emit_closed(self, reason: str) -> None:
        if self._on_closed is None:
            return
        try:
            await self._on_closed(reason)
        except Exception:
            logger.exception("Error in closed handler", extra={"url": self.url, "reason": reason})

    def _emit_frame(self, frame: Frame) -> None:
        if self._on_frame is None:
            return
        try:
            self._on_frame(frame)
        except Exception:
            logger.exception("Error in frame handler", extra={"url": self.url})

    def __repr__(self) -> str:
        return f"WebSocketConnection(url={self.url!r}, state={self._state.value}, generation={self._generation})"
