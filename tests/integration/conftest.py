"""Fixtures for integration tests."""

import asyncio
import json
import logging
from collections.abc import AsyncGenerator
from enum import Enum
from typing import Any

import pytest
import websockets
from websockets.exceptions import ConnectionClosed

logger = logging.getLogger(__name__)


class ResponseMode(Enum):
    """Response mode for mock WebSocket server."""

    ECHO = "echo"  # Immediate response echoing the request
    DELAY = "delay"  # Delayed response (simulates slow peer)
    SILENT = "silent"  # Never respond (simulates timeout)
    DISCONNECT = "disconnect"  # Accept handshake then close immediately
    GARBAGE_FIRST = "garbage_first"  # Send a non-JSON frame, then the response


class MockWebSocketServer:
    """Mock WebSocket server for integration testing."""

    def __init__(
        self,
        response_mode: ResponseMode = ResponseMode.ECHO,
        response_delay: float = 0.0,
        host: str = "127.0.0.1",
        port: int = 0,
    ):
        """Initialize mock WebSocket server.

        Args:
            response_mode: How the server should respond
            response_delay: Delay before responding (for DELAY mode)
            host: Host to bind to
            port: Port to bind to (0 = OS assigns)

        """
        self.response_mode = response_mode
        self.response_delay = response_delay
        self.host = host
        self.port = port
        self.server: Any = None
        self.received: list[Any] = []
        self.connection_count = 0
        self._connections: set[Any] = set()

    @property
    def url(self) -> str:
        return f"ws://{self.host}:{self.port}"

    async def start(self) -> None:
        """Start the mock WebSocket server."""
        self.server = await websockets.serve(self._handle_client, self.host, self.port)
        if self.port == 0:
            self.port = next(iter(self.server.sockets)).getsockname()[1]
        logger.info("Mock WebSocket server started on %s", self.url)

    async def stop(self) -> None:
        """Stop the mock WebSocket server."""
        if self.server:
            self.server.close()
            await self.server.wait_closed()
            self.server = None
            logger.info("Mock WebSocket server stopped")

    def set_response_mode(self, mode: str) -> None:
        """Change response mode dynamically (by value, e.g. "silent")."""
        self.response_mode = ResponseMode(mode)

    async def disconnect_all(self) -> None:
        """Close every open client connection from the server side."""
        for websocket in list(self._connections):
            await websocket.close()

    async def _handle_client(self, websocket: Any) -> None:
        """Handle incoming client connection."""
        self.connection_count += 1
        self._connections.add(websocket)
        logger.info("Connection #%d", self.connection_count)
        try:
            if self.response_mode == ResponseMode.DISCONNECT:
                logger.info("Accepting then disconnecting")
                await websocket.close()
                return

            async for message in websocket:
                try:
                    data = json.loads(message)
                except json.JSONDecodeError:
                    data = message
                self.received.append(data)
                await self._send_response(websocket, data)
        except ConnectionClosed:
            logger.info("Client connection closed")
        finally:
            self._connections.discard(websocket)

    async def _send_response(self, websocket: Any, data: Any) -> None:
        """Send response based on response mode."""
        if not isinstance(data, dict) or "requestid" not in data:
            return
        if self.response_mode == ResponseMode.SILENT:
            logger.info("Silent mode - not responding")
            return
        if self.response_mode == ResponseMode.DELAY:
            await asyncio.sleep(self.response_delay)
        if self.response_mode == ResponseMode.GARBAGE_FIRST:
            await websocket.send("<<not json>>")
        await websocket.send(json.dumps({"requestid": data["requestid"], "echo": data}))


@pytest.fixture
async def mock_ws_server() -> AsyncGenerator[MockWebSocketServer]:
    """Fixture providing a mock WebSocket server."""
    server = MockWebSocketServer()
    await server.start()
    yield server
    await server.stop()


@pytest.fixture
async def mock_ws_server_silent() -> AsyncGenerator[MockWebSocketServer]:
    """Fixture providing a mock WebSocket server that never responds."""
    server = MockWebSocketServer(response_mode=ResponseMode.SILENT)
    await server.start()
    yield server
    await server.stop()


@pytest.fixture
async def mock_ws_server_with_delay() -> AsyncGenerator[MockWebSocketServer]:
    """Fixture providing a mock WebSocket server with delayed responses."""
    server = MockWebSocketServer(response_mode=ResponseMode.DELAY, response_delay=0.02)
    await server.start()
    yield server
    await server.stop()


@pytest.fixture
async def make_ws_server() -> AsyncGenerator[Any]:
    """Factory fixture: ``await make_ws_server("garbage_first")`` starts a server in that mode."""
    servers: list[MockWebSocketServer] = []

    async def _make(response_mode: str = "echo", response_delay: float = 0.0) -> MockWebSocketServer:
        server = MockWebSocketServer(response_mode=ResponseMode(response_mode), response_delay=response_delay)
        await server.start()
        servers.append(server)
        return server

    yield _make
    for server in servers:
        await server.stop()
