"""Prometheus metrics registry for the WebSocket request client."""

import threading
from typing import Final

from prometheus_client import (  # type: ignore[import-untyped]
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

# Request/response metrics
ws_client_requests_total: Final = Counter(  # type: ignore[assignment]
    "ws_client_requests_total",
    "Total requests submitted",
    ["endpoint", "outcome"],
)

ws_client_responses_total: Final = Counter(  # type: ignore[assignment]
    "ws_client_responses_total",
    "Total inbound frames dispatched",
    ["endpoint", "outcome"],
)

ws_client_request_latency_seconds: Final = Histogram(  # type: ignore[assignment]
    "ws_client_request_latency_seconds",
    "Request round-trip latency in seconds",
    ["endpoint"],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0),
)

ws_client_request_timeout_total: Final = Counter(  # type: ignore[assignment]
    "ws_client_request_timeout_total",
    "Total requests that timed out waiting for a response",
    ["endpoint"],
)

# Outbound metrics
ws_client_messages_sent_total: Final = Counter(  # type: ignore[assignment]
    "ws_client_messages_sent_total",
    "Total outbound frames by kind and delivery outcome",
    ["endpoint", "kind", "outcome"],
)

ws_client_serialization_fallback_total: Final = Counter(  # type: ignore[assignment]
    "ws_client_serialization_fallback_total",
    "Total fire-and-forget messages sent raw after serialization failed",
    ["endpoint"],
)

ws_client_outbound_queue_depth: Final = Gauge(  # type: ignore[assignment]
    "ws_client_outbound_queue_depth",
    "Frames waiting in the outbound queue",
    ["endpoint"],
)

# Connection metrics
ws_client_connection_state: Final = Gauge(  # type: ignore[assignment]
    "ws_client_connection_state",
    "Current connection state",
    ["endpoint", "state"],
)

ws_client_connect_attempts_total: Final = Counter(  # type: ignore[assignment]
    "ws_client_connect_attempts_total",
    "Total connection attempts",
    ["endpoint", "outcome"],
)

ws_client_reconnection_total: Final = Counter(  # type: ignore[assignment]
    "ws_client_reconnection_total",
    "Total on-demand reconnections triggered",
    ["endpoint", "reason"],
)

ws_client_connection_closed_total: Final = Counter(  # type: ignore[assignment]
    "ws_client_connection_closed_total",
    "Total connection closures",
    ["endpoint", "reason"],
)

_CONNECTION_STATES: Final = ("disconnected", "connecting", "open", "closing")

_server_state = {"started": False}
_server_lock = threading.Lock()


def start_metrics_server(port: int | None = None) -> None:
    """Start Prometheus HTTP metrics server (idempotent).

    Defaults to WS_CLIENT_METRICS_PORT.
    """
    if port is None:
        from ws_request_client.const import WS_CLIENT_METRICS_PORT  # noqa: PLC0415

        port = WS_CLIENT_METRICS_PORT
    with _server_lock:
        if not _server_state["started"]:
            start_http_server(port)  # type: ignore[no-untyped-call]
            _server_state["started"] = True


def record_request(endpoint: str, outcome: str) -> None:
    """Record a finished request (success, timeout, closed, serialization_error)."""
    ws_client_requests_total.labels(endpoint=endpoint, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_response(endpoint: str, outcome: str) -> None:
    """Record an inbound frame and how the dispatcher handled it."""
    ws_client_responses_total.labels(endpoint=endpoint, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_request_latency(endpoint: str, latency_seconds: float) -> None:
    """Record request round-trip latency."""
    ws_client_request_latency_seconds.labels(endpoint=endpoint).observe(latency_seconds)  # type: ignore[no-untyped-call]


def record_request_timeout(endpoint: str) -> None:
    """Record a request timeout."""
    ws_client_request_timeout_total.labels(endpoint=endpoint).inc()  # type: ignore[no-untyped-call]


def record_message_sent(endpoint: str, kind: str, outcome: str) -> None:
    """Record an outbound frame (kind: request/message, outcome: sent/queued)."""
    ws_client_messages_sent_total.labels(endpoint=endpoint, kind=kind, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_serialization_fallback(endpoint: str) -> None:
    """Record a degraded raw send after a serialization failure."""
    ws_client_serialization_fallback_total.labels(endpoint=endpoint).inc()  # type: ignore[no-untyped-call]


def record_queue_depth(endpoint: str, depth: int) -> None:
    """Record outbound queue depth."""
    ws_client_outbound_queue_depth.labels(endpoint=endpoint).set(depth)  # type: ignore[no-untyped-call]


def record_connection_state(endpoint: str, state: str) -> None:
    """Record connection state change."""
    # Set gauge to 1 for current state, 0 for all others
    for s in _CONNECTION_STATES:
        value = 1 if s == state else 0
        ws_client_connection_state.labels(endpoint=endpoint, state=s).set(value)  # type: ignore[no-untyped-call]


def record_connect_attempt(endpoint: str, outcome: str) -> None:
    """Record a connection attempt."""
    ws_client_connect_attempts_total.labels(endpoint=endpoint, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_reconnection(endpoint: str, reason: str) -> None:
    """Record an on-demand reconnection."""
    ws_client_reconnection_total.labels(endpoint=endpoint, reason=reason).inc()  # type: ignore[no-untyped-call]


def record_connection_closed(endpoint: str, reason: str) -> None:
    """Record a connection closure."""
    ws_client_connection_closed_total.labels(endpoint=endpoint, reason=reason).inc()  # type: ignore[no-untyped-call]
