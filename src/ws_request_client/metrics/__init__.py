"""Metrics module."""

from .registry import (
    record_connect_attempt,
    record_connection_closed,
    record_connection_state,
    record_message_sent,
    record_queue_depth,
    record_reconnection,
    record_request,
    record_request_latency,
    record_request_timeout,
    record_response,
    record_serialization_fallback,
    start_metrics_server,
)

__all__ = [
    "record_connect_attempt",
    "record_connection_closed",
    "record_connection_state",
    "record_message_sent",
    "record_queue_depth",
    "record_reconnection",
    "record_request",
    "record_request_latency",
    "record_request_timeout",
    "record_response",
    "record_serialization_fallback",
    "start_metrics_server",
]
