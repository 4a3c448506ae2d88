import os

__all__ = [
    "DEFAULT_CLOSE_TIMEOUT_SECONDS",
    "DEFAULT_OPEN_TIMEOUT_SECONDS",
    "DEFAULT_RECONNECT_BASE_DELAY_SECONDS",
    "DEFAULT_RECONNECT_JITTER_FACTOR",
    "DEFAULT_RECONNECT_MAX_DELAY_SECONDS",
    "DEFAULT_REQUEST_TIMEOUT_SECONDS",
    "REQUEST_ID_FIELD",
    "SENT_FIELD",
    "WS_CLIENT_DEBUG",
    "WS_CLIENT_LOG_FORMAT",
    "WS_CLIENT_LOG_HUMAN_OUTPUT",
    "WS_CLIENT_LOG_JSON_FILE",
    "WS_CLIENT_LOG_NAME",
    "WS_CLIENT_METRICS_PORT",
    "WS_CLIENT_PERF_THRESHOLD_MS",
    "WS_CLIENT_PERF_TRACKING",
    "YES_ANSWER",
]

YES_ANSWER = ("true", "1", "yes", "y", "t", 1, "on", "o")
WS_CLIENT_LOG_NAME: str = "ws_request_client"

# Wire envelope keys, matched case-sensitively.
REQUEST_ID_FIELD: str = "requestid"
SENT_FIELD: str = "sent"

DEFAULT_REQUEST_TIMEOUT_SECONDS: float = 5.0
DEFAULT_OPEN_TIMEOUT_SECONDS: float = 10.0
DEFAULT_CLOSE_TIMEOUT_SECONDS: float = 5.0

# Backoff between handshake attempts within one connect cycle.
DEFAULT_RECONNECT_BASE_DELAY_SECONDS: float = 0.25
DEFAULT_RECONNECT_MAX_DELAY_SECONDS: float = 2.0
DEFAULT_RECONNECT_JITTER_FACTOR: float = 0.2

WS_CLIENT_DEBUG = os.environ.get("WS_CLIENT_DEBUG", "0").casefold() in YES_ANSWER

_log_format = os.environ.get("WS_CLIENT_LOG_FORMAT", "human").casefold()
WS_CLIENT_LOG_FORMAT: str = _log_format if _log_format in ("json", "human", "both") else "human"
_json_file = os.environ.get("WS_CLIENT_LOG_JSON_FILE")
WS_CLIENT_LOG_JSON_FILE: str | None = _json_file if _json_file else None
WS_CLIENT_LOG_HUMAN_OUTPUT: str = os.environ.get("WS_CLIENT_LOG_HUMAN_OUTPUT", "stderr")

WS_CLIENT_PERF_TRACKING: bool = os.environ.get("WS_CLIENT_PERF_TRACKING", "0").casefold() in YES_ANSWER
_perf_threshold = os.environ.get("WS_CLIENT_PERF_THRESHOLD_MS", "250")
try:
    _perf_threshold_value: int = int(_perf_threshold) if _perf_threshold else 250
except ValueError:
    _perf_threshold_value = 250
WS_CLIENT_PERF_THRESHOLD_MS: int = _perf_threshold_value

_metrics_port = os.environ.get("WS_CLIENT_METRICS_PORT", "9400")
if not _metrics_port:
    _metrics_port_value: int = 9400
else:
    try:
        _metrics_port_value = int(_metrics_port)
    except ValueError:
        _metrics_port_value = 9400
WS_CLIENT_METRICS_PORT: int = _metrics_port_value
