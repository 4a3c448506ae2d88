"""Logging abstraction layer for the WebSocket request client.

Provides dual-format logging (JSON + human-readable) with correlation tracking
and structured context. The library only creates loggers; handlers are attached
by ``configure_logging()``, which applications call when they want output.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Mapping
from datetime import UTC, datetime
from pathlib import Path
from typing import cast, override

from ws_request_client.correlation import get_correlation_id

__all__ = [
    "ClientLogger",
    "HumanReadableFormatter",
    "JSONFormatter",
    "configure_logging",
    "get_logger",
]


class JSONFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    @override
    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: dict[str, object] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }

        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, Mapping) and extra_data:
            context_map = cast("Mapping[str, object]", extra_data)
            log_data["context"] = dict(context_map)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """Formatter that outputs human-readable logs with correlation IDs."""

    def __init__(self) -> None:
        # Format: timestamp level [module:line] correlation_id > message
        super().__init__(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s [%(module)s:%(lineno)d] %(correlation_id)s > %(message)s",
            datefmt="%m/%d/%y %H:%M:%S",
        )

    @override
    def format(self, record: logging.LogRecord) -> str:
        """Format log record as human-readable text."""
        correlation_id = get_correlation_id()
        record.correlation_id = f"[{correlation_id[:13]}]" if correlation_id else "[-------------]"

        formatted = super().format(record)

        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, Mapping) and extra_data:
            context_map = cast("Mapping[str, object]", extra_data)
            context_str = " | ".join(f"{k}={v}" for k, v in context_map.items())
            formatted = f"{formatted} | {context_str}"

        return formatted


class ClientLogger:
    """Thin wrapper over ``logging.Logger`` that carries structured context.

    Context passed as ``extra`` is stored on the record as ``extra_data`` so the
    formatters above can render it, and so tests can inspect it via caplog.
    """

    def __init__(self, name: str) -> None:
        self.name: str = name
        self.logger: logging.Logger = logging.getLogger(name)

    def _log(
        self,
        level: int,
        msg: str,
        *args: object,
        extra: Mapping[str, object] | None = None,
        exc_info: bool = False,
    ) -> None:
        extra_payload: Mapping[str, object] | None = None
        if extra:
            extra_payload = {"extra_data": dict(extra)}

        self.logger.log(level, msg, *args, extra=extra_payload, exc_info=exc_info, stacklevel=3)

    def debug(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log debug message with optional structured context."""
        self._log(logging.DEBUG, msg, *args, extra=extra)

    def info(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log info message with optional structured context."""
        self._log(logging.INFO, msg, *args, extra=extra)

    def warning(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log warning message with optional structured context."""
        self._log(logging.WARNING, msg, *args, extra=extra)

    def error(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log error message with optional structured context."""
        self._log(logging.ERROR, msg, *args, extra=extra)

    def critical(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log critical message with optional structured context."""
        self._log(logging.CRITICAL, msg, *args, extra=extra)

    def exception(self, msg: str, *args: object, extra: Mapping[str, object] | None = None) -> None:
        """Log exception with traceback and optional structured context."""
        self._log(logging.ERROR, msg, *args, extra=extra, exc_info=True)

    def is_enabled_for(self, level: int) -> bool:
        return self.logger.isEnabledFor(level)


def get_logger(name: str) -> ClientLogger:
    """Get a ClientLogger for ``name`` (typically ``__name__``)."""
    return ClientLogger(name)


def configure_logging(
    log_format: str | None = None,
    json_file: str | Path | None = None,
    human_output: str | None = None,
    level: int | None = None,
) -> logging.Logger:
    """Attach handlers to the package logger.

    Defaults come from the WS_CLIENT_LOG_* environment variables (see ``const``).
    Calling it again replaces the handlers installed by the previous call.

    Args:
        log_format: "json", "human", or "both"
        json_file: Path for JSON output (JSON output is file-only)
        human_output: "stdout", "stderr", or a file path for human-readable output
        level: Log level (defaults to DEBUG when WS_CLIENT_DEBUG is set, else INFO)

    Returns:
        The configured package logger
    """
    from ws_request_client.const import (  # noqa: PLC0415
        WS_CLIENT_DEBUG,
        WS_CLIENT_LOG_FORMAT,
        WS_CLIENT_LOG_HUMAN_OUTPUT,
        WS_CLIENT_LOG_JSON_FILE,
        WS_CLIENT_LOG_NAME,
    )

    log_format = log_format or WS_CLIENT_LOG_FORMAT
    json_file = json_file or WS_CLIENT_LOG_JSON_FILE
    human_output = human_output or WS_CLIENT_LOG_HUMAN_OUTPUT
    if level is None:
        level = logging.DEBUG if WS_CLIENT_DEBUG else logging.INFO

    package_logger = logging.getLogger(WS_CLIENT_LOG_NAME)
    package_logger.setLevel(level)
    for handler in list(package_logger.handlers):
        if getattr(handler, "_ws_client_handler", False):
            package_logger.removeHandler(handler)
            handler.close()

    handlers: list[logging.Handler] = []

    if log_format in ("json", "both") and json_file:
        try:
            json_path = Path(json_file)
            json_path.parent.mkdir(parents=True, exist_ok=True)
            json_handler = logging.FileHandler(json_path, mode="a")
            json_handler.setFormatter(JSONFormatter())
            handlers.append(json_handler)
        except OSError as e:
            print(f"Warning: Failed to create JSON log file {json_file}: {e}", file=sys.stderr)

    if log_format in ("human", "both"):
        if human_output == "stdout":
            human_handler: logging.Handler = logging.StreamHandler(sys.stdout)
        elif human_output == "stderr":
            human_handler = logging.StreamHandler(sys.stderr)
        else:
            try:
                human_path = Path(human_output)
                human_path.parent.mkdir(parents=True, exist_ok=True)
                human_handler = logging.FileHandler(human_path, mode="a")
            except OSError as e:
                print(f"Warning: Failed to create human log file {human_output}: {e}", file=sys.stderr)
                human_handler = logging.StreamHandler(sys.stderr)
        human_handler.setFormatter(HumanReadableFormatter())
        handlers.append(human_handler)

    for handler in handlers:
        handler.setLevel(level)
        handler._ws_client_handler = True  # type: ignore[attr-defined]
        package_logger.addHandler(handler)

    return package_logger
