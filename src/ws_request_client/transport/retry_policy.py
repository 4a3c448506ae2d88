"""Retry policy and timeout configuration for the WebSocket request client."""

from __future__ import annotations

import random

from ws_request_client.const import (
    DEFAULT_CLOSE_TIMEOUT_SECONDS,
    DEFAULT_OPEN_TIMEOUT_SECONDS,
    DEFAULT_RECONNECT_BASE_DELAY_SECONDS,
    DEFAULT_RECONNECT_JITTER_FACTOR,
    DEFAULT_RECONNECT_MAX_DELAY_SECONDS,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
)


class ClientTimeouts:
    """Timeout configuration for one client instance.

    The request timeout is the per-request deadline; open/close timeouts
    bound the WebSocket opening and closing handshakes.
    """

    def __init__(
        self,
        request_timeout_seconds: float = DEFAULT_REQUEST_TIMEOUT_SECONDS,
        open_timeout_seconds: float = DEFAULT_OPEN_TIMEOUT_SECONDS,
        close_timeout_seconds: float = DEFAULT_CLOSE_TIMEOUT_SECONDS,
    ):
        """Initialize timeout configuration.

        Args:
            request_timeout_seconds: Deadline for a matching response (default: 5.0s)
            open_timeout_seconds: WebSocket opening handshake timeout (default: 10.0s)
            close_timeout_seconds: WebSocket closing handshake timeout (default: 5.0s)

        Raises:
            ValueError: Any timeout is not positive
        """
        for name, value in (
            ("request_timeout_seconds", request_timeout_seconds),
            ("open_timeout_seconds", open_timeout_seconds),
            ("close_timeout_seconds", close_timeout_seconds),
        ):
            if value <= 0:
                msg = f"{name} must be positive, got {value}"
                raise ValueError(msg)
        self.request_timeout_seconds = request_timeout_seconds
        self.open_timeout_seconds = open_timeout_seconds
        self.close_timeout_seconds = close_timeout_seconds

    def __repr__(self) -> str:
        """String representation showing all timeouts."""
        return (
            f"ClientTimeouts(request={self.request_timeout_seconds:.3f}s, "
            f"open={self.open_timeout_seconds:.1f}s, "
            f"close={self.close_timeout_seconds:.1f}s)"
        )


class RetryPolicy:
    """Backoff between WebSocket handshake attempts of one connect cycle.

    Attempt ``n`` (0-indexed count of handshakes that already failed) waits
    ``base * 2**n``, capped at ``max_delay_seconds``, plus up to
    ``jitter_factor`` of that delay at random.
    """

    def __init__(
        self,
        base_delay_seconds: float = DEFAULT_RECONNECT_BASE_DELAY_SECONDS,
        max_delay_seconds: float = DEFAULT_RECONNECT_MAX_DELAY_SECONDS,
        jitter_factor: float = DEFAULT_RECONNECT_JITTER_FACTOR,
    ):
        """Initialize retry policy.

        Args:
            base_delay_seconds: Wait after the first failed handshake (default: 0.25s)
            max_delay_seconds: Cap on the backoff before jitter (default: 2.0s)
            jitter_factor: Extra random wait as a fraction of the delay (default: 0.2)

        Raises:
            ValueError: Negative delay, cap below base, or jitter outside [0, 1]
        """
        if base_delay_seconds < 0 or max_delay_seconds < 0:
            msg = f"delays must be non-negative, got base={base_delay_seconds} max={max_delay_seconds}"
            raise ValueError(msg)
        if max_delay_seconds < base_delay_seconds:
            msg = f"max_delay_seconds ({max_delay_seconds}) is below base_delay_seconds ({base_delay_seconds})"
            raise ValueError(msg)
        if not 0.0 <= jitter_factor <= 1.0:
            msg = f"jitter_factor must be within [0, 1], got {jitter_factor}"
            raise ValueError(msg)
        self.base_delay_seconds = base_delay_seconds
        self.max_delay_seconds = max_delay_seconds
        self.jitter_factor = jitter_factor

    def get_delay(self, attempt: int) -> float:
        """Seconds to wait before the handshake following failed attempt ``attempt``."""
        backoff = min(self.base_delay_seconds * (2**attempt), self.max_delay_seconds)
        return backoff + random.uniform(0, backoff * self.jitter_factor)

    def worst_case_wait(self, attempts: int) -> float:
        """Longest total backoff a cycle of ``attempts`` handshakes can spend sleeping."""
        return sum(
            min(self.base_delay_seconds * (2**n), self.max_delay_seconds) * (1 + self.jitter_factor)
            for n in range(max(attempts - 1, 0))
        )

    def __repr__(self) -> str:
        return (
            f"RetryPolicy(base={self.base_delay_seconds}s, "
            f"cap={self.max_delay_seconds}s, "
            f"jitter={self.jitter_factor:.0%})"
        )
