"""Sliding-window rate limiter for inbound requests."""

import logging
import time
from collections import deque
from collections.abc import Callable

logger = logging.getLogger(__name__)


class SlidingWindowRateLimiter:
    """Allow at most ``max_requests`` within any ``window_seconds`` span.

    Rejected attempts are not counted against the window.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        time_func: Callable[[], float] | None = None,
    ):
        """Initialize the limiter.

        Args:
            max_requests: Requests admitted per window
            window_seconds: Window length in seconds
            time_func: Callable returning current time in seconds (default: time.monotonic).
                       Inject a mock clock for deterministic testing.
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._time_func = time_func or time.monotonic
        self._timestamps: deque[float] = deque()

    def _prune(self, now: float) -> None:
        cutoff = now - self.window_seconds
        while self._timestamps and self._timestamps[0] < cutoff:
            self._timestamps.popleft()

    def is_limited(self) -> bool:
        """Record an attempt; return True if it must be rejected."""
        now = self._time_func()
        self._prune(now)
        if len(self._timestamps) >= self.max_requests:
            logger.warning(
                "Rate limited: %d requests in %gs", self.max_requests, self.window_seconds
            )
            return True
        self._timestamps.append(now)
        return False

    @property
    def remaining(self) -> int:
        self._prune(self._time_func())
        return max(0, self.max_requests - len(self._timestamps))
