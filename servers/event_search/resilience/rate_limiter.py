"""Sliding-window rate limiter for outbound provider calls."""

import time
from collections import defaultdict, deque
from typing import Any, Callable, Optional

import structlog

logger = structlog.get_logger()


class RateLimitExceededError(Exception):
    """Raised when a key has used up its request budget for the window."""

    def __init__(self, key: str, retry_after: float):
        super().__init__(f"Rate limit exceeded for '{key}', retry after {retry_after:.1f}s")
        self.key = key
        self.retry_after = retry_after


class RateLimiter:
    """Allow at most max_requests per key within a sliding window.

    Thresholds and the clock are injected so callers (and tests) control
    them; nothing is shared between instances.
    """

    def __init__(
        self,
        max_requests: int = 60,
        window_seconds: float = 60.0,
        clock: Optional[Callable[[], float]] = None,
    ):
        """Initialize rate limiter.

        Args:
            max_requests: Requests allowed per key per window
            window_seconds: Length of the sliding window
            clock: Monotonic seconds source, defaults to time.monotonic
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock or time.monotonic
        self._calls: dict[str, deque[float]] = defaultdict(deque)

    def _prune(self, key: str, now: float) -> deque[float]:
        calls = self._calls[key]
        while calls and now - calls[0] >= self.window_seconds:
            calls.popleft()
        return calls

    def remaining(self, key: str) -> int:
        """Requests still allowed for key in the current window."""
        calls = self._prune(key, self.clock())
        return max(0, self.max_requests - len(calls))

    def acquire(self, key: str) -> None:
        """Record one request for key.

        Raises:
            RateLimitExceededError: If the window budget is used up
        """
        now = self.clock()
        calls = self._prune(key, now)
        if len(calls) >= self.max_requests:
            retry_after = self.window_seconds - (now - calls[0])
            logger.warning(
                "rate_limit_exceeded",
                key=key,
                max_requests=self.max_requests,
                retry_after=round(retry_after, 2),
            )
            raise RateLimitExceededError(key, retry_after)
        calls.append(now)

    def reset(self, key: Optional[str] = None) -> None:
        """Forget recorded requests for one key, or for all keys."""
        if key:
            self._calls.pop(key, None)
        else:
            self._calls.clear()

    def get_status(self) -> dict[str, Any]:
        """Current usage per key."""
        return {
            key: {
                "used": self.max_requests - self.remaining(key),
                "remaining": self.remaining(key),
                "max_requests": self.max_requests,
                "window_seconds": self.window_seconds,
            }
            for key in list(self._calls)
        }
