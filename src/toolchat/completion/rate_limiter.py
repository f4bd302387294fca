"""Client-side sliding-window rate limiter."""

import time
from collections import deque
from collections.abc import Callable

from ..config import RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_SECONDS


class RateLimiter:
    """Admits at most ``max_requests`` calls per ``window`` seconds."""

    def __init__(
        self,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        window: float = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._max_requests = max_requests
        self._window = window
        self._clock = clock
        self._requests: deque[float] = deque()

    def _evict(self, now: float) -> None:
        while self._requests and now - self._requests[0] >= self._window:
            self._requests.popleft()

    def try_acquire(self) -> bool:
        """Record a request if the window has room.

        Returns:
            True if the request is admitted, False if the window is full
        """
        now = self._clock()
        self._evict(now)
        if len(self._requests) >= self._max_requests:
            return False
        self._requests.append(now)
        return True

    def reset_after(self) -> float:
        """Seconds until the oldest request leaves the window."""
        now = self._clock()
        self._evict(now)
        if not self._requests:
            return 0.0
        return max(0.0, self._requests[0] + self._window - now)
