"""Per-client request limits."""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable
from threading import Lock


class RateLimiter:
    """Sliding-window rate limiter keyed by an arbitrary client key."""

    def __init__(
        self,
        max_calls: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_calls = max_calls
        self.window_seconds = window_seconds
        self._clock = clock
        self._events: dict[str, deque[float]] = {}
        self._lock = Lock()

    def allow(self, key: str) -> bool:
        """Count a call for ``key``; return False once the window is full."""
        now = self._clock()
        with self._lock:
            queue = self._events.setdefault(key, deque())
            cutoff = now - self.window_seconds
            while queue and queue[0] <= cutoff:
                queue.popleft()
            if len(queue) >= self.max_calls:
                return False
            queue.append(now)
            return True

    def retry_after(self, key: str) -> int:
        """Seconds until ``key`` frees a slot, rounded up."""
        with self._lock:
            queue = self._events.get(key)
            if not queue:
                return 0
            remaining = queue[0] + self.window_seconds - self._clock()
        return max(0, int(remaining + 0.999))
