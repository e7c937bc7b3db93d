from __future__ import annotations

import time
from abc import ABC, abstractmethod
from threading import Lock
from typing import Callable, Dict, Tuple


# PUBLIC_INTERFACE
class RateLimiter(ABC):
    """Decides whether a caller identified by key may make another request."""

    @abstractmethod
    def allow(self, key: str) -> bool:
        """Record a request for key and return False if it exceeds the limit."""


# PUBLIC_INTERFACE
class FixedWindowRateLimiter(RateLimiter):
    """
    Thread-safe in-memory limiter allowing max_requests per key per window.

    Counters reset when a key's window expires; expired keys are pruned lazily.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._lock = Lock()
        self._windows: Dict[str, Tuple[float, int]] = {}

    def allow(self, key: str) -> bool:
        now = self._clock()
        with self._lock:
            self._prune(now)
            started, count = self._windows.get(key, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0
            count += 1
            self._windows[key] = (started, count)
            return count <= self.max_requests

    def _prune(self, now: float) -> None:
        expired = [k for k, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for k in expired:
            del self._windows[k]
