"""Sliding-window request limiter keyed by credential (single process only)."""
from __future__ import annotations
import threading
import time
from collections import defaultdict, deque
from typing import Callable, Deque, Dict


class SlidingWindowRateLimiter:
    """
    Allow at most ``max_requests`` per ``window_s`` seconds for each key.

    Each key keeps a deque of request timestamps; entries older than the
    window are evicted on every call, so memory per key is bounded by
    ``max_requests``.
    """

    def __init__(self, max_requests: int, window_s: float, clock: Callable[[], float] = time.monotonic):
        if max_requests <= 0 or window_s <= 0:
            raise ValueError("max_requests and window_s must be positive")
        self.max_requests = max_requests
        self.window_s = window_s
        self._clock = clock
        self._hits: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()

    def allow(self, key: str) -> bool:
        """Record a request for ``key``; False when the key is over its limit."""
        with self._lock:
            now = self._clock()
            hits = self._hits[key]
            while hits and now - hits[0] >= self.window_s:
                hits.popleft()
            if len(hits) >= self.max_requests:
                return False
            hits.append(now)
            return True

    def remaining(self, key: str) -> int:
        with self._lock:
            now = self._clock()
            hits = self._hits.get(key, ())
            return self.max_requests - sum(1 for t in hits if now - t < self.window_s)
