from __future__ import annotations
from collections import deque
from threading import Lock
from typing import Callable, Deque, Dict, Optional
import time


class SlidingWindowLimiter:
    """At most `max_requests` per `window_ms` for each caller key."""

    def __init__(self, max_requests: int, window_ms: int, clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window_s = window_ms / 1000.0
        self.clock = clock
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = Lock()
        self._last_sweep = clock()

    def _prune(self, key: str, now: float) -> Optional[Deque[float]]:
        hits = self._hits.get(key)
        if hits is None:
            return None
        while hits and now - hits[0] >= self.window_s:
            hits.popleft()
        if not hits:
            del self._hits[key]
            return None
        return hits

    def _sweep(self, now: float) -> None:
        # callers that went quiet; at most once per window
        if now - self._last_sweep < self.window_s:
            return
        self._last_sweep = now
        for key in [k for k, hits in self._hits.items() if now - hits[-1] >= self.window_s]:
            del self._hits[key]

    def hit(self, key: str) -> Optional[float]:
        """Record a request. Returns None if allowed, else seconds until a slot frees up."""
        now = self.clock()
        with self._lock:
            self._sweep(now)
            hits = self._prune(key, now)
            count = len(hits) if hits else 0
            if count >= self.max_requests:
                if not hits:
                    return self.window_s
                return max(self.window_s - (now - hits[0]), 0.0)
            self._hits.setdefault(key, deque()).append(now)
            return None
