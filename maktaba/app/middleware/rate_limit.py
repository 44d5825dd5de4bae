"""Login throttling.

Counts attempts per client address over a sliding window. State lives in
the process, so each worker throttles on its own.
"""

from __future__ import annotations

import time
from collections import defaultdict, deque

from fastapi import HTTPException, status


class InMemoryRateLimiter:
    def __init__(self, window_seconds: int = 60, max_attempts: int = 5) -> None:
        self.window_seconds = window_seconds
        self.max_attempts = max_attempts
        self._hits: defaultdict[str, deque[float]] = defaultdict(deque)
        self._last_sweep = time.monotonic()

    def _expire(self, hits: deque[float], now: float) -> None:
        while hits and now - hits[0] >= self.window_seconds:
            hits.popleft()

    def _sweep(self, now: float) -> None:
        """Forget addresses with no attempt left in the window."""
        for key in list(self._hits):
            self._expire(self._hits[key], now)
            if not self._hits[key]:
                del self._hits[key]
        self._last_sweep = now

    def check(self, key: str) -> None:
        """Record an attempt for *key*; HTTP 429 once the window is full."""
        now = time.monotonic()
        if now - self._last_sweep >= self.window_seconds:
            self._sweep(now)
        hits = self._hits[key]
        self._expire(hits, now)
        if len(hits) >= self.max_attempts:
            retry_after = int(self.window_seconds - (now - hits[0])) + 1
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail=f"Too many login attempts. Try again in {retry_after} seconds.",
                headers={"Retry-After": str(retry_after)},
            )
        hits.append(now)

    def reset(self, key: str | None = None) -> None:
        if key is None:
            self._hits.clear()
        else:
            self._hits.pop(key, None)
