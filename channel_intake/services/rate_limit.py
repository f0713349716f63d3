"""Per-address sliding window request limiter."""

from __future__ import annotations

import time
from collections import deque
from typing import Callable


class SlidingWindowRateLimiter:
    """Allow at most ``max_requests`` per key within ``window_seconds``.

    State lives in process memory, so each worker process counts separately.
    Keys whose window has expired are swept at most once per window.
    """

    def __init__(
        self,
        *,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._buckets: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    def hit(self, key: str) -> bool:
        """Record a request for ``key``; returns False when it is over the limit."""

        now = self._clock()
        cutoff = now - self.window_seconds
        if now - self._last_sweep >= self.window_seconds:
            self._sweep(cutoff)
            self._last_sweep = now

        bucket = self._buckets.setdefault(key, deque())
        while bucket and bucket[0] <= cutoff:
            bucket.popleft()

        if len(bucket) >= self.max_requests:
            return False

        bucket.append(now)
        return True

    def __len__(self) -> int:
        return len(self._buckets)

    def _sweep(self, cutoff: float) -> None:
        expired = [key for key, bucket in self._buckets.items() if not bucket or bucket[-1] <= cutoff]
        for key in expired:
            del self._buckets[key]
