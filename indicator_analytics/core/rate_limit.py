from __future__ import annotations

from collections import deque
import time


class SlidingWindowLimiter:
    """Per-client request counter over a sliding time window.

    Clients whose newest request has left the window are evicted on the
    next sweep, so the map only holds clients seen in the last window.
    """

    def __init__(self, limit: int, window_seconds: float) -> None:
        self.limit = limit
        self.window_seconds = window_seconds
        self._buckets: dict[str, deque[float]] = {}
        self._last_sweep = 0.0

    def __len__(self) -> int:
        return len(self._buckets)

    def allow(self, client: str, now: float | None = None) -> bool:
        now = time.monotonic() if now is None else now
        if now - self._last_sweep >= self.window_seconds:
            self.sweep(now)

        bucket = self._buckets.get(client)
        if bucket is None:
            bucket = self._buckets[client] = deque()
        while bucket and now - bucket[0] > self.window_seconds:
            bucket.popleft()
        if len(bucket) >= self.limit:
            return False
        bucket.append(now)
        return True

    def sweep(self, now: float) -> None:
        stale = [
            client
            for client, bucket in self._buckets.items()
            if not bucket or now - bucket[-1] > self.window_seconds
        ]
        for client in stale:
            del self._buckets[client]
        self._last_sweep = now

    def clear(self) -> None:
        self._buckets.clear()
        self._last_sweep = 0.0
