"""Async token bucket used to space out upstream calls between cities."""

import asyncio
import time


class RateLimiter:
    """Token bucket: ``rate`` tokens per second, at most ``capacity`` banked.

    ``acquire()`` waits until a token is available. Callers are served in
    the order they arrive, so sequential per-city ordering is preserved.
    """

    def __init__(self, rate: float, capacity: int = 1) -> None:
        if rate <= 0:
            raise ValueError("rate must be positive")
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.rate = rate
        self.capacity = capacity
        self._tokens = float(capacity)
        self._updated = time.monotonic()
        self._lock = asyncio.Lock()

    @classmethod
    def from_interval(cls, seconds: float) -> "RateLimiter | None":
        """One call per *seconds*; ``None`` disables limiting."""
        if seconds <= 0:
            return None
        return cls(rate=1.0 / seconds, capacity=1)

    def _refill(self) -> None:
        now = time.monotonic()
        self._tokens = min(self.capacity, self._tokens + (now - self._updated) * self.rate)
        self._updated = now

    async def acquire(self) -> None:
        async with self._lock:
            self._refill()
            if self._tokens < 1:
                await asyncio.sleep((1 - self._tokens) / self.rate)
                self._refill()
            self._tokens -= 1
