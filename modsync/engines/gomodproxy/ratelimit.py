"""Token-bucket rate limiter and a per-endpoint limiter registry."""

from __future__ import annotations

import asyncio
import math
import threading
import time
from collections.abc import Callable


class DeadlineExceeded(Exception):
    """The caller's deadline passed; the whole operation stops."""


class RateLimitCancelled(DeadlineExceeded):
    """Raised when a rate-limit permit cannot be obtained before the deadline."""

    def __init__(self, delay: float) -> None:
        self.delay = delay
        super().__init__(f"rate limit wait of {delay:.3f}s would exceed the deadline")


def check_deadline(deadline: float | None, what: str) -> None:
    """Raise ``DeadlineExceeded`` if the ``time.monotonic()`` *deadline* has passed."""
    if deadline is not None and time.monotonic() >= deadline:
        raise DeadlineExceeded(f"deadline exceeded before {what}")


class RateLimiter:
    """Token bucket refilled at *rate* tokens per second, holding up to *burst*.

    Permits are reserved under a lock before sleeping, so concurrent
    waiters are served in reservation order. ``rate=inf`` never waits.
    """

    def __init__(
        self,
        rate: float,
        burst: int = 1,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if rate < 0:
            raise ValueError("rate must not be negative")
        if burst < 1:
            raise ValueError("burst must be at least 1")
        self.rate = rate
        self.burst = burst
        self._clock = clock
        self._tokens = float(burst)
        self._last = clock()
        self._lock = threading.Lock()

    @classmethod
    def per_hour(cls, requests_per_hour: float, burst: int = 1) -> RateLimiter:
        return cls(requests_per_hour / 3600.0, burst)

    @property
    def unlimited(self) -> bool:
        return math.isinf(self.rate)

    def _reserve(self) -> float:
        """Take one token and return how long the caller must wait for it."""
        with self._lock:
            if self.unlimited:
                return 0.0
            now = self._clock()
            elapsed = max(0.0, now - self._last)
            self._last = now
            self._tokens = min(float(self.burst), self._tokens + elapsed * self.rate)
            self._tokens -= 1
            if self._tokens >= 0:
                return 0.0
            if self.rate == 0:
                return math.inf
            return -self._tokens / self.rate

    def _release(self) -> None:
        with self._lock:
            if not self.unlimited:
                self._tokens = min(float(self.burst), self._tokens + 1)

    async def wait(self, *, deadline: float | None = None) -> float:
        """Block until a permit is available; return the time spent waiting.

        *deadline* is a ``time.monotonic()`` timestamp. If the permit would
        only become available after it, the reservation is returned and
        ``RateLimitCancelled`` is raised without waiting. Task cancellation
        also returns the reservation before propagating.
        """
        delay = self._reserve()
        if delay == 0:
            return 0.0
        if math.isinf(delay) or (deadline is not None and self._clock() + delay > deadline):
            self._release()
            raise RateLimitCancelled(delay)
        try:
            await asyncio.sleep(delay)
        except asyncio.CancelledError:
            self._release()
            raise
        return delay


class LimiterRegistry:
    """Limiters keyed by endpoint URL, shared by every client in the process."""

    def __init__(self) -> None:
        self._limiters: dict[str, RateLimiter] = {}
        self._lock = threading.Lock()

    def get_or_set(self, key: str, limiter: RateLimiter) -> RateLimiter:
        """Return the limiter stored under *key*, storing *limiter* if there is none."""
        with self._lock:
            return self._limiters.setdefault(key, limiter)

    def get(self, key: str) -> RateLimiter | None:
        with self._lock:
            return self._limiters.get(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._limiters)


DEFAULT_REGISTRY = LimiterRegistry()
