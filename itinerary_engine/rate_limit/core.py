"""Core rate limiting logic."""

import threading
import time
from collections.abc import Callable
from typing import Protocol

from itinerary_engine.rate_limit.types import RateLimitResult


class RateLimiter(Protocol):
    """Protocol for rate limiting implementations."""

    def try_acquire(self) -> RateLimitResult:
        """Consume a token if one is available, without blocking."""
        ...

    def acquire(self) -> None:
        """Block until a token is available, then consume it."""
        ...


class TokenBucketLimiter:
    """Thread-safe token bucket.

    Tokens refill continuously at ``rate_per_s`` up to ``capacity``. The
    bucket starts full, so up to ``capacity`` calls may go out in a burst.
    The limiter is passed explicitly to whoever issues the calls; there is
    no process-wide instance.
    """

    def __init__(
        self,
        rate_per_s: float,
        capacity: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if rate_per_s <= 0:
            raise ValueError("rate_per_s must be positive")
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.rate_per_s = rate_per_s
        self.capacity = capacity
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._updated_at = clock()
        self._lock = threading.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated_at)
        self._tokens = min(float(self.capacity), self._tokens + elapsed * self.rate_per_s)
        self._updated_at = now

    def try_acquire(self) -> RateLimitResult:
        """Consume a token if one is available.

        Returns:
            RateLimitResult; when refused, ``retry_after_s`` says how long
            until the next token.
        """
        with self._lock:
            self._refill()
            if self._tokens >= 1:
                self._tokens -= 1
                return RateLimitResult(allowed=True, remaining=int(self._tokens))
            return RateLimitResult(
                allowed=False,
                remaining=0,
                retry_after_s=(1 - self._tokens) / self.rate_per_s,
            )

    def acquire(self) -> None:
        """Block until a token is available, then consume it."""
        while True:
            result = self.try_acquire()
            if result.allowed:
                return
            self._sleep(result.retry_after_s)
