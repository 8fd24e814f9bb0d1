"""Collaborator call executor with timeout, retry, circuit breaker, and cache support."""

import hashlib
import json
import logging
import random
import threading
import time
from collections import defaultdict, deque
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol

from itinerary_engine.config import Settings, get_settings
from itinerary_engine.exec.types import ExecutorErrorKind, ToolCallable, ToolResponse
from itinerary_engine.metrics.core import record_tool_call
from itinerary_engine.metrics.registry import MetricsClient

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 2  # Initial + 1 retry


class SimpleCache(Protocol):
    """Simple cache interface for call results."""

    def get(self, key: str) -> dict[str, Any] | None:
        """Get value from cache, or None if missing or expired."""
        ...

    def set(self, key: str, value: dict[str, Any], ttl_seconds: int) -> None:
        """Set value in cache with TTL."""
        ...


class InMemoryCache:
    """Simple in-memory cache with TTL support."""

    def __init__(self) -> None:
        self._store: dict[str, tuple[dict[str, Any], datetime]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> dict[str, Any] | None:
        """Get value from cache if not expired."""
        with self._lock:
            if key not in self._store:
                return None
            value, expires_at = self._store[key]
            if datetime.now(UTC) > expires_at:
                del self._store[key]
                return None
            return value

    def set(self, key: str, value: dict[str, Any], ttl_seconds: int) -> None:
        """Set value in cache with TTL."""
        with self._lock:
            expires_at = datetime.now(UTC) + timedelta(seconds=ttl_seconds)
            self._store[key] = (value, expires_at)


class CircuitBreaker:
    """Circuit breaker for a single collaborator call."""

    def __init__(
        self,
        failure_threshold: int,
        timeout_seconds: int,
        half_open_timeout_seconds: int = 30,
    ) -> None:
        """Initialize circuit breaker.

        Args:
            failure_threshold: Number of failures before opening.
            timeout_seconds: Window size for counting failures.
            half_open_timeout_seconds: Time before allowing a probe while open.
        """
        self.failure_threshold = failure_threshold
        self.timeout_seconds = timeout_seconds
        self.half_open_timeout_seconds = half_open_timeout_seconds
        self.failures: deque[datetime] = deque()
        self.state: str = "closed"  # closed, open, half_open
        self.opened_at: datetime | None = None
        self.lock = threading.Lock()

    def _clean_old_failures(self) -> None:
        cutoff = datetime.now(UTC) - timedelta(seconds=self.timeout_seconds)
        while self.failures and self.failures[0] < cutoff:
            self.failures.popleft()

    def is_open(self) -> bool:
        """Check if the breaker rejects calls."""
        with self.lock:
            if self.state == "open":
                if self.opened_at and datetime.now(UTC) - self.opened_at >= timedelta(
                    seconds=self.half_open_timeout_seconds
                ):
                    self.state = "half_open"
                    return False
                return True
            return False

    def record_failure(self) -> None:
        """Record a failure."""
        with self.lock:
            self.failures.append(datetime.now(UTC))
            self._clean_old_failures()

            if self.state == "half_open" or (
                self.state == "closed" and len(self.failures) >= self.failure_threshold
            ):
                self.state = "open"
                self.opened_at = datetime.now(UTC)

    def record_success(self) -> None:
        """Record a success."""
        with self.lock:
            if self.state == "half_open":
                self.state = "closed"
                self.failures.clear()
                self.opened_at = None


class ToolExecutor:
    """Runs collaborator calls with a bounded timeout, one retry, breaker and cache."""

    def __init__(
        self,
        settings: Settings | None = None,
        cache: SimpleCache | None = None,
        metrics: MetricsClient | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], None] = time.sleep,
        max_workers: int = 10,
    ) -> None:
        """Initialize executor.

        Args:
            settings: Engine settings (defaults to the singleton).
            cache: Optional cache for call results.
            metrics: Optional metrics client.
            rng: Optional random number generator for jitter (for testing).
            sleep: Sleep function used for retry jitter (for testing).
            max_workers: Worker threads available for calls in flight.
        """
        self.settings = settings or get_settings()
        self.cache = cache
        self.metrics = metrics
        self.rng = rng or random.Random()
        self._sleep = sleep
        self.breakers: dict[str, CircuitBreaker] = defaultdict(
            lambda: CircuitBreaker(
                failure_threshold=self.settings.breaker_failure_threshold,
                timeout_seconds=self.settings.breaker_timeout_s,
            )
        )
        self._pool = ThreadPoolExecutor(max_workers=max_workers)

    def _compute_cache_key(self, name: str, args: dict[str, Any]) -> str:
        """SHA256 of the sorted JSON of name and args."""
        cache_obj = {"name": name, "args": args}
        sorted_json = json.dumps(cache_obj, sort_keys=True, ensure_ascii=True, default=str)
        return hashlib.sha256(sorted_json.encode("utf-8")).hexdigest()

    def _call_with_timeout(
        self, func: ToolCallable, args: dict[str, Any], timeout_seconds: float
    ) -> tuple[dict[str, Any] | None, str | None]:
        """Call func with a timeout. Returns (result, error); one is None."""
        future = self._pool.submit(func, args)
        try:
            return future.result(timeout=timeout_seconds), None
        except FuturesTimeoutError:
            future.cancel()
            return None, "timeout"
        except Exception as e:
            return None, str(e) or type(e).__name__

    def execute(
        self,
        name: str,
        func: ToolCallable,
        args: dict[str, Any],
        timeout_s: float | None = None,
        cacheable: bool = False,
    ) -> ToolResponse:
        """Execute a collaborator call with all policies applied.

        Args:
            name: Call name, used for breaker, cache and metrics.
            func: Callable taking the args dict and returning a dict.
            args: JSON-serializable arguments.
            timeout_s: Per-attempt timeout; defaults to the lookup timeout.
            cacheable: Whether successful results may be cached.

        Returns:
            ToolResponse. Never raises for collaborator failures.
        """
        start_time = time.monotonic()
        timeout = timeout_s if timeout_s is not None else self.settings.lookup_timeout_s

        breaker = self.breakers[name]
        if breaker.is_open():
            if self.metrics:
                self.metrics.set_breaker_state(name, "open")
            return self._finish(
                name,
                start_time,
                ToolResponse(
                    ok=False,
                    error="circuit_open",
                    error_kind="breaker_open",
                    breaker_open=True,
                ),
            )

        cache_key = self._compute_cache_key(name, args) if cacheable and self.cache else None
        if cache_key:
            cached = self.cache.get(cache_key)  # type: ignore[union-attr]
            if cached is not None:
                return self._finish(
                    name, start_time, ToolResponse(ok=True, data=cached, from_cache=True)
                )

        result_data: dict[str, Any] | None = None
        error_msg: str | None = None
        error_kind: ExecutorErrorKind | None = None
        retries = 0

        for attempt in range(MAX_ATTEMPTS):
            if attempt > 0:
                jitter_ms = self.rng.randint(
                    self.settings.retry_jitter_min_ms,
                    self.settings.retry_jitter_max_ms,
                )
                self._sleep(jitter_ms / 1000.0)

            result_data, error_msg = self._call_with_timeout(func, args, timeout)
            retries = attempt
            if result_data is not None:
                breaker.record_success()
                error_msg = None
                error_kind = None
                break

            error_kind = "timeout" if error_msg == "timeout" else "tool_error"
            logger.warning(
                "Collaborator call failed",
                extra={"tool": name, "attempt": attempt + 1, "error": error_msg},
            )

        if result_data is None:
            breaker.record_failure()
            if self.metrics:
                self.metrics.set_breaker_state(name, breaker.state)  # type: ignore[arg-type]
        elif cache_key:
            self.cache.set(cache_key, result_data, self.settings.cache_ttl_s)  # type: ignore[union-attr]

        return self._finish(
            name,
            start_time,
            ToolResponse(
                ok=result_data is not None,
                data=result_data,
                error=error_msg,
                error_kind=error_kind,
                retries=retries,
            ),
        )

    def _finish(self, name: str, start_time: float, response: ToolResponse) -> ToolResponse:
        response.latency_ms = int((time.monotonic() - start_time) * 1000)
        record_tool_call(
            tool=name,
            latency_ms=response.latency_ms,
            ok=response.ok,
            from_cache=response.from_cache,
            retries=response.retries,
            error_kind=response.error_kind,
            metrics=self.metrics,
        )
        return response

    def shutdown(self) -> None:
        """Release worker threads."""
        self._pool.shutdown(wait=False, cancel_futures=True)
