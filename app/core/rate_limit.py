"""In-process fixed-window rate limiter (used to throttle login attempts)."""

import logging
import threading
import time
from collections.abc import Callable

from app.core.errors import RateLimitedError

logger = logging.getLogger(__name__)


class RateLimiter:
    """Counts hits per key inside a fixed time window."""

    def __init__(
        self,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._limit = limit
        self._window = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        # key -> (window_start, count)
        self._hits: dict[str, tuple[float, int]] = {}
        self._last_sweep = clock()

    @property
    def limit(self) -> int:
        return self._limit

    def __len__(self) -> int:
        """Number of keys currently tracked."""
        with self._lock:
            return len(self._hits)

    def hit(self, key: str) -> None:
        """Record one attempt for key; raise RateLimitedError once the limit is exceeded."""
        now = self._clock()
        with self._lock:
            self._sweep(now)
            start, count = self._hits.get(key, (now, 0))
            if now - start >= self._window:
                start, count = now, 0
            if count >= self._limit:
                retry_after = max(1, int(self._window - (now - start)))
                logger.info("Rate limit exceeded", extra={"rate_limit_key": key})
                raise RateLimitedError(
                    "Too many attempts. Please wait a moment and try again.",
                    retry_after=retry_after,
                )
            self._hits[key] = (start, count + 1)

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._hits.clear()
            else:
                self._hits.pop(key, None)

    def _sweep(self, now: float) -> None:
        # At most once per window; caller holds the lock.
        if now - self._last_sweep < self._window:
            return
        expired = [k for k, (start, _) in self._hits.items() if now - start >= self._window]
        for k in expired:
            del self._hits[k]
        self._last_sweep = now
