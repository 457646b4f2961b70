"""In-memory fixed-window rate limiter for the chat endpoint.

Counts requests per fixed bucket (``floor(now / window)``). This is not a
sliding window: up to twice the limit can pass around a bucket boundary.
State lives in the limiter instance and is lost on restart.
"""
import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from cardsavvy.services.errors import RateLimited

logger = logging.getLogger(__name__)

GLOBAL_KEY = "*"


@dataclass
class RateWindow:
    """Request count for one bucket."""

    count: int
    expires_at: float


class FixedWindowRateLimiter:
    """Fixed-window counter, shared by every caller unless a key is given."""

    def __init__(
        self,
        limit: int = 10,
        window_seconds: float = 60,
        clock: Callable[[], float] = time.time,
    ):
        if limit <= 0:
            raise ValueError("limit must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.limit = limit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[tuple[str, int], RateWindow] = {}
        self._lock = threading.Lock()

    def check(self, key: str = GLOBAL_KEY) -> RateWindow:
        """Count one request against the current bucket.

        Raises:
            RateLimited: if the bucket already holds ``limit`` requests.
        """
        with self._lock:
            now = self._clock()
            bucket = int(now // self.window_seconds)
            window = self._windows.get((key, bucket))

            if window is None:
                self._drop_expired(now)
                window = RateWindow(
                    count=0, expires_at=(bucket + 1) * self.window_seconds
                )
                self._windows[(key, bucket)] = window

            if window.count >= self.limit:
                logger.warning(
                    f"Rate limit hit: key={key}, count={window.count}, "
                    f"resets_at={window.expires_at:.0f}"
                )
                raise RateLimited(retry_at=window.expires_at, now=now)

            window.count += 1
            return window

    def remaining(self, key: str = GLOBAL_KEY) -> int:
        """Requests still allowed in the current bucket, without counting one."""
        with self._lock:
            bucket = int(self._clock() // self.window_seconds)
            window = self._windows.get((key, bucket))
            used = window.count if window else 0
            return max(self.limit - used, 0)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()

    def __len__(self) -> int:
        return len(self._windows)

    def _drop_expired(self, now: float) -> None:
        expired = [k for k, w in self._windows.items() if w.expires_at <= now]
        for k in expired:
            del self._windows[k]
