"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- One window is shared by all callers and cleared wholesale, so a caller
  that starts late in a window gets less than a full window of budget.
"""

from __future__ import annotations

import math
import threading
import time
from typing import Callable

from app.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Per-caller request counter with a shared, wholesale-cleared window.

    Every caller key maps to a count of requests seen in the current window.
    When the window elapses (or ``reset()`` is called by the periodic reset
    task) the whole table is dropped and a new window starts.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        limit: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of allowed units per window.
            window_seconds: Size of the fixed window in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds < 1:
            raise ValueError("window_seconds must be >= 1")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.RLock()
        self._counts: dict[str, int] = {}
        self._window_start = self._clock()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> int:
        return self._window_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._counts)

    def _reset_locked(self, now: float) -> None:
        self._counts.clear()
        self._window_start = now

    def reset(self) -> None:
        """Drop all counters and start a new window at the current time."""
        with self._lock:
            self._reset_locked(self._clock())

    def _roll_window(self, now: float) -> float:
        """Start a new window if the current one has elapsed.

        Args:
            now: UNIX time in seconds.

        Returns:
            The reset time (epoch seconds) of the window that ``now`` is in.
        """
        if now - self._window_start >= self._window_seconds:
            self._reset_locked(now)
        return self._window_start + self._window_seconds

    def consume(self, key: str, *, cost: int = 1) -> RateLimitResult:
        """Consume rate limit budget for the provided key.

        Blocked requests are not counted.

        Args:
            key: Unique identifier for rate limiting (e.g., user id).
            cost: Units to consume (default 1).

        Returns:
            RateLimitResult with allowance decision and metadata.

        Raises:
            ValueError: If key is empty or cost is invalid.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if not key:
            raise ValueError("key must be a non-empty string")

        with self._lock:
            now = self._clock()
            reset_at = self._roll_window(now)
            count = self._counts.get(key, 0)

            if count + cost <= self._limit:
                count += cost
                self._counts[key] = count
                return RateLimitResult(
                    allowed=True,
                    limit=self._limit,
                    count=count,
                    remaining=max(0, self._limit - count),
                    reset_at=int(reset_at),
                    retry_after_seconds=None,
                )

            return RateLimitResult(
                allowed=False,
                limit=self._limit,
                count=count,
                remaining=max(0, self._limit - count),
                reset_at=int(reset_at),
                retry_after_seconds=max(0, int(math.ceil(reset_at - now))),
            )
