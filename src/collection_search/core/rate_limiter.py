"""
Rate Limiter

Sliding-window request limiting keyed by client origin.

Every key owns a list of request instants (milliseconds). On each call the
instants that fell out of the window are evicted; the request is admitted
only if fewer than `limit` instants remain.

Thread Safety
-------------
- The window map is the only shared mutable state in the service
- All reads, evictions and records happen under a single lock
- Instances are created once per application and injected; tests build
  their own with a fake clock
"""

from __future__ import annotations

import logging
import random
import time
from threading import Lock
from typing import Callable, Dict, List, NamedTuple, Optional

logger = logging.getLogger("search.ratelimit")


def _wall_clock_ms() -> float:
    return time.time() * 1000


class RateLimitDecision(NamedTuple):
    """Outcome of a single admission check."""
    allowed: bool
    limit: int
    remaining: Optional[int]  # None when limiting is disabled
    reset_at: Optional[float]  # epoch milliseconds
    current_count: Optional[int]
    window_ms: int


class RateLimiter:
    """
    In-memory sliding-window rate limiter.

    A limit of 0 disables limiting entirely.
    """

    def __init__(
        self,
        limit: int,
        window_ms: int,
        clock: Callable[[], float] = _wall_clock_ms,
        rng: Callable[[], float] = random.random,
        sweep_probability: float = 0.01,
    ) -> None:
        """
        Parameters
        ----------
        limit : int
            Maximum requests per key inside one window. 0 means unlimited.
        window_ms : int
            Window length in milliseconds.
        clock : Callable[[], float]
            Returns "now" in epoch milliseconds.
        rng : Callable[[], float]
            Uniform [0, 1) source deciding when to sweep stale keys.
        sweep_probability : float
            Chance that an admitted request triggers a sweep.
        """
        self._limit = limit
        self._window_ms = window_ms
        self._clock = clock
        self._rng = rng
        self._sweep_probability = sweep_probability
        self._windows: Dict[str, List[float]] = {}
        self._lock = Lock()

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_ms(self) -> int:
        return self._window_ms

    def admit(self, key: str) -> RateLimitDecision:
        """
        Check and record a request for `key`.

        Rejected requests are not recorded, so a client hammering a full
        window does not extend its own lockout.
        """
        if self._limit == 0:
            return RateLimitDecision(
                allowed=True,
                limit=0,
                remaining=None,
                reset_at=None,
                current_count=None,
                window_ms=self._window_ms,
            )

        with self._lock:
            now = self._clock()
            window = [t for t in self._windows.get(key, []) if now - t < self._window_ms]

            if len(window) >= self._limit:
                self._windows[key] = window
                logger.info("Rate limit reached for %s (%d requests)", key, len(window))
                return RateLimitDecision(
                    allowed=False,
                    limit=self._limit,
                    remaining=0,
                    reset_at=window[0] + self._window_ms,
                    current_count=len(window),
                    window_ms=self._window_ms,
                )

            window.append(now)
            self._windows[key] = window

            if self._rng() < self._sweep_probability:
                self._sweep_locked(now)

            return RateLimitDecision(
                allowed=True,
                limit=self._limit,
                remaining=self._limit - len(window),
                reset_at=window[0] + self._window_ms,
                current_count=len(window),
                window_ms=self._window_ms,
            )

    def sweep(self) -> int:
        """
        Drop windows that are empty or whose newest request is outside the window.

        Returns the number of keys removed.
        """
        with self._lock:
            return self._sweep_locked(self._clock())

    def _sweep_locked(self, now: float) -> int:
        stale = [
            key
            for key, window in self._windows.items()
            if not window or now - max(window) > self._window_ms
        ]
        for key in stale:
            del self._windows[key]
        if stale:
            logger.debug("Swept %d stale rate limit windows", len(stale))
        return len(stale)

    def tracked_keys(self) -> List[str]:
        with self._lock:
            return list(self._windows)
