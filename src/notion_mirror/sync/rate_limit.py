# src/notion_mirror/sync/rate_limit.py

"""
Pacing policies.

Notion allows roughly three requests per second on average. The sync engine
paces itself after each hydrated record and between listing pages; which
policy does the pacing is swappable. Clock and sleep are injectable so the
policies can be tested without real time passing.
"""

from __future__ import annotations

import logging
import time

from ..core.ports import Clock, RateLimiter, Sleeper

logger = logging.getLogger(__name__)


class NoopLimiter:
    def wait(self) -> None:
        return


class FixedIntervalLimiter:
    """Guarantees at least `interval_seconds` between consecutive wait() returns."""

    def __init__(
        self,
        interval_seconds: float,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleeper = time.sleep,
    ) -> None:
        if interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")
        self._interval = float(interval_seconds)
        self._clock = clock
        self._sleep = sleep
        self._last: float | None = None

    def wait(self) -> None:
        now = self._clock()
        if self._last is not None:
            remaining = self._interval - (now - self._last)
            if remaining > 0:
                self._sleep(remaining)
                now = self._clock()
        self._last = now


class TokenBucketLimiter:
    """
    Classic token bucket: `rate` tokens per second, at most `capacity` stored.

    Allows short bursts up to capacity while keeping the long-run average at rate.
    """

    def __init__(
        self,
        rate: float,
        capacity: float = 1.0,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleeper = time.sleep,
    ) -> None:
        if rate <= 0:
            raise ValueError("rate must be > 0")
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._rate = float(rate)
        self._capacity = float(capacity)
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._updated = clock()

    @property
    def tokens(self) -> float:
        return self._tokens

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(self._capacity, self._tokens + elapsed * self._rate)
        self._updated = now

    def wait(self) -> None:
        self._refill()
        if self._tokens < 1.0:
            self._sleep((1.0 - self._tokens) / self._rate)
            self._refill()
        self._tokens = max(0.0, self._tokens - 1.0)


def build_limiter(
    kind: str,
    interval_seconds: float,
    *,
    clock: Clock = time.monotonic,
    sleep: Sleeper = time.sleep,
) -> RateLimiter:
    """
    Build a limiter from settings.

    kind:
    - "interval": FixedIntervalLimiter(interval_seconds)
    - "token_bucket": one token per interval_seconds, bursts of up to 3
    - "none": no pacing
    A zero interval always yields NoopLimiter.
    """
    kind = (kind or "interval").strip().lower()
    if interval_seconds <= 0 or kind == "none":
        return NoopLimiter()
    if kind == "token_bucket":
        return TokenBucketLimiter(1.0 / interval_seconds, capacity=3, clock=clock, sleep=sleep)
    if kind != "interval":
        logger.warning("Unknown pacing policy %r, falling back to 'interval'", kind)
    return FixedIntervalLimiter(interval_seconds, clock=clock, sleep=sleep)
