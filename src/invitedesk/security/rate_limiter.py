# Per-IP token-bucket limits for the OAuth endpoints.
# Created: 2026-10-13
#
# Tiers (requests per second, burst):
#   register   0.2, 5    dynamic client registration
#   authorize  1.0, 10   consent page and consent submit
#   token      2.0, 20   token endpoint
#
# A bucket that has refilled to capacity is indistinguishable from a new one,
# so such buckets are dropped whenever the table grows past ``max_keys``. If
# every tracked client is still mid-burst, the least recently seen go first.

from __future__ import annotations

import math
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

__all__ = [
    "RateLimiter",
    "RateLimitInfo",
    "authorize_limiter",
    "register_limiter",
    "token_limiter",
]

DEFAULT_MAX_KEYS = 4096


@dataclass(frozen=True)
class RateLimitInfo:
    """Outcome of one ``RateLimiter.check()``."""

    allowed: bool
    limit: int
    remaining: int
    reset_after: float

    def headers(self) -> dict[str, str]:
        headers = {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
        }
        if not self.allowed:
            headers["Retry-After"] = str(math.ceil(self.reset_after))
        return headers


class RateLimiter:
    """Token bucket per client key, with a bounded key table.

    ``rate`` is tokens refilled per second, ``capacity`` the burst size.
    ``clock`` must be monotonic; tests pass a fake.
    """

    def __init__(
        self,
        rate: float,
        capacity: int,
        max_keys: int = DEFAULT_MAX_KEYS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.rate = rate
        self.capacity = capacity
        self.max_keys = max_keys
        self._clock = clock
        # key -> (tokens left, time of last refill), least recently seen first
        self._buckets: OrderedDict[str, tuple[float, float]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._buckets)

    def _level(self, tokens: float, stamp: float, now: float) -> float:
        return min(self.capacity, tokens + (now - stamp) * self.rate)

    def allow(self, key: str) -> bool:
        return self.check(key).allowed

    def check(self, key: str) -> RateLimitInfo:
        now = self._clock()
        entry = self._buckets.pop(key, None)
        tokens = self.capacity if entry is None else self._level(*entry, now)

        allowed = tokens >= 1.0
        if allowed:
            tokens -= 1.0
        self._buckets[key] = (tokens, now)

        if len(self._buckets) > self.max_keys:
            self._shrink()

        if allowed:
            return RateLimitInfo(True, self.capacity, int(tokens), 0.0)
        reset_after = (1.0 - tokens) / self.rate if self.rate > 0 else 1.0
        return RateLimitInfo(False, self.capacity, 0, reset_after)

    def sweep(self) -> int:
        """Drop buckets that have refilled to capacity. Returns how many."""
        now = self._clock()
        full = [
            key
            for key, (tokens, stamp) in self._buckets.items()
            if self._level(tokens, stamp, now) >= self.capacity
        ]
        for key in full:
            del self._buckets[key]
        return len(full)

    def _shrink(self) -> None:
        self.sweep()
        while len(self._buckets) > self.max_keys:
            self._buckets.popitem(last=False)

    def reset(self) -> None:
        self._buckets.clear()


register_limiter = RateLimiter(rate=0.2, capacity=5)
authorize_limiter = RateLimiter(rate=1.0, capacity=10)
token_limiter = RateLimiter(rate=2.0, capacity=20)
