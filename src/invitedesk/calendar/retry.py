# Exponential backoff for remote calendar calls.
# Created: 2026-10-13

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")

RATE_LIMIT_STATUSES = frozenset({403, 429})


def error_status(exc: BaseException) -> int | None:
    """HTTP status carried by *exc*, if any."""
    status = getattr(exc, "status_code", None)
    if isinstance(status, int):
        return status
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code
    return None


def is_rate_limit_error(exc: BaseException) -> bool:
    return error_status(exc) in RATE_LIMIT_STATUSES


@dataclass(frozen=True)
class RetryPolicy:
    """Retry an awaitable on retryable errors with exponential delay + jitter.

    Attempt ``n`` (0-based) that fails with a retryable error waits
    ``initial_delay * 2**n + uniform(0, max_jitter)`` seconds before the next
    try. Non-retryable errors, and the error from the last attempt, are
    re-raised unchanged.
    """

    max_retries: int = 5
    initial_delay: float = 1.0
    max_jitter: float = 0.2
    is_retryable: Callable[[BaseException], bool] = is_rate_limit_error
    sleep: Callable[[float], Awaitable[None]] = field(default=asyncio.sleep, repr=False)

    def delay_for(self, attempt: int) -> float:
        return self.initial_delay * (2**attempt) + random.uniform(0, self.max_jitter)

    async def run(self, fn: Callable[[], Awaitable[T]]) -> T:
        attempt = 0
        while True:
            try:
                return await fn()
            except Exception as exc:
                if not self.is_retryable(exc) or attempt >= self.max_retries:
                    raise
                delay = self.delay_for(attempt)
                logger.info(
                    "Rate limit hit (attempt %d/%d), retrying in %dms",
                    attempt + 1,
                    self.max_retries + 1,
                    round(delay * 1000),
                )
                await self.sleep(delay)
                attempt += 1


DEFAULT_POLICY = RetryPolicy()


async def with_backoff(
    fn: Callable[[], Awaitable[T]], policy: RetryPolicy = DEFAULT_POLICY
) -> T:
    """Run *fn* under *policy*."""
    return await policy.run(fn)
