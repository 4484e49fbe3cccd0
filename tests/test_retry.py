# Tests for calendar/retry.py
# Created: 2026-10-17

import httpx
import pytest

from invitedesk.calendar.errors import CalendarAPIError
from invitedesk.calendar.retry import RetryPolicy, error_status, is_rate_limit_error, with_backoff


class Recorder:
    """Fake sleep that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def _flaky(failures):
    """Awaitable factory failing with each exception in *failures*, then returning "ok"."""
    calls = {"n": 0}

    async def fn():
        calls["n"] += 1
        if failures:
            raise failures.pop(0)
        return "ok"

    return fn, calls


@pytest.fixture
def sleep():
    return Recorder()


class TestErrorClassification:
    def test_status_from_api_error(self):
        assert error_status(CalendarAPIError(429, "slow down")) == 429

    def test_status_from_httpx_error(self):
        request = httpx.Request("GET", "https://example.test")
        response = httpx.Response(403, request=request)
        exc = httpx.HTTPStatusError("forbidden", request=request, response=response)
        assert error_status(exc) == 403

    def test_no_status(self):
        assert error_status(ValueError("x")) is None

    def test_rate_limit_statuses(self):
        assert is_rate_limit_error(CalendarAPIError(403, "rateLimitExceeded"))
        assert is_rate_limit_error(CalendarAPIError(429, "too many"))
        assert not is_rate_limit_error(CalendarAPIError(500, "boom"))
        assert not is_rate_limit_error(CalendarAPIError(404, "gone"))


class TestRetryPolicy:
    async def test_success_first_try(self, sleep):
        fn, calls = _flaky([])
        assert await RetryPolicy(sleep=sleep).run(fn) == "ok"
        assert calls["n"] == 1
        assert sleep.delays == []

    async def test_retries_rate_limit_then_succeeds(self, sleep):
        fn, calls = _flaky([CalendarAPIError(429, "slow"), CalendarAPIError(403, "quota")])
        assert await RetryPolicy(sleep=sleep).run(fn) == "ok"
        assert calls["n"] == 3
        assert len(sleep.delays) == 2

    async def test_delays_grow_exponentially(self, sleep):
        fn, _ = _flaky([CalendarAPIError(429, "slow") for _ in range(4)])
        await RetryPolicy(sleep=sleep).run(fn)

        for attempt, delay in enumerate(sleep.delays):
            base = 1.0 * 2**attempt
            assert base <= delay <= base + 0.2

    async def test_gives_up_after_max_retries(self, sleep):
        fn, calls = _flaky([CalendarAPIError(429, f"try {i}") for i in range(10)])

        with pytest.raises(CalendarAPIError) as exc_info:
            await RetryPolicy(max_retries=5, sleep=sleep).run(fn)

        assert calls["n"] == 6
        assert len(sleep.delays) == 5
        assert exc_info.value.message == "try 5"

    async def test_non_retryable_error_is_immediate(self, sleep):
        fn, calls = _flaky([CalendarAPIError(500, "boom")])
        with pytest.raises(CalendarAPIError):
            await RetryPolicy(sleep=sleep).run(fn)
        assert calls["n"] == 1
        assert sleep.delays == []

    async def test_custom_predicate(self, sleep):
        fn, calls = _flaky([ConnectionError("reset")])
        policy = RetryPolicy(is_retryable=lambda e: isinstance(e, ConnectionError), sleep=sleep)
        assert await policy.run(fn) == "ok"
        assert calls["n"] == 2

    async def test_zero_retries(self, sleep):
        fn, calls = _flaky([CalendarAPIError(429, "slow")])
        with pytest.raises(CalendarAPIError):
            await RetryPolicy(max_retries=0, sleep=sleep).run(fn)
        assert calls["n"] == 1

    async def test_with_backoff_uses_policy(self, sleep):
        fn, _ = _flaky([CalendarAPIError(429, "slow")])
        assert await with_backoff(fn, RetryPolicy(initial_delay=0.5, sleep=sleep)) == "ok"
        assert 0.5 <= sleep.delays[0] <= 0.7
