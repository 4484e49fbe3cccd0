# Tests for the per-IP OAuth endpoint rate limits.
# Created: 2026-10-17

from invitedesk.security.rate_limiter import (
    RateLimiter,
    RateLimitInfo,
    authorize_limiter,
    register_limiter,
    token_limiter,
)


class TestRateLimiter:
    def test_check_returns_info(self):
        limiter = RateLimiter(rate=10.0, capacity=5)
        info = limiter.check("10.0.0.1")
        assert isinstance(info, RateLimitInfo)
        assert info.allowed is True
        assert info.limit == 5
        assert info.remaining == 4

    def test_check_denied(self):
        limiter = RateLimiter(rate=0.1, capacity=2)
        limiter.check("ip")
        limiter.check("ip")
        info = limiter.check("ip")
        assert info.allowed is False
        assert info.remaining == 0

    def test_keys_are_independent(self):
        limiter = RateLimiter(rate=0.1, capacity=1)
        assert limiter.allow("a")
        assert not limiter.allow("a")
        assert limiter.allow("b")

    def test_reset(self):
        limiter = RateLimiter(rate=0.1, capacity=1)
        limiter.allow("a")
        limiter.reset()
        assert limiter.allow("a")

    def test_headers_on_allowed(self):
        limiter = RateLimiter(rate=10.0, capacity=10)
        headers = limiter.check("ip").headers()
        assert headers["X-RateLimit-Limit"] == "10"
        assert "Retry-After" not in headers

    def test_headers_on_denied(self):
        limiter = RateLimiter(rate=0.1, capacity=1)
        limiter.check("ip")
        headers = limiter.check("ip").headers()
        assert int(headers["Retry-After"]) > 0


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class TestBucketEviction:
    def test_distinct_clients_stay_bounded(self):
        limiter = RateLimiter(rate=1.0, capacity=5, max_keys=100, clock=FakeClock())
        for n in range(10_000):
            limiter.check(f"10.0.{n // 256}.{n % 256}")
        assert len(limiter) <= 100

    def test_refilled_buckets_are_swept(self):
        clock = FakeClock()
        limiter = RateLimiter(rate=1.0, capacity=5, clock=clock)
        for n in range(50):
            limiter.check(f"ip-{n}")
        assert len(limiter) == 50

        clock.now = 0.5
        assert limiter.sweep() == 0

        clock.now = 1.0
        assert limiter.sweep() == 50
        assert len(limiter) == 0

    def test_sweep_keeps_clients_mid_burst(self):
        clock = FakeClock()
        limiter = RateLimiter(rate=0.1, capacity=3, clock=clock)
        for _ in range(3):
            limiter.check("busy")
        limiter.check("idle")

        clock.now = 10.0
        assert limiter.sweep() == 1
        assert len(limiter) == 1
        assert limiter.check("busy").allowed
        assert not limiter.check("busy").allowed

    def test_over_capacity_drops_least_recently_seen(self):
        clock = FakeClock()
        limiter = RateLimiter(rate=0.01, capacity=1, max_keys=2, clock=clock)
        limiter.check("a")
        limiter.check("b")
        limiter.check("a")
        limiter.check("c")

        assert len(limiter) == 2
        # "b" was evicted, so it starts with a full bucket again
        assert limiter.check("b").allowed
        assert not limiter.check("c").allowed

    def test_refill_uses_clock(self):
        clock = FakeClock()
        limiter = RateLimiter(rate=2.0, capacity=1, clock=clock)
        assert limiter.allow("ip")
        assert not limiter.allow("ip")
        clock.now = 0.5
        assert limiter.allow("ip")


class TestRateLimitInfo:
    def test_retry_after_rounds_up(self):
        info = RateLimitInfo(allowed=False, limit=60, remaining=0, reset_after=3.7)
        assert info.headers()["Retry-After"] == "4"


class TestTiers:
    def test_register_is_strictest(self):
        assert register_limiter.capacity < authorize_limiter.capacity < token_limiter.capacity
        assert register_limiter.rate < authorize_limiter.rate < token_limiter.rate
