"""Tests for the fixed-window rate limiter."""

import pytest

from sovereign_watch.core.config import RateLimitRule
from sovereign_watch.core.ratelimit import InMemoryRateLimitStore, RateLimitConfig, client_identifier


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRateLimitConfig:
    def test_rejects_non_positive_values(self):
        with pytest.raises(ValueError):
            RateLimitConfig(interval=0, limit=1)
        with pytest.raises(ValueError):
            RateLimitConfig(interval=60, limit=0)

    def test_from_rule(self):
        config = RateLimitConfig.from_rule(RateLimitRule(interval_seconds=30, limit=5))

        assert config == RateLimitConfig(interval=30, limit=5)


class TestInMemoryRateLimitStore:
    def test_allows_up_to_limit_then_rejects(self):
        clock = FakeClock()
        limiter = InMemoryRateLimitStore(clock=clock)
        config = RateLimitConfig(interval=60, limit=3)

        results = [limiter.check("client", config) for _ in range(4)]

        assert [r.allowed for r in results] == [True, True, True, False]
        assert [r.remaining for r in results] == [2, 1, 0, 0]

    def test_reset_in_counts_down(self):
        clock = FakeClock()
        limiter = InMemoryRateLimitStore(clock=clock)
        config = RateLimitConfig(interval=60, limit=1)

        limiter.check("client", config)
        clock.now += 45
        result = limiter.check("client", config)

        assert not result.allowed
        assert result.reset_in == pytest.approx(15)

    def test_window_expires(self):
        clock = FakeClock()
        limiter = InMemoryRateLimitStore(clock=clock)
        config = RateLimitConfig(interval=60, limit=1)

        limiter.check("client", config)
        clock.now += 61

        assert limiter.check("client", config).allowed

    def test_keys_are_independent(self):
        limiter = InMemoryRateLimitStore(clock=FakeClock())
        config = RateLimitConfig(interval=60, limit=1)

        assert limiter.check("a", config).allowed
        assert limiter.check("b", config).allowed
        assert not limiter.check("a", config).allowed

    def test_sweeps_expired_entries(self):
        clock = FakeClock()
        limiter = InMemoryRateLimitStore(clock=clock, cleanup_interval=10)
        config = RateLimitConfig(interval=5, limit=1)

        limiter.check("a", config)
        limiter.check("b", config)
        assert len(limiter) == 2

        clock.now += 20
        limiter.check("c", config)

        assert len(limiter) == 1

    def test_sweep_respects_each_entry_window(self):
        clock = FakeClock()
        limiter = InMemoryRateLimitStore(clock=clock, cleanup_interval=10)
        hourly = RateLimitConfig(interval=3600, limit=1)
        short = RateLimitConfig(interval=5, limit=1)

        assert limiter.check("hourly:client", hourly).allowed
        clock.now += 20
        limiter.check("short:client", short)

        assert len(limiter) == 2
        assert not limiter.check("hourly:client", hourly).allowed

    def test_reset(self):
        limiter = InMemoryRateLimitStore(clock=FakeClock())
        limiter.check("a", RateLimitConfig(interval=60, limit=1))

        limiter.reset()

        assert len(limiter) == 0


class TestClientIdentifier:
    def test_first_forwarded_hop(self):
        assert client_identifier({"x-forwarded-for": "203.0.113.7, 10.0.0.1"}) == "203.0.113.7"

    def test_real_ip(self):
        assert client_identifier({"x-real-ip": " 198.51.100.2 "}) == "198.51.100.2"

    def test_fallback(self):
        assert client_identifier({}) == "anonymous"
        assert client_identifier({"x-forwarded-for": " , "}, fallback="local") == "local"
