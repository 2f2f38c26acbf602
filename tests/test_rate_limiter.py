"""Unit tests for the sliding-window rate limiter."""
import pytest

from miniurl.rate_limiter import (
    DEFAULT_ROUTE_LIMITS,
    RateLimitConfig,
    RateLimitExceeded,
    SlidingWindowCounter,
    build_limiters,
)


NOW = 1700000000.0


class TestSlidingWindowCounter:

    def test_allows_within_limit(self):
        counter = SlidingWindowCounter(RateLimitConfig(max_requests=3, window_seconds=60))
        counter.check('key', now=NOW)
        counter.check('key', now=NOW + 1)
        counter.check('key', now=NOW + 2)

    def test_rejects_over_limit(self):
        counter = SlidingWindowCounter(RateLimitConfig(max_requests=2, window_seconds=60))
        counter.check('key', now=NOW)
        counter.check('key', now=NOW + 1)
        with pytest.raises(RateLimitExceeded) as exc:
            counter.check('key', now=NOW + 2)
        assert exc.value.key == 'key'
        assert exc.value.retry_after == pytest.approx(58)

    def test_window_slides(self):
        counter = SlidingWindowCounter(RateLimitConfig(max_requests=2, window_seconds=10))
        counter.check('key', now=NOW)
        counter.check('key', now=NOW + 5)
        # First entry has aged out, second has not
        counter.check('key', now=NOW + 11)
        with pytest.raises(RateLimitExceeded):
            counter.check('key', now=NOW + 12)

    def test_independent_keys(self):
        counter = SlidingWindowCounter(RateLimitConfig(max_requests=1, window_seconds=60))
        counter.check('10.0.0.1', now=NOW)
        counter.check('10.0.0.2', now=NOW)
        with pytest.raises(RateLimitExceeded):
            counter.check('10.0.0.1', now=NOW + 1)

    def test_rejected_requests_are_not_counted(self):
        counter = SlidingWindowCounter(RateLimitConfig(max_requests=1, window_seconds=60))
        counter.check('key', now=NOW)
        with pytest.raises(RateLimitExceeded):
            counter.check('key', now=NOW + 1)
        assert counter.current_count('key', now=NOW + 2) == 1

    def test_reset(self):
        counter = SlidingWindowCounter(RateLimitConfig(max_requests=1, window_seconds=60))
        counter.check('a', now=NOW)
        counter.check('b', now=NOW)
        counter.reset('a')
        counter.check('a', now=NOW + 1)
        counter.reset_all()
        assert counter.current_count('b', now=NOW + 1) == 0


def test_default_limits():
    assert DEFAULT_ROUTE_LIMITS['shorten'].max_requests == 10
    assert DEFAULT_ROUTE_LIMITS['verify-password'].max_requests == 5
    assert all(cfg.window_seconds == 900 for cfg in DEFAULT_ROUTE_LIMITS.values())


def test_build_limiters_gives_fresh_counters():
    first, second = build_limiters(), build_limiters()
    first['shorten'].check('ip', now=NOW)
    assert second['shorten'].current_count('ip', now=NOW) == 0


def test_idle_keys_are_dropped_after_window():
    counter = SlidingWindowCounter(RateLimitConfig(max_requests=5, window_seconds=10))
    for i in range(1000):
        counter.check(f'10.0.{i // 256}.{i % 256}', now=NOW)
    assert counter.tracked_keys() == 1000
    counter.check('10.9.9.9', now=NOW + 10000)
    assert counter.tracked_keys() == 1


def test_active_keys_survive_sweep():
    counter = SlidingWindowCounter(RateLimitConfig(max_requests=5, window_seconds=10))
    counter.check('idle', now=NOW)
    counter.check('busy', now=NOW + 8)
    counter.check('busy', now=NOW + 12)
    assert counter.tracked_keys() == 1
    assert counter.current_count('busy', now=NOW + 12) == 2
