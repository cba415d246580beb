# -*- coding: utf-8 -*-

"""
Unit tests for the fixed-window RateLimiter store.
"""

import pytest

from simgate.rate_limiter import RATE_LIMIT_TIERS, RateLimiter, RateLimitInfo, RateLimitTier

SMALL_TIER = RateLimitTier(max_requests=3, window_seconds=60, key_prefix="ratelimit:test:")


class TestTiers:
    """Tests for the named tiers."""

    @pytest.mark.parametrize(
        "name,max_requests",
        [("CHAT", 50), ("HEALTH", 300), ("DEFAULT", 100), ("PUBLIC_UNAUTH", 180)],
    )
    def test_tier_limits(self, name, max_requests):
        """What it does: verifies the per-minute limit of each tier."""
        tier = RATE_LIMIT_TIERS[name]
        assert tier.max_requests == max_requests
        assert tier.window_seconds == 60

    def test_key_prefixes_are_distinct(self):
        """What it does: verifies no two tiers share counters."""
        prefixes = [tier.key_prefix for tier in RATE_LIMIT_TIERS.values()]
        assert len(set(prefixes)) == len(prefixes)


class TestCheckAndConsume:
    """Tests for RateLimiter.check_and_consume()."""

    def test_admits_up_to_limit_with_decreasing_remaining(self, rate_limiter):
        """
        What it does: Sends max_requests requests in one window.
        Purpose: Ensure all are admitted with strictly decreasing remaining.
        """
        print("Action: Sending 3 requests with max_requests=3...")
        results = [rate_limiter.check_and_consume("1.2.3.4", SMALL_TIER) for _ in range(3)]

        remaining = [result.remaining for result in results]
        print(f"Remaining: {remaining}")
        assert all(result.allowed for result in results)
        assert remaining == [2, 1, 0]

    def test_rejects_request_over_limit(self, rate_limiter, clock):
        """
        What it does: Sends max_requests + 1 requests in one window.
        Purpose: Ensure the extra request is rejected with a positive retry_after.
        """
        for _ in range(3):
            rate_limiter.check_and_consume("1.2.3.4", SMALL_TIER)
        clock.advance(10)

        result = rate_limiter.check_and_consume("1.2.3.4", SMALL_TIER)

        print(f"Result: {result}")
        assert result.allowed is False
        assert result.remaining == 0
        assert result.current == 4
        assert result.retry_after == 50

    def test_retry_after_rounds_up(self, rate_limiter, clock):
        """What it does: retry_after is the ceiling of the remaining window."""
        for _ in range(3):
            rate_limiter.check_and_consume("1.2.3.4", SMALL_TIER)
        clock.advance(59.2)

        result = rate_limiter.check_and_consume("1.2.3.4", SMALL_TIER)

        assert result.retry_after == 1

    def test_new_window_after_reset(self, rate_limiter, clock):
        """
        What it does: Exhausts the window, then advances past its reset time.
        Purpose: Ensure a fresh window starts with count 1.
        """
        for _ in range(4):
            rate_limiter.check_and_consume("1.2.3.4", SMALL_TIER)
        clock.advance(60)

        result = rate_limiter.check_and_consume("1.2.3.4", SMALL_TIER)

        assert result.allowed is True
        assert result.current == 1
        assert result.remaining == 2

    def test_identifiers_are_isolated(self, rate_limiter):
        """What it does: one client's quota does not affect another's."""
        for _ in range(4):
            rate_limiter.check_and_consume("1.2.3.4", SMALL_TIER)

        assert rate_limiter.check_and_consume("5.6.7.8", SMALL_TIER).allowed is True

    def test_tiers_are_isolated(self, rate_limiter):
        """What it does: the same client has separate counters per tier."""
        for _ in range(4):
            rate_limiter.check_and_consume("1.2.3.4", SMALL_TIER)

        result = rate_limiter.check_and_consume("1.2.3.4", RATE_LIMIT_TIERS["CHAT"])

        assert result.allowed is True
        assert result.remaining == 49

    def test_window_is_fixed_not_sliding(self, rate_limiter, clock):
        """
        What it does: Sends a full window at its end and a full window right after.
        Purpose: Document that 2 * max_requests can pass around a boundary.
        """
        rate_limiter.check_and_consume("1.2.3.4", SMALL_TIER)
        clock.advance(59)
        late = [rate_limiter.check_and_consume("1.2.3.4", SMALL_TIER) for _ in range(2)]
        clock.advance(1)
        early = [rate_limiter.check_and_consume("1.2.3.4", SMALL_TIER) for _ in range(3)]

        assert all(result.allowed for result in late + early)

    def test_jitter_extends_window(self, clock):
        """What it does: the random jitter is added to the window reset time."""
        limiter = RateLimiter(clock=clock, jitter_seconds=1.0, random_source=lambda: 0.5)

        result = limiter.check_and_consume("1.2.3.4", SMALL_TIER)

        assert result.reset_at == clock.now + 60.5


class TestCleanup:
    """Tests for expired entry cleanup."""

    def test_cleanup_expired_removes_only_elapsed_windows(self, rate_limiter, clock):
        """What it does: cleanup drops elapsed windows and keeps live ones."""
        rate_limiter.check_and_consume("old", SMALL_TIER)
        clock.advance(30)
        rate_limiter.check_and_consume("new", SMALL_TIER)
        clock.advance(31)

        removed = rate_limiter.cleanup_expired()

        assert removed == 1
        assert rate_limiter.size == 1

    def test_cleanup_runs_when_size_hits_frequency(self, clock):
        """
        What it does: Fills the store to the cleanup frequency with expired entries.
        Purpose: Ensure the next check sweeps them without a background task.
        """
        limiter = RateLimiter(clock=clock, cleanup_frequency=5, random_source=lambda: 0.0)
        for index in range(5):
            limiter.check_and_consume(f"client-{index}", SMALL_TIER)
        clock.advance(61)

        limiter.check_and_consume("fresh", SMALL_TIER)

        print(f"Store size: {limiter.size}")
        assert limiter.size == 1

    def test_no_cleanup_between_multiples(self, clock):
        """What it does: expired entries stay until the size reaches a multiple."""
        limiter = RateLimiter(clock=clock, cleanup_frequency=5, random_source=lambda: 0.0)
        for index in range(3):
            limiter.check_and_consume(f"client-{index}", SMALL_TIER)
        clock.advance(61)

        limiter.check_and_consume("fresh", SMALL_TIER)

        assert limiter.size == 4


class TestRateLimitInfoHeaders:
    """Tests for RateLimitInfo.to_headers()."""

    def test_admitted_headers(self):
        """What it does: admitted requests get three headers, reset rounded up."""
        info = RateLimitInfo(allowed=True, limit=100, remaining=99, current=1, reset_at=1700000060.2)

        assert info.to_headers() == {
            "X-RateLimit-Limit": "100",
            "X-RateLimit-Remaining": "99",
            "X-RateLimit-Reset": "1700000061",
        }

    def test_rejected_headers_include_retry_after(self):
        """What it does: rejections add Retry-After."""
        info = RateLimitInfo(
            allowed=False, limit=3, remaining=0, current=4, reset_at=1700000060.0, retry_after=42
        )

        assert info.to_headers()["Retry-After"] == "42"
