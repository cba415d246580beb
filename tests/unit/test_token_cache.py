# -*- coding: utf-8 -*-

"""
Unit tests for TokenCache.
Tests TTL expiry, positive/negative TTL asymmetry and the capacity bound.
"""

import pytest

from simgate.token_cache import TokenCache


class TestTokenCacheGet:
    """Tests for TokenCache.get()."""

    def test_returns_none_on_miss(self, token_cache):
        """
        What it does: Reads a token that was never stored.
        Purpose: Ensure a miss is reported as None, not False.
        """
        print("Action: Reading unknown token...")
        result = token_cache.get("never-stored")

        print(f"Comparing: Expected None, Got {result}")
        assert result is None

    def test_returns_cached_validity(self, token_cache):
        """
        What it does: Stores a valid and an invalid token and reads them back.
        Purpose: Ensure both booleans survive the round through the cache.
        """
        print("Setup: Storing one valid and one invalid token...")
        token_cache.set("good", True)
        token_cache.set("bad", False, ttl=60)

        print("Action: Reading both tokens...")
        assert token_cache.get("good") is True
        assert token_cache.get("bad") is False

    def test_entry_alive_just_before_expiry(self, token_cache, clock):
        """
        What it does: Reads an entry one second before its TTL elapses.
        Purpose: Ensure entries are live for their whole TTL.
        """
        token_cache.set("good", True, ttl=100)
        clock.advance(99)

        assert token_cache.get("good") is True

    def test_entry_expires_at_ttl(self, token_cache, clock):
        """
        What it does: Reads an entry exactly at its expiry time.
        Purpose: Ensure expired entries behave like missing ones and are dropped.
        """
        print("Setup: Storing token with ttl=100...")
        token_cache.set("good", True, ttl=100)

        print("Action: Advancing clock by 100s...")
        clock.advance(100)

        result = token_cache.get("good")
        print(f"Comparing: Expected None, Got {result}")
        assert result is None
        assert token_cache.size == 0


class TestTokenCacheTtl:
    """Tests for default and per-entry TTLs."""

    def test_default_ttl_is_fifteen_minutes(self):
        """What it does: Verifies the default TTL for positive results."""
        assert TokenCache().default_ttl == 900

    def test_negative_entry_expires_before_positive(self, token_cache, clock):
        """
        What it does: Stores a positive entry with the default TTL and a negative
        entry with the short TTL, then advances past the short TTL.
        Purpose: Ensure rejected tokens are re-validated sooner than accepted ones.
        """
        print("Setup: valid token (default ttl), invalid token (ttl=60)...")
        token_cache.set("good", True)
        token_cache.set("bad", False, ttl=60)

        print("Action: Advancing clock by 61s...")
        clock.advance(61)

        assert token_cache.get("bad") is None
        assert token_cache.get("good") is True

    def test_set_overwrites_previous_entry(self, token_cache, clock):
        """
        What it does: Overwrites a negative entry with a positive one.
        Purpose: Ensure set() is unconditional and resets the TTL.
        """
        token_cache.set("token", False, ttl=60)
        clock.advance(30)
        token_cache.set("token", True)
        clock.advance(60)

        assert token_cache.get("token") is True


class TestTokenCacheCapacity:
    """Tests for the max_entries bound."""

    def test_evicts_oldest_entry_when_full(self, clock):
        """
        What it does: Inserts one token more than the capacity allows.
        Purpose: Ensure memory stays bounded and the oldest token goes first.
        """
        print("Setup: Cache with max_entries=3...")
        cache = TokenCache(max_entries=3, clock=clock)
        for name in ("t1", "t2", "t3", "t4"):
            cache.set(name, True)

        print(f"Cache size: {cache.size}")
        assert cache.size == 3
        assert cache.get("t1") is None
        assert cache.get("t4") is True

    def test_reinserted_entry_is_not_evicted_first(self, clock):
        """
        What it does: Re-sets the oldest token before the cache overflows.
        Purpose: Ensure re-inserting moves a token to the newest position.
        """
        cache = TokenCache(max_entries=3, clock=clock)
        cache.set("t1", True)
        cache.set("t2", True)
        cache.set("t3", True)

        cache.set("t1", True)
        cache.set("t4", True)

        assert cache.get("t1") is True
        assert cache.get("t2") is None

    def test_zero_capacity_disables_bound(self, clock):
        """What it does: Verifies max_entries=0 means unbounded."""
        cache = TokenCache(max_entries=0, clock=clock)
        for index in range(50):
            cache.set(f"token-{index}", True)

        assert cache.size == 50

    @pytest.mark.parametrize("max_entries", [1, 2, 10])
    def test_size_never_exceeds_capacity(self, clock, max_entries):
        """What it does: Verifies the bound holds for several capacities."""
        cache = TokenCache(max_entries=max_entries, clock=clock)
        for index in range(max_entries * 3):
            cache.set(f"token-{index}", index % 2 == 0)

        assert cache.size == max_entries


def test_clear_drops_everything(token_cache):
    """What it does: Verifies clear() empties the cache."""
    token_cache.set("a", True)
    token_cache.set("b", False, ttl=60)

    token_cache.clear()

    assert token_cache.size == 0
    assert token_cache.get("a") is None
