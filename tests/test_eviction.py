"""Tests for eviction policies.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import pytest

from offcache_core.cache.config import EvictionPolicyName
from offcache_core.cache.entry import CacheEntry
from offcache_core.eviction.policy import (
    FIFOPolicy,
    LFUPolicy,
    LRUPolicy,
    TTLPolicy,
    get_policy,
    order_for_eviction,
)


def make_entry(key, created_at=100.0, accessed_at=None, access_count=0, expires_at=None):
    return CacheEntry(
        key=key,
        value="v",
        size=1,
        created_at=created_at,
        updated_at=created_at,
        accessed_at=accessed_at if accessed_at is not None else created_at,
        access_count=access_count,
        expires_at=expires_at,
    )


def keys_of(entries):
    return [e.key for e in entries]


class TestLRUPolicy:
    """Tests for LRU policy."""

    def test_least_recently_used_first(self):
        """Test the stalest read is evicted first."""
        entries = [
            make_entry("a", accessed_at=300.0),
            make_entry("b", accessed_at=100.0),
            make_entry("c", accessed_at=200.0),
        ]

        assert keys_of(LRUPolicy().order(entries)) == ["b", "c", "a"]

    def test_ties_break_on_creation(self):
        """Test equal access times fall back to creation time."""
        entries = [
            make_entry("newer", created_at=50.0, accessed_at=100.0),
            make_entry("older", created_at=10.0, accessed_at=100.0),
        ]

        assert keys_of(LRUPolicy().order(entries)) == ["older", "newer"]


class TestLFUPolicy:
    """Tests for LFU policy."""

    def test_least_frequently_used_first(self):
        """Test fewest reads are evicted first."""
        entries = [
            make_entry("hot", access_count=10),
            make_entry("cold", access_count=1),
            make_entry("warm", access_count=5),
        ]

        assert keys_of(LFUPolicy().order(entries)) == ["cold", "warm", "hot"]

    def test_ties_break_on_recency(self):
        """Test equal counts evict the least recent first."""
        entries = [
            make_entry("recent", access_count=2, accessed_at=500.0),
            make_entry("stale", access_count=2, accessed_at=100.0),
        ]

        assert keys_of(LFUPolicy().order(entries)) == ["stale", "recent"]


class TestFIFOPolicy:
    """Tests for FIFO policy."""

    def test_oldest_first(self):
        """Test creation order ignores reads."""
        entries = [
            make_entry("second", created_at=200.0, accessed_at=1.0),
            make_entry("first", created_at=100.0, accessed_at=900.0),
            make_entry("third", created_at=300.0),
        ]

        assert keys_of(FIFOPolicy().order(entries)) == ["first", "second", "third"]


class TestTTLPolicy:
    """Tests for TTL policy."""

    def test_soonest_expiry_first(self):
        """Test nearest expiry goes first and no-expiry entries last."""
        entries = [
            make_entry("forever"),
            make_entry("later", expires_at=900.0),
            make_entry("soon", expires_at=200.0),
        ]

        assert keys_of(TTLPolicy().order(entries)) == ["soon", "later", "forever"]


class TestGetPolicy:
    """Tests for policy lookup."""

    def test_known_names(self):
        """Test every configurable name resolves."""
        for name in EvictionPolicyName.names():
            assert get_policy(name).name.value == name

    def test_case_insensitive(self):
        """Test lookup ignores case."""
        assert isinstance(get_policy("LFU"), LFUPolicy)

    def test_unknown_falls_back_to_lru(self):
        """Test unknown names use LRU."""
        assert isinstance(get_policy("random"), LRUPolicy)
        assert isinstance(get_policy(""), LRUPolicy)

    def test_order_for_eviction(self):
        """Test ordering by policy name."""
        entries = [make_entry("b", created_at=2.0), make_entry("a", created_at=1.0)]

        assert keys_of(order_for_eviction(entries, "fifo")) == ["a", "b"]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
