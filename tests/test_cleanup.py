"""Tests for cleanup and maintenance.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import threading
import time

import pytest

from offcache_core.cache.config import CacheConfig
from offcache_core.cache.entry import CacheEntry
from offcache_core.errors import InvalidArgumentError, OperationCancelledError
from offcache_core.eviction.cleanup import CacheCleanup
from offcache_core.metrics.collector import CacheMetrics


def make_entries(count, size=10, now=None):
    """Entries key0..keyN, key0 created and read first."""
    now = now if now is not None else time.time()
    entries = {}
    for i in range(count):
        stamp = now - 1000 + i
        entries[f"key{i}"] = CacheEntry(
            key=f"key{i}",
            value="x" * size,
            size=size,
            created_at=stamp,
            updated_at=stamp,
            accessed_at=stamp,
        )
    return entries


def metrics_for(entries):
    return CacheMetrics(
        current_size=sum(e.size for e in entries.values()),
        current_entries=len(entries),
    )


def assert_consistent(entries, metrics):
    assert metrics.current_size == sum(e.size for e in entries.values())
    assert metrics.current_entries == len(entries)


class TestCleanupBySize:
    """Tests for size-based eviction."""

    def test_shrinks_to_target(self):
        """Test eviction stops at the target size."""
        cleanup = CacheCleanup()
        entries = make_entries(5)
        metrics = metrics_for(entries)

        removed = cleanup.cleanup_by_size(entries, metrics, 15)

        assert metrics.current_size <= 15
        assert removed >= 3
        assert metrics.evictions == removed
        assert_consistent(entries, metrics)

    def test_lru_order(self):
        """Test least recently read entries go first."""
        cleanup = CacheCleanup(CacheConfig(eviction_policy="lru"))
        entries = make_entries(4)
        entries["key0"].accessed_at = time.time()
        metrics = metrics_for(entries)
        evicted = []

        cleanup.cleanup_by_size(entries, metrics, 20, lambda k, r: evicted.append((k, r)))

        assert evicted == [("key1", "size"), ("key2", "size")]
        assert set(entries) == {"key0", "key3"}

    def test_lfu_order(self):
        """Test least read entries go first."""
        cleanup = CacheCleanup(CacheConfig(eviction_policy="lfu"))
        entries = make_entries(3)
        entries["key0"].access_count = 5
        entries["key1"].access_count = 1
        entries["key2"].access_count = 3
        metrics = metrics_for(entries)

        cleanup.cleanup_by_size(entries, metrics, 20)

        assert set(entries) == {"key0", "key2"}

    def test_under_target_is_noop(self):
        """Test nothing is evicted below the target."""
        cleanup = CacheCleanup()
        entries = make_entries(2)
        metrics = metrics_for(entries)

        assert cleanup.cleanup_by_size(entries, metrics, 100) == 0
        assert len(entries) == 2

    def test_negative_target_rejected(self):
        """Test invalid target leaves entries untouched."""
        cleanup = CacheCleanup()
        entries = make_entries(3)
        metrics = metrics_for(entries)

        with pytest.raises(InvalidArgumentError):
            cleanup.cleanup_by_size(entries, metrics, -1)

        assert len(entries) == 3
        assert metrics.evictions == 0


class TestCleanupByCount:
    """Tests for count-based eviction."""

    def test_shrinks_to_count(self):
        """Test eviction stops at the target count."""
        cleanup = CacheCleanup()
        entries = make_entries(5)
        metrics = metrics_for(entries)
        reasons = []

        removed = cleanup.cleanup_by_count(entries, metrics, 2, lambda k, r: reasons.append(r))

        assert removed == 3
        assert set(entries) == {"key3", "key4"}
        assert reasons == ["capacity"] * 3
        assert_consistent(entries, metrics)


class TestExpiryAndAge:
    """Tests for expiry, age and idle cleanup."""

    def test_clean_expired(self):
        """Test only expired entries are removed."""
        cleanup = CacheCleanup()
        entries = make_entries(3)
        entries["key0"].expires_at = time.time() - 1
        entries["key1"].expires_at = time.time() + 3600
        metrics = metrics_for(entries)

        assert cleanup.clean_expired_entries(entries, metrics) == 1
        assert set(entries) == {"key1", "key2"}
        assert_consistent(entries, metrics)

    def test_cleanup_by_age(self):
        """Test entries older than max_age are removed."""
        cleanup = CacheCleanup()
        entries = make_entries(2)
        entries["fresh"] = CacheEntry(key="fresh", value="x", size=1)
        metrics = metrics_for(entries)

        assert cleanup.cleanup_by_age(entries, metrics, 60) == 2
        assert set(entries) == {"fresh"}
        assert_consistent(entries, metrics)

        with pytest.raises(InvalidArgumentError):
            cleanup.cleanup_by_age(entries, metrics, 0)

    def test_cleanup_unused(self):
        """Test idle entries are removed."""
        cleanup = CacheCleanup()
        entries = make_entries(3)
        entries["key2"].accessed_at = time.time()
        metrics = metrics_for(entries)

        assert cleanup.cleanup_unused_entries(entries, metrics, 60) == 2
        assert set(entries) == {"key2"}

        with pytest.raises(InvalidArgumentError):
            cleanup.cleanup_unused_entries(entries, metrics, -1)


class TestCompaction:
    """Tests for compaction."""

    def test_compact(self):
        """Test compaction reports before and after numbers."""
        cleanup = CacheCleanup()
        entries = make_entries(4)
        entries["key0"].expires_at = time.time() - 1
        metrics = metrics_for(entries)
        metrics.current_size = 999

        result = cleanup.compact_cache(entries, metrics)

        assert result.initial_entries == 4
        assert result.final_entries == 3
        assert result.expired_entries_removed == 1
        assert result.final_size == 30
        assert metrics.last_compaction == result.end_time
        assert_consistent(entries, metrics)


class TestMaintenance:
    """Tests for the maintenance pass."""

    def test_clean_pass(self):
        """Test every task succeeds on a clean map."""
        cleanup = CacheCleanup()
        entries = make_entries(3)
        metrics = metrics_for(entries)

        result = cleanup.perform_maintenance(entries, metrics)

        assert result.success
        assert [t.name for t in result.tasks] == [
            "Clean Expired Entries",
            "Validate Cache Integrity",
            "Optimize Cache Structure",
        ]

    def test_failed_task_is_reported(self):
        """Test an integrity failure is collected, not raised."""
        cleanup = CacheCleanup()
        entries = make_entries(2)
        entries["key0"].size = -5
        metrics = metrics_for(entries)

        result = cleanup.perform_maintenance(entries, metrics)

        assert not result.success
        validate = result.tasks[1]
        assert not validate.success
        assert "negative size" in validate.error
        assert result.tasks[2].success

    def test_structure_optimization(self):
        """Test metadata and timestamps are fixed up."""
        cleanup = CacheCleanup()
        entries = make_entries(1)
        entry = entries["key0"]
        entry.metadata = None
        entry.updated_at = entry.created_at - 10
        entry.accessed_at = 0
        metrics = metrics_for(entries)

        result = cleanup.perform_maintenance(entries, metrics)

        assert "Optimized 1" in result.tasks[2].details
        assert entry.metadata == {}
        assert entry.updated_at == entry.created_at
        assert entry.accessed_at == entry.created_at

    def test_cancel(self):
        """Test cancellation raises."""
        cleanup = CacheCleanup()
        entries = make_entries(2)
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(OperationCancelledError):
            cleanup.perform_maintenance(entries, metrics_for(entries), cancel=cancel)


class TestScheduledCleanup:
    """Tests for scheduled cleanup."""

    def test_triggers(self):
        """Test the interval and size triggers are independent."""
        cleanup = CacheCleanup(CacheConfig(max_size=30, sync_interval=60))
        now = time.time()
        metrics = CacheMetrics(current_size=50)

        assert cleanup.is_cleanup_due(None)
        assert not cleanup.is_cleanup_due(now - 10, now)
        assert cleanup.is_cleanup_due(now - 61, now)
        assert cleanup.is_over_size_limit(metrics)
        assert not cleanup.is_over_size_limit(CacheMetrics(current_size=30))
        assert not CacheCleanup(CacheConfig(max_size=0)).is_over_size_limit(metrics)

    def test_skipped(self):
        """Test nothing runs when no trigger fires."""
        cleanup = CacheCleanup(CacheConfig(sync_interval=60))
        entries = make_entries(2)
        metrics = metrics_for(entries)

        result = cleanup.scheduled_cleanup(entries, metrics, time.time())

        assert result.skipped
        assert result.tasks == []
        assert metrics.last_cleanup is None

    def test_interval_trigger(self):
        """Test an elapsed interval runs expired and unused cleanup."""
        cleanup = CacheCleanup(CacheConfig(sync_interval=60))
        entries = make_entries(2)
        entries["key0"].expires_at = time.time() - 1
        metrics = metrics_for(entries)

        result = cleanup.scheduled_cleanup(entries, metrics, None)

        assert result.triggers == ["interval"]
        assert [t.type for t in result.tasks] == ["expired", "unused"]
        assert result.total_items_removed == 1
        assert not result.has_errors
        assert metrics.last_cleanup is not None

    def test_size_trigger(self):
        """Test exceeding max size shrinks to the target ratio."""
        cleanup = CacheCleanup(CacheConfig(max_size=30, sync_interval=60))
        entries = make_entries(5)
        metrics = metrics_for(entries)

        result = cleanup.scheduled_cleanup(entries, metrics, time.time())

        assert result.triggers == ["size_limit"]
        assert [t.type for t in result.tasks] == ["expired", "unused", "size"]
        assert metrics.current_size <= 24
        assert_consistent(entries, metrics)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
