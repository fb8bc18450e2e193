"""Tests for metrics collection and reporting.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import time

import pytest

from offcache_core.cache.cache import Cache
from offcache_core.cache.offline import OfflineManager
from offcache_core.errors import KeyNotFoundError
from offcache_core.metrics.collector import CacheMetrics, MetricsCollector, Timer
from offcache_core.metrics.reporter import CacheReporter


class TestMetricsCollector:
    """Tests for MetricsCollector."""

    def test_rates(self):
        """Test hit and miss rates."""
        collector = MetricsCollector()
        assert collector.get_hit_rate() == 0.0
        assert collector.get_miss_rate() == 0.0

        collector.record_hit()
        collector.record_hit()
        collector.record_hit()
        collector.record_miss()

        assert collector.get_hit_rate() == 0.75
        assert collector.get_hit_rate() + collector.get_miss_rate() == pytest.approx(1.0)
        assert collector.get_metrics().gets == 4

    def test_gauges(self):
        """Test size and count gauges follow set/delete/eviction."""
        collector = MetricsCollector(max_size=1000, max_entries=10)

        collector.record_set(100, new_entry=True)
        collector.record_set(50, new_entry=True)
        collector.record_delete(50)
        collector.record_eviction(100, "size")

        metrics = collector.get_metrics()
        assert metrics.current_size == 0
        assert metrics.current_entries == 0
        assert metrics.deletes == 1
        assert metrics.evictions == 1
        assert metrics.max_size == 1000
        assert collector.get_evictions_by_reason() == {"size": 1}

    def test_gauges_clamped(self):
        """Test gauges never go negative."""
        collector = MetricsCollector()

        collector.record_delete(100)
        collector.record_eviction(5, "expired")

        metrics = collector.get_metrics()
        assert metrics.current_size == 0
        assert metrics.current_entries == 0

    def test_reset_keeps_gauges(self):
        """Test reset zeroes counters only."""
        collector = MetricsCollector(max_size=500)
        collector.record_set(40, new_entry=True)
        collector.record_hit()
        collector.record_eviction_reason("manual")

        collector.reset()

        metrics = collector.get_metrics()
        assert metrics.hits == 0
        assert metrics.sets == 0
        assert metrics.current_size == 40
        assert metrics.current_entries == 1
        assert metrics.max_size == 500
        assert collector.get_evictions_by_reason() == {}

    def test_snapshot_is_independent(self):
        """Test get_metrics returns a copy."""
        collector = MetricsCollector()

        metrics = collector.get_metrics()
        metrics.hits = 99

        assert collector.get_metrics().hits == 0

    def test_restore(self):
        """Test restore installs a snapshot."""
        collector = MetricsCollector()

        collector.restore(CacheMetrics(hits=3, gets=4, current_size=7))

        assert collector.get_metrics().current_size == 7
        assert collector.get_hit_rate() == 0.75

    def test_timer(self):
        """Test Timer records latency."""
        collector = MetricsCollector()

        with Timer(collector, "get"):
            time.sleep(0.01)

        assert collector.get_metrics().average_get_time_ms > 0

    def test_prometheus(self):
        """Test Prometheus export."""
        collector = MetricsCollector()
        collector.record_hit()
        collector.record_set(10, new_entry=True)

        output = collector.to_prometheus()

        assert "# TYPE cache_hits_total counter" in output
        assert "cache_hits_total 1" in output
        assert "cache_size_bytes 10" in output

    def test_uptime(self):
        """Test uptime is non-negative."""
        assert MetricsCollector().get_uptime() >= 0


class TestCacheMetrics:
    """Tests for CacheMetrics."""

    def test_dict_round_trip(self):
        """Test derived fields are written but not read back."""
        metrics = CacheMetrics(hits=1, misses=1, gets=2, last_backup=123.0)

        data = metrics.to_dict()
        assert data["hit_rate"] == 0.5
        assert data["total_operations"] == 2

        assert CacheMetrics.from_dict(data) == metrics
        assert CacheMetrics.from_dict(None) == CacheMetrics()


class TestCacheReporter:
    """Tests for CacheReporter."""

    def test_summary(self):
        """Test summary fields."""
        cache = Cache()
        cache.set("key", "value")
        cache.get("key")
        with pytest.raises(KeyNotFoundError):
            cache.get("missing")
        cache.delete("key")

        summary = CacheReporter(cache).summary()

        assert summary["mode"] == "online"
        assert summary["entries"] == 0
        assert summary["counters"]["gets"] == 2
        assert summary["counters"]["deletes"] == 1
        assert summary["hit_rate"] == 0.5
        assert summary["last_backup"] is None

    def test_summary_reports_offline_mode(self):
        """Test the mode comes from the offline manager."""
        cache = Cache()
        offline = OfflineManager(cache)

        assert CacheReporter(cache, offline).summary()["mode"] == "online"

    def test_render(self):
        """Test text rendering."""
        cache = Cache()
        cache.set("key", "value", ttl=0.05)
        time.sleep(0.1)
        cache.clean()

        output = CacheReporter(cache).render()

        assert output.startswith("Cache Status:")
        assert "Location:" in output
        assert "Evicted:         expired=1" in output
        assert "Last backup:     never" in output


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
