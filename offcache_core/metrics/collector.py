"""OffCache Metrics Collector - Cache Metrics and Monitoring.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import time
from collections import defaultdict, deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class CacheMetrics:
    """Cache metrics container.

    Counters only grow (until reset); gauges mirror the physical state of
    the entry map.

    Attributes:
        hits: Successful gets
        misses: Failed gets (absent or expired)
        gets: All gets
        sets: Set operations
        deletes: Delete operations that removed an entry
        evictions: Entries removed by expiry, cleanup or limits
        current_size: Sum of live entry sizes
        max_size: Configured size limit
        current_entries: Live entry count
        max_entries: Configured entry limit
        last_cleanup: Last scheduled/expired cleanup time
        last_compaction: Last compaction time
        last_backup: Last backup time
        average_get_time_ms: Mean get latency
        average_set_time_ms: Mean set latency
    """

    hits: int = 0
    misses: int = 0
    gets: int = 0
    sets: int = 0
    deletes: int = 0
    evictions: int = 0
    current_size: int = 0
    max_size: int = 0
    current_entries: int = 0
    max_entries: int = 0
    last_cleanup: Optional[float] = None
    last_compaction: Optional[float] = None
    last_backup: Optional[float] = None
    average_get_time_ms: float = 0.0
    average_set_time_ms: float = 0.0

    @property
    def hit_rate(self) -> float:
        """Hits / gets, 0.0 when there were no gets."""
        return self.hits / self.gets if self.gets > 0 else 0.0

    @property
    def miss_rate(self) -> float:
        """Misses / gets, 0.0 when there were no gets."""
        return self.misses / self.gets if self.gets > 0 else 0.0

    @property
    def total_operations(self) -> int:
        return self.gets + self.sets + self.deletes

    def remove_size(self, size: int) -> None:
        """Subtract an entry size from the gauge, clamped at 0."""
        self.current_size = max(0, self.current_size - max(0, size))

    def copy(self) -> "CacheMetrics":
        return dataclasses.replace(self)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary.

        Returns:
            Metrics dictionary including derived rates
        """
        data = dataclasses.asdict(self)
        data["hit_rate"] = self.hit_rate
        data["miss_rate"] = self.miss_rate
        data["total_operations"] = self.total_operations
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "CacheMetrics":
        """Create from dictionary; derived fields are ignored."""
        known = {f.name for f in dataclasses.fields(cls)}
        return cls(**{k: v for k, v in (data or {}).items() if k in known})


class MetricsCollector:
    """Collects cache metrics.

    Pure bookkeeping: the collector never sees entry contents, only the
    size deltas the store reports.

    Example:
        collector = MetricsCollector(max_size=1024)
        collector.record_set(size_delta=10, new_entry=True)
        collector.record_hit()

        print(f"Hit rate: {collector.get_hit_rate():.2%}")
    """

    def __init__(
        self,
        max_size: int = 0,
        max_entries: int = 0,
        window_seconds: int = 60,
    ):
        """Initialize collector.

        Args:
            max_size: Size limit reported in the gauges
            max_entries: Entry limit reported in the gauges
            window_seconds: Window for ops/second
        """
        self.window_seconds = window_seconds
        self._metrics = CacheMetrics(max_size=max_size, max_entries=max_entries)
        self._evictions_by_reason: Dict[str, int] = defaultdict(int)

        self._ops_window: Deque[float] = deque()
        self._latencies: Dict[str, Deque[float]] = {
            "get": deque(maxlen=10000),
            "set": deque(maxlen=10000),
        }

        self._started_at = time.time()
        self._lock = threading.RLock()

    def record_hit(self) -> None:
        """Record a cache hit."""
        with self._lock:
            self._metrics.hits += 1
            self._metrics.gets += 1
            self._record_op()

    def record_miss(self) -> None:
        """Record a cache miss."""
        with self._lock:
            self._metrics.misses += 1
            self._metrics.gets += 1
            self._record_op()

    def record_set(self, size_delta: int, new_entry: bool) -> None:
        """Record a set operation.

        Args:
            size_delta: New size minus replaced size
            new_entry: True when the key was not present before
        """
        with self._lock:
            self._metrics.sets += 1
            self._metrics.current_size = max(0, self._metrics.current_size + size_delta)
            if new_entry:
                self._metrics.current_entries += 1
            self._record_op()

    def record_delete(self, size: int) -> None:
        """Record removal of an entry by explicit delete."""
        with self._lock:
            self._metrics.deletes += 1
            self._metrics.remove_size(size)
            self._metrics.current_entries = max(0, self._metrics.current_entries - 1)
            self._record_op()

    def record_eviction(self, size: int, reason: str) -> None:
        """Record removal of an entry by expiry, cleanup or limits.

        Args:
            size: Size of the removed entry
            reason: Eviction reason (expired, size, capacity, ...)
        """
        with self._lock:
            self._metrics.evictions += 1
            self._metrics.remove_size(size)
            self._metrics.current_entries = max(0, self._metrics.current_entries - 1)
            self._evictions_by_reason[reason] += 1

    def record_eviction_reason(self, reason: str) -> None:
        """Tally an eviction already counted in a snapshot passed to restore()."""
        with self._lock:
            self._evictions_by_reason[reason] += 1

    def record_latency(self, operation: str, ms: float) -> None:
        """Record operation latency.

        Args:
            operation: "get" or "set"
            ms: Latency in milliseconds
        """
        with self._lock:
            if operation in self._latencies:
                self._latencies[operation].append(ms)

    def record_cleanup(self, at: Optional[float] = None) -> None:
        with self._lock:
            self._metrics.last_cleanup = at if at is not None else time.time()

    def record_compaction(self, at: Optional[float] = None) -> None:
        with self._lock:
            self._metrics.last_compaction = at if at is not None else time.time()

    def record_backup(self, at: Optional[float] = None) -> None:
        with self._lock:
            self._metrics.last_backup = at if at is not None else time.time()

    def set_limits(self, max_size: int, max_entries: int) -> None:
        """Update the limit gauges."""
        with self._lock:
            self._metrics.max_size = max_size
            self._metrics.max_entries = max_entries

    def sync_gauges(self, size: int, entries: int) -> None:
        """Overwrite size/count gauges with recomputed values."""
        with self._lock:
            self._metrics.current_size = max(0, size)
            self._metrics.current_entries = max(0, entries)

    def _record_op(self) -> None:
        """Record operation for rate calculation."""
        now = time.time()
        self._ops_window.append(now)

        cutoff = now - self.window_seconds
        while self._ops_window and self._ops_window[0] < cutoff:
            self._ops_window.popleft()

    def _calculate_ops_per_second(self) -> float:
        if not self._ops_window:
            return 0.0

        now = time.time()
        cutoff = now - self.window_seconds
        while self._ops_window and self._ops_window[0] < cutoff:
            self._ops_window.popleft()

        if not self._ops_window:
            return 0.0

        elapsed = now - self._ops_window[0]
        if elapsed == 0:
            return 0.0
        return len(self._ops_window) / elapsed

    def _average_latency(self, operation: str) -> float:
        samples = self._latencies[operation]
        if not samples:
            return 0.0
        return sum(samples) / len(samples)

    def get_metrics(self) -> CacheMetrics:
        """Get a snapshot of the current metrics.

        Returns:
            Independent CacheMetrics copy
        """
        with self._lock:
            snapshot = self._metrics.copy()
            snapshot.average_get_time_ms = self._average_latency("get")
            snapshot.average_set_time_ms = self._average_latency("set")
            return snapshot

    def restore(self, metrics: CacheMetrics) -> None:
        """Install a metrics snapshot (after cleanup, repair or restore).

        Args:
            metrics: Snapshot to install
        """
        with self._lock:
            self._metrics = metrics.copy()

    def reset(self) -> None:
        """Zero the activity counters.

        Gauges and limits describe the physical state of the cache and are
        kept.
        """
        with self._lock:
            self._metrics.hits = 0
            self._metrics.misses = 0
            self._metrics.gets = 0
            self._metrics.sets = 0
            self._metrics.deletes = 0
            self._metrics.evictions = 0
            self._evictions_by_reason.clear()
            self._ops_window.clear()
            for samples in self._latencies.values():
                samples.clear()

    def get_hit_rate(self) -> float:
        with self._lock:
            return self._metrics.hit_rate

    def get_miss_rate(self) -> float:
        with self._lock:
            return self._metrics.miss_rate

    def get_uptime(self) -> float:
        """Seconds since the collector was created."""
        return time.time() - self._started_at

    def get_evictions_by_reason(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._evictions_by_reason)

    @property
    def ops_per_second(self) -> float:
        with self._lock:
            return self._calculate_ops_per_second()

    def to_prometheus(self) -> str:
        """Export metrics in Prometheus format.

        Returns:
            Prometheus-formatted metrics
        """
        metrics = self.get_metrics()
        counters: Tuple[Tuple[str, str, int], ...] = (
            ("cache_hits_total", "Total cache hits", metrics.hits),
            ("cache_misses_total", "Total cache misses", metrics.misses),
            ("cache_sets_total", "Total set operations", metrics.sets),
            ("cache_deletes_total", "Total delete operations", metrics.deletes),
            ("cache_evictions_total", "Total evictions", metrics.evictions),
        )
        lines = []
        for name, help_text, value in counters:
            lines.extend([
                f"# HELP {name} {help_text}",
                f"# TYPE {name} counter",
                f"{name} {value}",
                "",
            ])

        gauges = (
            ("cache_hit_rate", "Cache hit rate", f"{metrics.hit_rate:.4f}"),
            ("cache_entries", "Current entry count", str(metrics.current_entries)),
            ("cache_size_bytes", "Current size in bytes", str(metrics.current_size)),
            ("cache_get_latency_avg_ms", "Average get latency", f"{metrics.average_get_time_ms:.2f}"),
            ("cache_uptime_seconds", "Collector uptime", f"{self.get_uptime():.0f}"),
        )
        for name, help_text, value in gauges:
            lines.extend([
                f"# HELP {name} {help_text}",
                f"# TYPE {name} gauge",
                f"{name} {value}",
                "",
            ])
        return "\n".join(lines).rstrip() + "\n"

    def __repr__(self) -> str:
        metrics = self.get_metrics()
        return f"MetricsCollector(hits={metrics.hits}, hit_rate={metrics.hit_rate:.2%})"


class Timer:
    """Context manager recording an operation latency."""

    def __init__(self, collector: MetricsCollector, operation: str):
        self._collector = collector
        self._operation = operation
        self._start: float = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        elapsed_ms = (time.perf_counter() - self._start) * 1000
        self._collector.record_latency(self._operation, elapsed_ms)


__all__ = [
    "CacheMetrics",
    "MetricsCollector",
    "Timer",
]
