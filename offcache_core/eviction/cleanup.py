"""OffCache Cleanup - Expiry Sweeps, Eviction and Maintenance.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

Every operation here works on an entry dict and a CacheMetrics snapshot
handed in by the caller, who either holds the store lock or passes an
isolated copy. After each operation ``metrics.current_size`` equals the
sum of entry sizes and ``metrics.current_entries`` equals ``len(entries)``.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from offcache_core.cache.config import CacheConfig
from offcache_core.cache.entry import CacheEntry
from offcache_core.errors import InvalidArgumentError, OperationCancelledError
from offcache_core.eviction.policy import get_policy
from offcache_core.metrics.collector import CacheMetrics
from offcache_core.validation.validator import validate_entries

logger = logging.getLogger(__name__)

EvictionSink = Callable[[str, str], None]
Entries = Dict[str, Optional[CacheEntry]]

# Eviction reasons reported to listeners and per-reason tallies
REASON_EXPIRED = "expired"
REASON_MANUAL = "manual"
REASON_SIZE = "size"
REASON_CAPACITY = "capacity"
REASON_AGE = "age"
REASON_UNUSED = "unused"


@dataclass
class CompactionResult:
    """Result of a compaction pass.

    Attributes:
        start_time: When compaction started
        end_time: When it finished
        duration: Elapsed seconds
        initial_entries: Entries before
        final_entries: Entries after
        entries_removed: Entries removed
        expired_entries_removed: Entries removed because they expired
        initial_size: Bytes before
        final_size: Bytes after
        size_reduced: Bytes freed
    """

    start_time: float = 0.0
    end_time: float = 0.0
    duration: float = 0.0
    initial_entries: int = 0
    final_entries: int = 0
    entries_removed: int = 0
    expired_entries_removed: int = 0
    initial_size: int = 0
    final_size: int = 0
    size_reduced: int = 0


@dataclass
class MaintenanceTask:
    """One step of a maintenance pass."""

    name: str
    success: bool = False
    details: str = ""
    error: Optional[str] = None
    duration: float = 0.0


@dataclass
class MaintenanceResult:
    """Result of perform_maintenance().

    Attributes:
        success: True only if every task succeeded
        tasks: Per-task reports, in execution order
    """

    start_time: float = 0.0
    end_time: float = 0.0
    duration: float = 0.0
    success: bool = False
    tasks: List[MaintenanceTask] = field(default_factory=list)


@dataclass
class CleanupTask:
    """One step of a scheduled cleanup."""

    type: str
    success: bool = False
    items_removed: int = 0
    error: Optional[str] = None


@dataclass
class ScheduledCleanupResult:
    """Result of scheduled_cleanup().

    Attributes:
        skip_reason: Set when neither trigger fired
        triggers: Which triggers fired ("interval", "size_limit")
        tasks: Cleanup tasks that ran
        total_items_removed: Sum over tasks
        has_errors: True if any task failed
    """

    start_time: float = 0.0
    end_time: float = 0.0
    duration: float = 0.0
    last_cleanup: Optional[float] = None
    skip_reason: Optional[str] = None
    triggers: List[str] = field(default_factory=list)
    tasks: List[CleanupTask] = field(default_factory=list)
    total_items_removed: int = 0
    has_errors: bool = False

    @property
    def skipped(self) -> bool:
        return self.skip_reason is not None


def _check_cancelled(cancel: Optional[threading.Event], stage: str) -> None:
    if cancel is not None and cancel.is_set():
        raise OperationCancelledError(f"cancelled during {stage}")


class CacheCleanup:
    """Cache cleanup and maintenance operations.

    Stateless apart from configuration: the entry map and metrics are
    passed to every call.

    Example:
        cleanup = CacheCleanup(config)
        removed = cleanup.clean_expired_entries(entries, metrics)
        result = cleanup.scheduled_cleanup(entries, metrics, last_cleanup)
    """

    def __init__(self, config: Optional[CacheConfig] = None):
        """Initialize cleanup engine.

        Args:
            config: Cache configuration
        """
        self.config = config or CacheConfig()

    def set_config(self, config: CacheConfig) -> None:
        self.config = config

    def _remove(
        self,
        entries: Entries,
        metrics: CacheMetrics,
        key: str,
        reason: str,
        on_evict: Optional[EvictionSink],
    ) -> None:
        """Remove one entry and keep the gauges in step."""
        entry = entries.pop(key, None)
        metrics.remove_size(entry.size if entry is not None else 0)
        metrics.evictions += 1
        metrics.current_entries = len(entries)
        if on_evict is not None:
            on_evict(key, reason)

    def clean_expired_entries(
        self,
        entries: Entries,
        metrics: CacheMetrics,
        on_evict: Optional[EvictionSink] = None,
    ) -> int:
        """Remove every entry whose expiry has passed.

        Entries without expiry are never touched.

        Returns:
            Number removed
        """
        now = time.time()
        expired = [
            key for key, entry in entries.items()
            if entry is not None and entry.is_expired(now)
        ]
        for key in expired:
            self._remove(entries, metrics, key, REASON_EXPIRED, on_evict)

        metrics.current_entries = len(entries)
        if expired:
            logger.debug(f"Removed {len(expired)} expired entries")
        return len(expired)

    def cleanup_by_age(
        self,
        entries: Entries,
        metrics: CacheMetrics,
        max_age: float,
        on_evict: Optional[EvictionSink] = None,
    ) -> int:
        """Remove entries created more than max_age seconds ago.

        Raises:
            InvalidArgumentError: If max_age <= 0
        """
        if max_age <= 0:
            raise InvalidArgumentError(
                "max_age must be positive", context={"max_age": max_age}
            )

        cutoff = time.time() - max_age
        old = [
            key for key, entry in entries.items()
            if entry is not None and entry.created_at < cutoff
        ]
        for key in old:
            self._remove(entries, metrics, key, REASON_AGE, on_evict)

        metrics.current_entries = len(entries)
        return len(old)

    def cleanup_by_size(
        self,
        entries: Entries,
        metrics: CacheMetrics,
        target_size: int,
        on_evict: Optional[EvictionSink] = None,
        reason: str = REASON_SIZE,
    ) -> int:
        """Evict entries in policy order until current_size <= target_size.

        Raises:
            InvalidArgumentError: If target_size < 0
        """
        if target_size < 0:
            raise InvalidArgumentError(
                "target_size cannot be negative", context={"target_size": target_size}
            )
        if metrics.current_size <= target_size:
            return 0

        policy = get_policy(self.config.eviction_policy)
        candidates = policy.order(e for e in entries.values() if e is not None)

        removed = 0
        for entry in candidates:
            if metrics.current_size <= target_size:
                break
            self._remove(entries, metrics, entry.key, reason, on_evict)
            removed += 1

        metrics.current_entries = len(entries)
        logger.debug(
            f"Size cleanup ({policy.name.value}) removed {removed} entries, "
            f"size now {metrics.current_size}"
        )
        return removed

    def cleanup_by_count(
        self,
        entries: Entries,
        metrics: CacheMetrics,
        target_entries: int,
        on_evict: Optional[EvictionSink] = None,
    ) -> int:
        """Evict entries in policy order until len(entries) <= target_entries.

        Raises:
            InvalidArgumentError: If target_entries < 0
        """
        if target_entries < 0:
            raise InvalidArgumentError(
                "target_entries cannot be negative",
                context={"target_entries": target_entries},
            )
        if len(entries) <= target_entries:
            return 0

        policy = get_policy(self.config.eviction_policy)
        candidates = policy.order(e for e in entries.values() if e is not None)

        removed = 0
        for entry in candidates:
            if len(entries) <= target_entries:
                break
            self._remove(entries, metrics, entry.key, REASON_CAPACITY, on_evict)
            removed += 1
        return removed

    def cleanup_unused_entries(
        self,
        entries: Entries,
        metrics: CacheMetrics,
        threshold: float,
        on_evict: Optional[EvictionSink] = None,
    ) -> int:
        """Remove entries not read for more than threshold seconds.

        Raises:
            InvalidArgumentError: If threshold <= 0
        """
        if threshold <= 0:
            raise InvalidArgumentError(
                "unused threshold must be positive", context={"threshold": threshold}
            )

        cutoff = time.time() - threshold
        unused = [
            key for key, entry in entries.items()
            if entry is not None and entry.accessed_at < cutoff
        ]
        for key in unused:
            self._remove(entries, metrics, key, REASON_UNUSED, on_evict)

        metrics.current_entries = len(entries)
        return len(unused)

    def compact_cache(
        self,
        entries: Entries,
        metrics: CacheMetrics,
        on_evict: Optional[EvictionSink] = None,
    ) -> CompactionResult:
        """Remove expired entries and report the before/after numbers.

        Returns:
            CompactionResult
        """
        result = CompactionResult(
            start_time=time.time(),
            initial_entries=len(entries),
            initial_size=metrics.current_size,
        )

        result.expired_entries_removed = self.clean_expired_entries(entries, metrics, on_evict)

        metrics.current_size = sum(e.size for e in entries.values() if e is not None)
        metrics.current_entries = len(entries)

        result.end_time = time.time()
        result.duration = result.end_time - result.start_time
        result.final_entries = len(entries)
        result.final_size = metrics.current_size
        result.entries_removed = result.initial_entries - result.final_entries
        result.size_reduced = result.initial_size - result.final_size
        metrics.last_compaction = result.end_time

        logger.info(
            f"Compaction removed {result.entries_removed} entries, "
            f"freed {result.size_reduced} bytes in {result.duration * 1000:.1f}ms"
        )
        return result

    def perform_maintenance(
        self,
        entries: Entries,
        metrics: CacheMetrics,
        cancel: Optional[threading.Event] = None,
        on_evict: Optional[EvictionSink] = None,
    ) -> MaintenanceResult:
        """Run expiry cleanup, integrity validation and structure repair.

        Task failures are collected, not raised. Cancellation is checked
        between tasks and between entries and raises; callers wanting an
        all-or-nothing pass hand in a copy.

        Raises:
            OperationCancelledError: If cancel is set mid-pass
        """
        result = MaintenanceResult(start_time=time.time())

        def run(name: str, task: Callable[[], str]) -> None:
            _check_cancelled(cancel, name)
            report = MaintenanceTask(name=name)
            started = time.time()
            try:
                report.details = task()
                report.success = True
            except OperationCancelledError:
                raise
            except Exception as e:
                report.error = str(e)
                logger.warning(f"Maintenance task {name!r} failed: {e}")
            report.duration = time.time() - started
            result.tasks.append(report)

        def clean_expired() -> str:
            count = self.clean_expired_entries(entries, metrics, on_evict)
            return f"Removed {count} expired entries"

        def validate() -> str:
            issues = validate_entries(entries)
            if issues:
                raise ValueError(f"Found {len(issues)} integrity issues: " + "; ".join(issues))
            return "Cache integrity validated successfully"

        def optimize() -> str:
            count = self._optimize_structure(entries, cancel)
            return f"Optimized {count} cache entries"

        run("Clean Expired Entries", clean_expired)
        run("Validate Cache Integrity", validate)
        run("Optimize Cache Structure", optimize)

        result.end_time = time.time()
        result.duration = result.end_time - result.start_time
        result.success = all(task.success for task in result.tasks)
        return result

    def _optimize_structure(
        self,
        entries: Entries,
        cancel: Optional[threading.Event] = None,
    ) -> int:
        """Backfill metadata and fix out-of-order timestamps.

        Returns:
            Number of entries changed
        """
        optimized = 0
        for entry in entries.values():
            _check_cancelled(cancel, "structure optimization")
            if entry is None:
                continue

            changed = False
            if not isinstance(entry.metadata, dict):
                entry.metadata = {}
                changed = True
            if not entry.accessed_at or entry.accessed_at < entry.created_at:
                entry.accessed_at = entry.created_at
                changed = True
            if entry.updated_at < entry.created_at:
                entry.updated_at = entry.created_at
                changed = True

            if changed:
                optimized += 1
        return optimized

    def is_cleanup_due(self, last_cleanup: Optional[float], now: Optional[float] = None) -> bool:
        """Time trigger: more than sync_interval since the last cleanup."""
        if last_cleanup is None:
            return True
        if now is None:
            now = time.time()
        return now - last_cleanup > self.config.sync_interval

    def is_over_size_limit(self, metrics: CacheMetrics) -> bool:
        """Size trigger: current size above a non-zero max_size."""
        return self.config.max_size > 0 and metrics.current_size > self.config.max_size

    def scheduled_cleanup(
        self,
        entries: Entries,
        metrics: CacheMetrics,
        last_cleanup: Optional[float],
        on_evict: Optional[EvictionSink] = None,
    ) -> ScheduledCleanupResult:
        """Rate-limited cleanup for the background scheduler.

        Runs when either trigger fires: the sync interval has elapsed, or
        the cache is over its size limit. Composes expired, unused and (when
        over the limit) size-based cleanup.

        Returns:
            ScheduledCleanupResult, with skip_reason set if nothing ran
        """
        now = time.time()
        result = ScheduledCleanupResult(start_time=now, last_cleanup=last_cleanup)

        if self.is_cleanup_due(last_cleanup, now):
            result.triggers.append("interval")
        over_limit = self.is_over_size_limit(metrics)
        if over_limit:
            result.triggers.append("size_limit")

        if not result.triggers:
            elapsed = now - last_cleanup if last_cleanup is not None else 0.0
            result.skip_reason = (
                f"Cleanup not needed, last cleanup was {elapsed:.1f}s ago "
                f"(interval {self.config.sync_interval:.1f}s) and size is within limit"
            )
            result.end_time = time.time()
            return result

        def run(task_type: str, task: Callable[[], int]) -> None:
            report = CleanupTask(type=task_type)
            try:
                report.items_removed = task()
                report.success = True
            except Exception as e:
                report.error = str(e)
                logger.warning(f"Scheduled cleanup task {task_type!r} failed: {e}")
            result.tasks.append(report)

        run("expired", lambda: self.clean_expired_entries(entries, metrics, on_evict))
        run("unused", lambda: self.cleanup_unused_entries(
            entries, metrics, self.config.unused_threshold, on_evict
        ))
        if over_limit:
            target = int(self.config.max_size * self.config.cleanup_target_ratio)
            run("size", lambda: self.cleanup_by_size(entries, metrics, target, on_evict))

        result.end_time = time.time()
        result.duration = result.end_time - result.start_time
        result.total_items_removed = sum(task.items_removed for task in result.tasks)
        result.has_errors = any(not task.success for task in result.tasks)
        metrics.last_cleanup = result.end_time

        logger.info(
            f"Scheduled cleanup ({', '.join(result.triggers)}) removed "
            f"{result.total_items_removed} entries"
        )
        return result


__all__ = [
    "CacheCleanup",
    "CompactionResult",
    "MaintenanceResult",
    "MaintenanceTask",
    "ScheduledCleanupResult",
    "CleanupTask",
    "REASON_EXPIRED",
    "REASON_MANUAL",
    "REASON_SIZE",
    "REASON_CAPACITY",
    "REASON_AGE",
    "REASON_UNUSED",
]
