"""OffCache Cache - Thread-Safe Entry Store.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import os
import re
import threading
import time
import zlib
from contextlib import nullcontext
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from offcache_core.cache.config import CacheConfig
from offcache_core.cache.entry import NO_EXPIRY, CacheEntry, SizeEstimator, estimate_size
from offcache_core.errors import (
    CacheError,
    CorruptionError,
    InvalidArgumentError,
    KeyNotFoundError,
)
from offcache_core.eviction.cleanup import (
    REASON_CAPACITY,
    REASON_EXPIRED,
    REASON_MANUAL,
    REASON_SIZE,
    CacheCleanup,
    CompactionResult,
    MaintenanceResult,
    ScheduledCleanupResult,
)
from offcache_core.metrics.collector import CacheMetrics, MetricsCollector, Timer
from offcache_core.protocol.serializer import compress, decode_value, decompress, encode_value
from offcache_core.store.file import SNAPSHOT_FILENAME, SnapshotStore, validate_path
from offcache_core.validation.validator import (
    CacheValidator,
    HealthReport,
    validate_configuration,
)

logger = logging.getLogger(__name__)

KeyListener = Callable[[str], None]
EvictionListener = Callable[[str, str], None]

# (listener kind, args) queued under the lock, fired after release
_Event = Tuple[str, Tuple[Any, ...]]


@dataclass
class CacheStats:
    """Cache statistics summary."""

    total_entries: int = 0
    total_size: int = 0
    hit_rate: float = 0.0
    miss_rate: float = 0.0
    expired_entries: int = 0
    last_cleanup: Optional[float] = None
    cache_location: str = ""
    cache_health: str = "healthy"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_entries": self.total_entries,
            "total_size": self.total_size,
            "hit_rate": self.hit_rate,
            "miss_rate": self.miss_rate,
            "expired_entries": self.expired_entries,
            "last_cleanup": self.last_cleanup,
            "cache_location": self.cache_location,
            "cache_health": self.cache_health,
        }


class Cache:
    """Process-local cache with TTL, eviction and integrity checks.

    Features:
    - Per-entry TTL with a configurable default
    - Policy-driven eviction (LRU, LFU, FIFO, TTL) at size/entry limits
    - Transparent compression of large values
    - Metrics, health checks and repair
    - Snapshot backup/restore and optional persistence
    - Thread-safe operations

    One lock guards the entry map and the metrics gauges together, so
    ``current_size`` always equals the sum of entry sizes. Listeners run
    after the lock is released and may call back into the cache.

    Example:
        cache = Cache(CacheConfig(max_size=10 * MB))

        cache.set("versions:latest", {"go": "1.22"}, ttl=3600)
        versions = cache.get("versions:latest")

        cache.on_cache_eviction(lambda key, reason: print(key, reason))

        with cache:
            ...  # background cleanup runs every sync_interval
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        size_estimator: SizeEstimator = estimate_size,
    ):
        """Initialize cache.

        Args:
            config: Cache configuration
            size_estimator: Size function for values

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        self.config = config.copy() if config else CacheConfig()
        validate_configuration(self.config)
        self._size_estimator = size_estimator

        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._metrics = MetricsCollector(
            max_size=self.config.max_size,
            max_entries=self.config.max_entries,
        )

        self._cleanup = CacheCleanup(self.config)
        self._validator = CacheValidator(self.config.cache_dir, self.config)
        self._snapshots = SnapshotStore()

        # Cleanup thread
        self._cleanup_thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

        # Listeners
        self._on_hit: List[KeyListener] = []
        self._on_miss: List[KeyListener] = []
        self._on_eviction: List[EvictionListener] = []

    @property
    def location(self) -> str:
        return self.config.cache_dir

    @property
    def snapshot_path(self) -> str:
        return os.path.join(self.config.cache_dir, SNAPSHOT_FILENAME)

    @property
    def metrics(self) -> MetricsCollector:
        return self._metrics

    def start(self) -> None:
        """Start background cleanup (and load the snapshot if persisting)."""
        if self._cleanup_thread is not None:
            return

        if self.config.persist_to_disk:
            os.makedirs(self.config.cache_dir, mode=0o750, exist_ok=True)
            try:
                self.load()
            except CacheError as e:
                logger.warning(f"Could not load cache snapshot, starting empty: {e}")

        self._stop_event.clear()
        self._cleanup_thread = threading.Thread(
            target=self._cleanup_loop,
            daemon=True,
            name="OffCache-cleanup",
        )
        self._cleanup_thread.start()
        logger.info(f"Cache at {self.location} started")

    def stop(self) -> None:
        """Stop background cleanup (and sync if persisting)."""
        self._stop_event.set()
        if self._cleanup_thread:
            self._cleanup_thread.join(timeout=5.0)
            self._cleanup_thread = None

        if self.config.persist_to_disk:
            try:
                self.sync()
            except CacheError as e:
                logger.error(f"Final cache sync failed: {e}")
        logger.info(f"Cache at {self.location} stopped")

    # Entry operations

    def get(self, key: str) -> Any:
        """Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value (decompressed)

        Raises:
            KeyNotFoundError: If absent or expired
            CorruptionError: If a compressed value cannot be decoded
        """
        events: List[_Event] = []
        try:
            with self._timer("get"), self._lock:
                entry = self._entries.get(key)

                if entry is None:
                    self._metrics.record_miss()
                    events.append(("miss", (key,)))
                    raise KeyNotFoundError(key)

                now = time.time()
                if entry.is_expired(now):
                    del self._entries[key]
                    self._metrics.record_eviction(entry.size, REASON_EXPIRED)
                    self._metrics.record_miss()
                    events.append(("eviction", (key, REASON_EXPIRED)))
                    events.append(("miss", (key,)))
                    raise KeyNotFoundError(key, reason="expired")

                entry.touch(now)
                self._metrics.record_hit()
                events.append(("hit", (key,)))
                return self._decode(entry)
        finally:
            self._fire(events)

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        """Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Seconds to live; None or 0 uses default_ttl, negative
                (NO_EXPIRY) never expires

        Raises:
            InvalidArgumentError: If key is empty
        """
        if not isinstance(key, str) or not key:
            raise InvalidArgumentError("cache key must be a non-empty string")

        events: List[_Event] = []
        try:
            with self._timer("set"), self._lock:
                now = time.time()
                entry = CacheEntry(
                    key=key,
                    value=value,
                    size=max(0, int(self._size_estimator(value))),
                    created_at=now,
                    updated_at=now,
                    accessed_at=now,
                )
                entry.apply_ttl(self._resolve_ttl(ttl), now)
                self._compress(entry)

                previous = self._entries.pop(key, None)
                metrics = self._metrics.get_metrics()
                if previous is not None:
                    metrics.remove_size(previous.size)
                    metrics.current_entries = len(self._entries)
                self._make_room(entry.size, metrics, events)
                self._metrics.restore(metrics)

                self._entries[key] = entry
                self._metrics.record_set(entry.size, new_entry=True)
        finally:
            self._fire(events)

    def delete(self, key: str) -> bool:
        """Delete key from cache.

        Deleting an absent key is not an error.

        Returns:
            True if an entry was removed
        """
        events: List[_Event] = []
        with self._lock:
            entry = self._entries.pop(key, None)
            if entry is not None:
                self._metrics.record_delete(entry.size)
                events.append(("eviction", (key, REASON_MANUAL)))
        self._fire(events)
        return entry is not None

    def exists(self, key: str) -> bool:
        """Check key is present and unexpired, without touching stats."""
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and not entry.is_expired()

    def set_ttl(self, key: str, ttl: float) -> None:
        """Replace an entry's TTL; ttl <= 0 removes expiry.

        Raises:
            KeyNotFoundError: If key is absent
        """
        with self._lock:
            entry = self._require(key)
            entry.apply_ttl(ttl)

    def get_ttl(self, key: str) -> float:
        """Get remaining seconds; 0 when the entry has no expiry or expired.

        Raises:
            KeyNotFoundError: If key is absent
        """
        with self._lock:
            remaining = self._require(key).remaining_ttl()
            return remaining if remaining is not None else 0.0

    def refresh_ttl(self, key: str) -> None:
        """Re-derive expiry from the current default_ttl.

        Raises:
            KeyNotFoundError: If key is absent
        """
        with self._lock:
            entry = self._require(key)
            entry.apply_ttl(self.config.default_ttl)

    def get_entry(self, key: str) -> Optional[CacheEntry]:
        """Get a copy of the raw entry, without touching stats."""
        with self._lock:
            entry = self._entries.get(key)
            return entry.copy() if entry is not None else None

    def clear(self) -> int:
        """Clear all entries.

        Returns:
            Number of entries cleared
        """
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            self._metrics.sync_gauges(0, 0)
            return count

    def keys(self, pattern: Optional[str] = None) -> List[str]:
        """Get unexpired keys, sorted.

        Args:
            pattern: Optional regular expression (search semantics)

        Raises:
            InvalidArgumentError: If pattern is not a valid regex
        """
        regex = None
        if pattern is not None:
            try:
                regex = re.compile(pattern)
            except re.error as e:
                raise InvalidArgumentError(f"invalid pattern: {e}") from e

        with self._lock:
            now = time.time()
            keys = [
                key for key, entry in self._entries.items()
                if not entry.is_expired(now) and (regex is None or regex.search(key))
            ]
        return sorted(keys)

    def get_expired_keys(self) -> List[str]:
        with self._lock:
            now = time.time()
            return sorted(k for k, e in self._entries.items() if e.is_expired(now))

    def size(self) -> int:
        """Get entry count (including not yet collected expired entries)."""
        with self._lock:
            return len(self._entries)

    def get_size(self) -> int:
        """Get total estimated size in bytes."""
        with self._lock:
            return self._metrics.get_metrics().current_size

    def snapshot(self) -> Tuple[Dict[str, CacheEntry], CacheMetrics]:
        """Copy the entry map and metrics for out-of-lock inspection."""
        with self._lock:
            entries = {key: entry.copy() for key, entry in self._entries.items()}
            return entries, self._metrics.get_metrics()

    # Listeners

    def on_cache_hit(self, callback: KeyListener) -> "Cache":
        """Add hit listener.

        Args:
            callback: Function(key)

        Returns:
            Self for chaining
        """
        self._on_hit.append(callback)
        return self

    def on_cache_miss(self, callback: KeyListener) -> "Cache":
        """Add miss listener.

        Args:
            callback: Function(key)

        Returns:
            Self for chaining
        """
        self._on_miss.append(callback)
        return self

    def on_cache_eviction(self, callback: EvictionListener) -> "Cache":
        """Add eviction listener.

        Args:
            callback: Function(key, reason)

        Returns:
            Self for chaining
        """
        self._on_eviction.append(callback)
        return self

    # Stats and configuration

    def get_stats(self) -> CacheStats:
        """Get cache statistics.

        Returns:
            CacheStats instance
        """
        with self._lock:
            metrics = self._metrics.get_metrics()
            now = time.time()
            expired = sum(1 for e in self._entries.values() if e.is_expired(now))
            total = len(self._entries)

        return CacheStats(
            total_entries=total,
            total_size=metrics.current_size,
            hit_rate=metrics.hit_rate,
            miss_rate=metrics.miss_rate,
            expired_entries=expired,
            last_cleanup=metrics.last_cleanup,
            cache_location=self.location,
            cache_health="degraded" if expired > total / 2 else "healthy",
        )

    def get_metrics(self) -> CacheMetrics:
        return self._metrics.get_metrics()

    def get_hit_rate(self) -> float:
        return self._metrics.get_hit_rate()

    def get_miss_rate(self) -> float:
        return self._metrics.get_miss_rate()

    def get_config(self) -> CacheConfig:
        with self._lock:
            return self.config.copy()

    def set_config(self, config: Optional[CacheConfig]) -> None:
        """Validate and install a configuration.

        Entries over the new limits are evicted immediately.

        Raises:
            InvalidArgumentError: If config is None
            ConfigurationError: If config is invalid
        """
        validate_configuration(config)

        events: List[_Event] = []
        with self._lock:
            self._install_config(config.copy())
            self._enforce_limits(events)
        self._fire(events)

    def set_max_size(self, max_size: int) -> None:
        """Change the size limit, evicting down to it if needed.

        Raises:
            ConfigurationError: If max_size is negative
        """
        config = self.get_config()
        config.max_size = max_size
        self.set_config(config)

    def set_default_ttl(self, ttl: float) -> None:
        """Change the TTL applied to future sets.

        Raises:
            ConfigurationError: If ttl is negative
        """
        config = self.get_config()
        config.default_ttl = ttl
        self.set_config(config)

    # Maintenance

    def clean(self) -> int:
        """Remove expired entries.

        Returns:
            Number removed
        """
        events: List[_Event] = []
        with self._lock:
            count = self._run_engine(self._cleanup.clean_expired_entries, events)
            self._metrics.record_cleanup()
        self._fire(events)
        return count

    def cleanup_by_age(self, max_age: float) -> int:
        """Remove entries created more than max_age seconds ago."""
        events: List[_Event] = []
        with self._lock:
            count = self._run_engine(self._cleanup.cleanup_by_age, events, max_age)
        self._fire(events)
        return count

    def cleanup_by_size(self, target_size: int) -> int:
        """Evict in policy order until size <= target_size."""
        events: List[_Event] = []
        with self._lock:
            count = self._run_engine(self._cleanup.cleanup_by_size, events, target_size)
        self._fire(events)
        return count

    def cleanup_by_unused(self, threshold: float) -> int:
        """Remove entries not read for more than threshold seconds."""
        events: List[_Event] = []
        with self._lock:
            count = self._run_engine(self._cleanup.cleanup_unused_entries, events, threshold)
        self._fire(events)
        return count

    def compact(self) -> CompactionResult:
        """Remove expired entries and recompute size."""
        events: List[_Event] = []
        with self._lock:
            result = self._run_engine(self._cleanup.compact_cache, events)
        self._fire(events)
        return result

    def scheduled_cleanup(self) -> ScheduledCleanupResult:
        """Run cleanup if the interval elapsed or the cache is over its limit."""
        events: List[_Event] = []
        with self._lock:
            last_cleanup = self._metrics.get_metrics().last_cleanup
            result = self._run_engine(self._cleanup.scheduled_cleanup, events, last_cleanup)
        self._fire(events)
        return result

    def perform_maintenance(self, cancel: Optional[threading.Event] = None) -> MaintenanceResult:
        """Run the maintenance pass on a copy and install it when complete.

        Args:
            cancel: Event that aborts the pass; live state is then untouched

        Raises:
            OperationCancelledError: If cancelled
        """
        events: List[_Event] = []
        with self._lock:
            entries = {key: entry.copy() for key, entry in self._entries.items()}
            metrics = self._metrics.get_metrics()
            reasons: List[str] = []

            def sink(key: str, reason: str) -> None:
                reasons.append(reason)
                events.append(("eviction", (key, reason)))

            result = self._cleanup.perform_maintenance(entries, metrics, cancel, sink)

            self._entries = entries
            self._metrics.restore(metrics)
            for reason in reasons:
                self._metrics.record_eviction_reason(reason)
            self._metrics.record_cleanup()
        self._fire(events)
        return result

    def validate(self) -> None:
        """Validate directory and entries.

        Raises:
            CacheIOError: If the directory is missing or unwritable
            CorruptionError: With every entry violation
        """
        entries, _ = self.snapshot()
        self._validator.validate_cache(entries)

    def check_health(self) -> HealthReport:
        entries, metrics = self.snapshot()
        return self._validator.check_cache_health(entries, metrics)

    def repair(self, cancel: Optional[threading.Event] = None) -> int:
        """Repair entries and metrics, installing the result atomically.

        Args:
            cancel: Event that aborts repair; live state is then untouched

        Returns:
            Number of entries dropped

        Raises:
            OperationCancelledError: If cancelled
        """
        with self._lock:
            before = len(self._entries)
            entries, metrics = self._validator.repair_cache(
                self._entries,
                self._metrics.get_metrics(),
                size_estimator=self._size_estimator,
                cancel=cancel,
            )
            self._entries = entries
            self._metrics.restore(metrics)
            return before - len(entries)

    # Persistence

    def sync(self) -> None:
        """Write the snapshot file into the cache directory.

        Raises:
            CacheIOError: If the file cannot be written
        """
        entries, metrics = self.snapshot()
        self._snapshots.write(self.snapshot_path, entries, metrics, self.get_config())
        logger.debug(f"Synced {len(entries)} entries to {self.snapshot_path}")

    def load(self) -> int:
        """Load the snapshot file if present, dropping expired entries.

        Entries are installed as stored so validation can report corruption;
        call repair() to fix it. Gauges are recomputed from the entries.

        Returns:
            Number of entries loaded

        Raises:
            CorruptionError: If the file is not a snapshot
        """
        if not os.path.exists(self.snapshot_path):
            return 0

        snapshot = self._snapshots.read(self.snapshot_path)
        now = time.time()
        entries: Dict[str, CacheEntry] = {}
        skipped = 0
        for key, entry in snapshot.entries.items():
            if entry is None:
                skipped += 1
                continue
            if entry.expires_at is not None:
                if not isinstance(entry.expires_at, (int, float)) or isinstance(entry.expires_at, bool):
                    skipped += 1
                    continue
                if entry.expires_at < now:
                    continue
            entries[key] = entry
        if skipped:
            logger.warning(f"Skipped {skipped} unreadable entries in {self.snapshot_path}")

        metrics = snapshot.metrics.copy() if snapshot.metrics is not None else CacheMetrics()
        metrics.current_size = sum(
            e.size for e in entries.values()
            if isinstance(e.size, int) and not isinstance(e.size, bool) and e.size > 0
        )
        metrics.current_entries = len(entries)
        return self._install(entries, metrics)

    def backup(self, path: str) -> None:
        """Back up the cache to a snapshot file.

        Raises:
            InvalidArgumentError: If the path is unsafe
            CacheIOError: If the file cannot be written
        """
        path = validate_path(path)
        entries, metrics = self.snapshot()
        self._snapshots.write(path, entries, metrics, self.get_config())
        with self._lock:
            self._metrics.record_backup()
        logger.info(f"Backed up {len(entries)} entries to {path}")

    def restore(self, path: str) -> int:
        """Replace the cache contents with a backup.

        The backup is repaired before installation.

        Returns:
            Number of entries restored

        Raises:
            InvalidArgumentError: If the path is unsafe
            CacheIOError: If the file cannot be read
            CorruptionError: If the file is not a snapshot
        """
        path = validate_path(path)
        snapshot = self._snapshots.read(path)
        entries, metrics = self._validator.repair_cache(
            snapshot.entries,
            snapshot.metrics,
            size_estimator=self._size_estimator,
        )
        count = self._install(entries, metrics)
        logger.info(f"Restored {count} entries from {path}")
        return count

    # Internals

    def _install(self, entries: Dict[str, CacheEntry], metrics: CacheMetrics) -> int:
        with self._lock:
            metrics.max_size = self.config.max_size
            metrics.max_entries = self.config.max_entries
            self._entries = entries
            self._metrics.restore(metrics)
        return len(entries)

    def _install_config(self, config: CacheConfig) -> None:
        self.config = config
        self._cleanup.set_config(config)
        self._validator.set_config(config)
        self._validator.cache_dir = config.cache_dir
        self._metrics.set_limits(config.max_size, config.max_entries)

    def _require(self, key: str) -> CacheEntry:
        entry = self._entries.get(key)
        if entry is None:
            raise KeyNotFoundError(key)
        return entry

    def _resolve_ttl(self, ttl: Optional[float]) -> float:
        if ttl is None or ttl == 0:
            return self.config.default_ttl
        if ttl < 0:
            return NO_EXPIRY
        return ttl

    def _compress(self, entry: CacheEntry) -> None:
        """Compress a large value in place when that makes it smaller."""
        config = self.config
        if not config.enable_compression or entry.size <= config.compression_threshold:
            return

        try:
            raw, value_format = encode_value(entry.value)
            packed = compress(raw, config.compression_type, config.compression_level)
        except (TypeError, ValueError, OSError, zlib.error) as e:
            logger.warning(f"Failed to compress cache entry {entry.key!r}: {e}")
            return

        if len(packed) < len(raw):
            entry.value = packed
            entry.size = len(packed)
            entry.compressed = True
            entry.metadata.update({
                "original_size": len(raw),
                "compression_type": config.compression_type,
                "value_format": value_format.value,
            })

    def _decode(self, entry: CacheEntry) -> Any:
        if not entry.compressed:
            return entry.value

        metadata = entry.metadata if isinstance(entry.metadata, dict) else {}
        try:
            raw = decompress(entry.value, metadata.get("compression_type", "gzip"))
            return decode_value(raw, metadata.get("value_format", "bytes"))
        except (TypeError, ValueError, OSError, EOFError, zlib.error) as e:
            raise CorruptionError(
                f"cannot decode compressed value for key {entry.key}: {e}"
            ) from e

    def _make_room(self, incoming: int, metrics: CacheMetrics, events: List[_Event]) -> None:
        """Evict ahead of an insert that would breach a limit."""
        config = self.config
        sink = self._eviction_sink(events)

        if config.max_size > 0 and metrics.current_size + incoming > config.max_size:
            target = int(config.max_size * (1.0 - config.eviction_ratio)) - incoming
            self._cleanup.cleanup_by_size(
                self._entries, metrics, max(0, target), sink, reason=REASON_SIZE
            )

        if config.max_entries > 0 and len(self._entries) >= config.max_entries:
            target = int(config.max_entries * (1.0 - config.eviction_ratio))
            self._cleanup.cleanup_by_count(
                self._entries, metrics, min(target, config.max_entries - 1), sink
            )

    def _enforce_limits(self, events: List[_Event]) -> None:
        config = self.config
        metrics = self._metrics.get_metrics()
        sink = self._eviction_sink(events)

        if config.max_size > 0 and metrics.current_size > config.max_size:
            target = int(config.max_size * (1.0 - config.eviction_ratio))
            self._cleanup.cleanup_by_size(self._entries, metrics, target, sink)
        if config.max_entries > 0 and len(self._entries) > config.max_entries:
            target = int(config.max_entries * (1.0 - config.eviction_ratio))
            self._cleanup.cleanup_by_count(self._entries, metrics, target, sink)

        self._metrics.restore(metrics)

    def _run_engine(self, operation: Callable[..., Any], events: List[_Event], *args: Any) -> Any:
        """Run a cleanup operation on the live map; caller holds the lock."""
        metrics = self._metrics.get_metrics()
        result = operation(self._entries, metrics, *args, on_evict=self._eviction_sink(events))
        self._metrics.restore(metrics)
        return result

    def _eviction_sink(self, events: List[_Event]) -> Callable[[str, str], None]:
        def sink(key: str, reason: str) -> None:
            self._metrics.record_eviction_reason(reason)
            events.append(("eviction", (key, reason)))
        return sink

    def _fire(self, events: List[_Event]) -> None:
        """Invoke listeners for queued events; must run without the lock."""
        listeners = {
            "hit": self._on_hit,
            "miss": self._on_miss,
            "eviction": self._on_eviction,
        }
        for kind, args in events:
            for callback in list(listeners[kind]):
                try:
                    callback(*args)
                except Exception as e:
                    logger.warning(f"Cache {kind} listener failed for {args[0]!r}: {e}")

    def _timer(self, operation: str):
        if self.config.enable_metrics:
            return Timer(self._metrics, operation)
        return nullcontext()

    def _cleanup_loop(self) -> None:
        """Background cleanup loop."""
        while not self._stop_event.is_set():
            try:
                result = self.scheduled_cleanup()
                if self.config.persist_to_disk and not result.skipped:
                    self.sync()
            except Exception as e:
                logger.error(f"Cleanup error: {e}")

            self._stop_event.wait(self.config.sync_interval)

    def __contains__(self, key: str) -> bool:
        return self.exists(key)

    def __len__(self) -> int:
        return self.size()

    def __enter__(self) -> "Cache":
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        self.stop()

    def __repr__(self) -> str:
        return f"Cache(location={self.location!r}, entries={len(self._entries)})"


__all__ = ["Cache", "CacheStats"]
