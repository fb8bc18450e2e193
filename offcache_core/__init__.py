"""OffCache - Process-Local Cache for Offline Mode.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

A thread-safe in-process cache backing a project generator's offline mode:
- Per-entry TTL with a configurable default
- Eviction policies (LRU, LFU, FIFO, TTL) at size and entry limits
- Usage metrics and status reports
- Scheduled cleanup, compaction and maintenance
- Integrity validation, health reports and best-effort repair
- Snapshot backup/restore (JSON or MessagePack)
- Offline mode gated on essential data

Architecture:
    ┌─────────────────────────────────────────────────────────────────┐
    │                         OffCache System                         │
    ├─────────────────────────────────────────────────────────────────┤
    │  ┌─────────────┐  ┌─────────────┐  ┌─────────────┐             │
    │  │   Cache     │  │   Offline   │  │   Entry     │   CACHE     │
    │  │  get/set    │  │   Manager   │  │  TTL/size   │   LAYER     │
    │  └──────┬──────┘  └──────┬──────┘  └──────┬──────┘             │
    │         │                │                │                     │
    │  ┌──────┴────────────────┴────────────────┴──────┐             │
    │  │              Eviction & Cleanup                │             │
    │  │   ┌─────┐  ┌─────┐  ┌──────┐  ┌─────┐        │   EVICTION  │
    │  │   │ LRU │  │ LFU │  │ FIFO │  │ TTL │        │   LAYER     │
    │  │   └─────┘  └─────┘  └──────┘  └─────┘        │             │
    │  └──────────────────────┬────────────────────────┘             │
    │                         │                                       │
    │  ┌──────────────────────┴────────────────────────┐             │
    │  │          Validation & Metrics                  │             │
    │  │   ┌──────────┐  ┌────────┐  ┌──────────┐     │   HEALTH    │
    │  │   │Validator │  │ Repair │  │Collector │     │   LAYER     │
    │  │   └──────────┘  └────────┘  └──────────┘     │             │
    │  └──────────────────────┬────────────────────────┘             │
    │                         │                                       │
    │  ┌──────────────────────┴────────────────────────┐             │
    │  │              Snapshot Store                    │   STORAGE   │
    │  │   cache.json / backups (json, msgpack)         │   LAYER     │
    │  └──────────────────────────────────────────────┘             │
    └─────────────────────────────────────────────────────────────────┘

Example Usage:
    from offcache_core import Cache, CacheConfig, OfflineManager

    cache = Cache(CacheConfig(location="~/.offcache/cache"))
    cache.set("versions:latest", {"node": "20.11.0"}, ttl=3600)
    versions = cache.get("versions:latest")

    # Health and repair
    report = cache.check_health()
    if report.corrupted_entries:
        cache.repair()

    # Offline mode
    offline = OfflineManager(cache)
    offline.cache_template_data([{"name": "go-gin", "metadata": {...}}])
    offline.enable_offline_mode()
"""

__version__ = "1.0.0"
__author__ = "BlackRoad OS"

from offcache_core.errors import (
    CacheError,
    CacheIOError,
    CachePermissionError,
    ConfigurationError,
    CorruptionError,
    InvalidArgumentError,
    InvalidStateError,
    KeyNotFoundError,
    NotOfflineError,
    OperationCancelledError,
)
from offcache_core.cache.entry import (
    NO_EXPIRY,
    CacheEntry,
    estimate_size,
)
from offcache_core.cache.config import (
    CacheConfig,
    EvictionPolicyName,
)
from offcache_core.cache.cache import (
    Cache,
    CacheStats,
)
from offcache_core.cache.offline import (
    ESSENTIAL_KEYS,
    OfflineManager,
    OfflineState,
    OfflineStatus,
    detect_offline_mode,
)
from offcache_core.eviction.policy import (
    EvictionPolicy,
    get_policy,
)
from offcache_core.eviction.cleanup import (
    CacheCleanup,
    CompactionResult,
    MaintenanceResult,
    ScheduledCleanupResult,
)
from offcache_core.validation.validator import (
    CacheValidator,
    HealthReport,
    HealthStatus,
)
from offcache_core.store.file import (
    Snapshot,
    SnapshotStore,
)
from offcache_core.protocol.serializer import (
    Serializer,
    JSONSerializer,
    MsgPackSerializer,
)
from offcache_core.metrics.collector import (
    MetricsCollector,
    CacheMetrics,
)
from offcache_core.metrics.reporter import CacheReporter

__all__ = [
    # Errors
    "CacheError",
    "CacheIOError",
    "CachePermissionError",
    "ConfigurationError",
    "CorruptionError",
    "InvalidArgumentError",
    "InvalidStateError",
    "KeyNotFoundError",
    "NotOfflineError",
    "OperationCancelledError",
    # Cache
    "Cache",
    "CacheConfig",
    "CacheStats",
    "CacheEntry",
    "NO_EXPIRY",
    "estimate_size",
    # Offline
    "ESSENTIAL_KEYS",
    "OfflineManager",
    "OfflineState",
    "OfflineStatus",
    "detect_offline_mode",
    # Eviction
    "EvictionPolicy",
    "EvictionPolicyName",
    "get_policy",
    "CacheCleanup",
    "CompactionResult",
    "MaintenanceResult",
    "ScheduledCleanupResult",
    # Validation
    "CacheValidator",
    "HealthReport",
    "HealthStatus",
    # Storage
    "Snapshot",
    "SnapshotStore",
    # Protocol
    "Serializer",
    "JSONSerializer",
    "MsgPackSerializer",
    # Metrics
    "MetricsCollector",
    "CacheMetrics",
    "CacheReporter",
]
