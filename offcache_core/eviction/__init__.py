"""Eviction module - Eviction ordering and cleanup."""

from offcache_core.eviction.policy import (
    EvictionPolicy,
    EvictionPolicyName,
    FIFOPolicy,
    LFUPolicy,
    LRUPolicy,
    TTLPolicy,
    get_policy,
    order_for_eviction,
)
from offcache_core.eviction.cleanup import (
    CacheCleanup,
    CleanupTask,
    CompactionResult,
    MaintenanceResult,
    MaintenanceTask,
    ScheduledCleanupResult,
)

__all__ = [
    "EvictionPolicy",
    "EvictionPolicyName",
    "LRUPolicy",
    "LFUPolicy",
    "FIFOPolicy",
    "TTLPolicy",
    "get_policy",
    "order_for_eviction",
    "CacheCleanup",
    "CleanupTask",
    "CompactionResult",
    "MaintenanceResult",
    "MaintenanceTask",
    "ScheduledCleanupResult",
]
