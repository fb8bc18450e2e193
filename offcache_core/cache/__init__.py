"""Cache module - Core caching functionality.

This module provides the entry store, its configuration and the offline
mode manager built on top of it.
"""

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

__all__ = [
    "NO_EXPIRY",
    "CacheEntry",
    "estimate_size",
    "CacheConfig",
    "EvictionPolicyName",
    "Cache",
    "CacheStats",
    "ESSENTIAL_KEYS",
    "OfflineManager",
    "OfflineState",
    "OfflineStatus",
    "detect_offline_mode",
]
