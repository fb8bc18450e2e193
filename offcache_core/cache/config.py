"""OffCache Config - Cache Configuration.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from offcache_core.errors import InvalidArgumentError

logger = logging.getLogger(__name__)

KB = 1024
MB = 1024 * KB
GB = 1024 * MB

HOUR = 3600.0
DAY = 24 * HOUR


class EvictionPolicyName(Enum):
    """Configurable eviction policies."""

    LRU = "lru"
    LFU = "lfu"
    FIFO = "fifo"
    TTL = "ttl"

    @classmethod
    def names(cls) -> List[str]:
        return [p.value for p in cls]


@dataclass
class CacheConfig:
    """Cache configuration.

    Durations are in seconds, sizes in bytes.

    Attributes:
        location: Cache directory (snapshot file, write probes)
        max_size: Maximum total entry size, 0 disables the limit
        max_entries: Maximum entry count, 0 disables the limit
        default_ttl: TTL applied when set() gets none, 0 means never expire
        eviction_policy: lru, lfu, fifo or ttl
        eviction_ratio: Fraction freed below a limit when it is hit
        enable_compression: Compress large values
        compression_level: Compression level (1-9)
        compression_type: gzip or zlib
        compression_threshold: Minimum value size to compress
        persist_to_disk: Load on start and sync from the scheduler
        sync_interval: Seconds between scheduled cleanups
        unused_threshold: Idle time after which scheduled cleanup drops an entry
        cleanup_target_ratio: Fraction of max_size scheduled cleanup shrinks to
        offline_ttl: TTL for data cached for offline use
        enable_metrics: Record operation latencies
    """

    location: str = "~/.offcache/cache"
    max_size: int = 1 * GB
    max_entries: int = 10000
    default_ttl: float = 1 * DAY
    eviction_policy: str = "lru"
    eviction_ratio: float = 0.1
    enable_compression: bool = True
    compression_level: int = 6
    compression_type: str = "gzip"
    compression_threshold: int = 1 * KB
    persist_to_disk: bool = False
    sync_interval: float = 30.0
    unused_threshold: float = 7 * DAY
    cleanup_target_ratio: float = 0.8
    offline_ttl: float = 7 * DAY
    enable_metrics: bool = True

    @property
    def cache_dir(self) -> str:
        """Location with ~ expanded."""
        return os.path.expanduser(self.location)

    def copy(self) -> "CacheConfig":
        return dataclasses.replace(self)

    def to_dict(self) -> Dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "CacheConfig":
        """Create from dictionary, ignoring unknown keys.

        Args:
            data: Configuration mapping

        Returns:
            CacheConfig instance
        """
        known = {f.name for f in dataclasses.fields(cls)}
        kwargs = {}
        for key, value in (data or {}).items():
            if key in known:
                kwargs[key] = value
            else:
                logger.debug(f"Ignoring unknown cache config key: {key}")
        return cls(**kwargs)

    @classmethod
    def from_env(
        cls,
        base: Optional["CacheConfig"] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "CacheConfig":
        """Overlay OFFCACHE_* environment variables on a config.

        Args:
            base: Starting configuration (defaults if None)
            environ: Environment mapping (os.environ if None)

        Returns:
            New CacheConfig

        Raises:
            InvalidArgumentError: If a numeric variable does not parse
        """
        env = os.environ if environ is None else environ
        config = base.copy() if base else cls()

        if env.get("OFFCACHE_DIR"):
            config.location = env["OFFCACHE_DIR"]
        if env.get("OFFCACHE_MAX_SIZE"):
            config.max_size = _parse_env(env, "OFFCACHE_MAX_SIZE", int)
        if env.get("OFFCACHE_DEFAULT_TTL"):
            config.default_ttl = _parse_env(env, "OFFCACHE_DEFAULT_TTL", float)
        if env.get("OFFCACHE_EVICTION_POLICY"):
            config.eviction_policy = env["OFFCACHE_EVICTION_POLICY"].lower()

        return config


def _parse_env(env: Mapping[str, str], name: str, parse: Callable[[str], Any]) -> Any:
    try:
        return parse(env[name])
    except ValueError as e:
        raise InvalidArgumentError(
            f"invalid value for {name}: {env[name]!r}", context={"variable": name}
        ) from e


__all__ = ["CacheConfig", "EvictionPolicyName", "KB", "MB", "GB", "HOUR", "DAY"]
