"""OffCache Offline - Offline Mode on Top of the Entry Store.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

The offline manager gates a project generator's offline mode on a fixed
set of essential keys and exposes offline-only read paths for them.

Usage:
    offline = OfflineManager(cache)
    offline.cache_template_data(templates)
    offline.cache_version_data({"node": "20.11.0"})
    offline.cache_config_defaults(defaults)

    offline.enable_offline_mode()
    templates = offline.get_cached_templates()
"""

from __future__ import annotations

import logging
import os
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from offcache_core.cache.cache import Cache
from offcache_core.errors import (
    CorruptionError,
    InvalidArgumentError,
    InvalidStateError,
    NotOfflineError,
)

logger = logging.getLogger(__name__)

TEMPLATES_LIST_KEY = "templates:list"
TEMPLATES_METADATA_KEY = "templates:metadata"
VERSIONS_KEY = "versions:latest"
CONFIG_DEFAULTS_KEY = "config:defaults"

ESSENTIAL_KEYS = (
    TEMPLATES_LIST_KEY,
    TEMPLATES_METADATA_KEY,
    VERSIONS_KEY,
    CONFIG_DEFAULTS_KEY,
)

# Minimum data a generator needs to run offline at all
REQUIRED_KEYS = (TEMPLATES_LIST_KEY, CONFIG_DEFAULTS_KEY)


def template_metadata_key(name: str) -> str:
    return f"{TEMPLATES_METADATA_KEY}:{name}"


class OfflineState(Enum):
    """Offline manager states."""

    ONLINE = "online"
    OFFLINE = "offline"


@dataclass
class OfflineStatus:
    """Offline readiness report.

    Attributes:
        enabled: Whether offline mode is on
        state: Current state
        cache_location: Cache directory
        cache_size: Total entry size in bytes
        cache_entries: Entry count
        essential_data: Availability per essential key
        readiness_score: Available essential keys as a percentage (0-100)
        last_sync: Last successful sync_offline_data(), None if never
    """

    enabled: bool = False
    state: OfflineState = OfflineState.ONLINE
    cache_location: str = ""
    cache_size: int = 0
    cache_entries: int = 0
    essential_data: Dict[str, bool] = field(default_factory=dict)
    readiness_score: float = 0.0
    last_sync: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "state": self.state.value,
            "cache_location": self.cache_location,
            "cache_size": self.cache_size,
            "cache_entries": self.cache_entries,
            "essential_data": dict(self.essential_data),
            "readiness_score": self.readiness_score,
            "last_sync": self.last_sync,
        }


def detect_offline_mode(environ: Optional[Mapping[str, str]] = None) -> bool:
    """Detect whether the process should run offline.

    True when OFFCACHE_OFFLINE is "true", or in CI (CI or GITHUB_ACTIONS set).

    Args:
        environ: Environment mapping (os.environ if None)
    """
    env = os.environ if environ is None else environ
    if env.get("CI") or env.get("GITHUB_ACTIONS"):
        return True
    return env.get("OFFCACHE_OFFLINE", "").lower() == "true"


def validate_offline_capabilities(cache: Cache) -> None:
    """Check the cache holds the minimum data for offline operation.

    Raises:
        InvalidStateError: If a required key is missing
    """
    missing = [key for key in REQUIRED_KEYS if not cache.exists(key)]
    if missing:
        raise InvalidStateError(
            f"missing required cached data: {', '.join(missing)}",
            context={"missing": missing},
        )


class OfflineManager:
    """Offline mode switch over a Cache.

    Two states, changed only explicitly: enabling requires every
    essential key to be present, disabling always succeeds.
    """

    def __init__(self, cache: Cache):
        """Initialize offline manager.

        Args:
            cache: Entry store holding the offline data
        """
        self.cache = cache
        self._state = OfflineState.ONLINE
        self._last_sync: Optional[float] = None
        self._lock = threading.RLock()

    @property
    def state(self) -> OfflineState:
        return self._state

    def is_offline_mode(self) -> bool:
        return self._state == OfflineState.OFFLINE

    def missing_essential_keys(self) -> List[str]:
        return [key for key in ESSENTIAL_KEYS if not self.cache.exists(key)]

    def validate_offline_data(self) -> None:
        """Check every essential key is present and unexpired.

        Raises:
            InvalidStateError: Listing the missing keys
        """
        missing = self.missing_essential_keys()
        if missing:
            raise InvalidStateError(
                f"missing essential cached data for offline mode: {', '.join(missing)}",
                context={"missing": missing},
            )

    def enable_offline_mode(self) -> None:
        """Switch to offline mode.

        Raises:
            InvalidStateError: If essential data is missing; state stays online
        """
        with self._lock:
            self.validate_offline_data()
            self._state = OfflineState.OFFLINE
        logger.info("Offline mode enabled")

    def disable_offline_mode(self) -> None:
        with self._lock:
            self._state = OfflineState.ONLINE
        logger.info("Offline mode disabled")

    def preload_essential_data(self) -> None:
        """Check the essential data is ready ahead of going offline."""
        self.validate_offline_data()

    def get_offline_status(self) -> OfflineStatus:
        """Get offline readiness.

        Returns:
            OfflineStatus
        """
        essential = {key: self.cache.exists(key) for key in ESSENTIAL_KEYS}
        available = sum(1 for present in essential.values() if present)
        metrics = self.cache.get_metrics()

        with self._lock:
            state = self._state
            last_sync = self._last_sync

        return OfflineStatus(
            enabled=state == OfflineState.OFFLINE,
            state=state,
            cache_location=self.cache.location,
            cache_size=metrics.current_size,
            cache_entries=metrics.current_entries,
            essential_data=essential,
            readiness_score=available / len(ESSENTIAL_KEYS) * 100.0,
            last_sync=last_sync,
        )

    # Offline-only readers

    def _read(self, operation: str, key: str, expected: type) -> Any:
        if not self.is_offline_mode():
            raise NotOfflineError(operation)

        value = self.cache.get(key)
        if not isinstance(value, expected):
            raise CorruptionError(
                f"invalid cached data format for {key}: "
                f"expected {expected.__name__}, got {type(value).__name__}"
            )
        return value

    def get_cached_templates(self) -> List[Dict[str, Any]]:
        """Get cached template list.

        Raises:
            NotOfflineError: While online
            KeyNotFoundError: If not cached
            CorruptionError: If the cached value is not a list
        """
        return self._read("get_cached_templates", TEMPLATES_LIST_KEY, list)

    def get_cached_template_metadata(self, name: str) -> Dict[str, Any]:
        """Get cached metadata for one template.

        Raises:
            NotOfflineError: While online
            KeyNotFoundError: If not cached
            CorruptionError: If the cached value is not a mapping
        """
        return self._read("get_cached_template_metadata", template_metadata_key(name), dict)

    def get_cached_versions(self) -> Dict[str, str]:
        return self._read("get_cached_versions", VERSIONS_KEY, dict)

    def get_cached_config_defaults(self) -> Dict[str, Any]:
        return self._read("get_cached_config_defaults", CONFIG_DEFAULTS_KEY, dict)

    # Writers

    def cache_template_data(self, templates: List[Mapping[str, Any]]) -> None:
        """Cache templates for offline use.

        Writes the template list, an aggregate name -> metadata map and one
        metadata entry per template.

        Args:
            templates: Template dicts, each with a "name" and optional "metadata"

        Raises:
            InvalidArgumentError: If a template has no name
        """
        ttl = self.cache.config.offline_ttl
        aggregate: Dict[str, Any] = {}
        for template in templates:
            name = template.get("name")
            if not name:
                raise InvalidArgumentError("template is missing a name")
            aggregate[name] = dict(template.get("metadata") or {})

        self.cache.set(TEMPLATES_LIST_KEY, [dict(t) for t in templates], ttl)
        self.cache.set(TEMPLATES_METADATA_KEY, aggregate, ttl)
        for name, metadata in aggregate.items():
            self.cache.set(template_metadata_key(name), metadata, ttl)

        logger.debug(f"Cached {len(aggregate)} templates for offline use")

    def cache_version_data(self, versions: Mapping[str, str]) -> None:
        self.cache.set(VERSIONS_KEY, dict(versions), self.cache.config.offline_ttl)

    def cache_config_defaults(self, defaults: Mapping[str, Any]) -> None:
        self.cache.set(CONFIG_DEFAULTS_KEY, dict(defaults), self.cache.config.offline_ttl)

    def sync_offline_data(self) -> None:
        """Persist the cache for later offline use.

        Raises:
            InvalidStateError: While offline
            CacheIOError: If the snapshot cannot be written
        """
        if self.is_offline_mode():
            raise InvalidStateError("cannot sync while in offline mode")

        self.cache.sync()
        with self._lock:
            self._last_sync = time.time()
        logger.info(f"Offline data synced to {self.cache.snapshot_path}")

    def __repr__(self) -> str:
        return f"OfflineManager(state={self._state.value})"


__all__ = [
    "OfflineManager",
    "OfflineState",
    "OfflineStatus",
    "ESSENTIAL_KEYS",
    "REQUIRED_KEYS",
    "detect_offline_mode",
    "validate_offline_capabilities",
    "template_metadata_key",
]
