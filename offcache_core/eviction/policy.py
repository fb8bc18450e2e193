"""OffCache Eviction Policy - Eviction Ordering.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Type

from offcache_core.cache.config import EvictionPolicyName
from offcache_core.cache.entry import CacheEntry

logger = logging.getLogger(__name__)


class EvictionPolicy(ABC):
    """Abstract base for eviction policies.

    A policy only decides order: entries sorting first are evicted first.
    Removal and accounting belong to the cleanup engine.

    Implementations:
    - LRU: Least Recently Used
    - LFU: Least Frequently Used
    - FIFO: First In First Out
    - TTL: Soonest expiry first

    Example:
        policy = get_policy("lru")
        victims = policy.order(entries.values())
    """

    name: EvictionPolicyName

    @abstractmethod
    def sort_key(self, entry: CacheEntry) -> Any:
        """Key for sorted(); lower keys are evicted first.

        Args:
            entry: Candidate entry

        Returns:
            Comparable key
        """
        pass

    def order(self, entries: Iterable[CacheEntry]) -> List[CacheEntry]:
        """Sort entries into eviction order.

        Args:
            entries: Candidate entries

        Returns:
            Entries, first to evict first
        """
        return sorted(entries, key=self.sort_key)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class LRUPolicy(EvictionPolicy):
    """Evicts the entry that has not been read for the longest time."""

    name = EvictionPolicyName.LRU

    def sort_key(self, entry: CacheEntry) -> Any:
        return (entry.accessed_at, entry.created_at)


class LFUPolicy(EvictionPolicy):
    """Evicts the entry with the fewest reads; ties go to the least recent."""

    name = EvictionPolicyName.LFU

    def sort_key(self, entry: CacheEntry) -> Any:
        return (entry.access_count, entry.accessed_at)


class FIFOPolicy(EvictionPolicy):
    """Evicts the oldest entry by creation time."""

    name = EvictionPolicyName.FIFO

    def sort_key(self, entry: CacheEntry) -> Any:
        return (entry.created_at,)


class TTLPolicy(EvictionPolicy):
    """Evicts the entry closest to expiry; entries without expiry go last."""

    name = EvictionPolicyName.TTL

    def sort_key(self, entry: CacheEntry) -> Any:
        if entry.expires_at is None:
            return (1, 0.0, entry.created_at)
        return (0, entry.expires_at, entry.created_at)


_POLICIES: Dict[str, Type[EvictionPolicy]] = {
    EvictionPolicyName.LRU.value: LRUPolicy,
    EvictionPolicyName.LFU.value: LFUPolicy,
    EvictionPolicyName.FIFO.value: FIFOPolicy,
    EvictionPolicyName.TTL.value: TTLPolicy,
}


def get_policy(name: str) -> EvictionPolicy:
    """Get policy by configured name.

    Unknown names fall back to LRU; validate_configuration() rejects them
    before they reach a running cache.

    Args:
        name: Policy name

    Returns:
        EvictionPolicy instance
    """
    policy_cls = _POLICIES.get((name or "").lower())
    if policy_cls is None:
        logger.warning(f"Unknown eviction policy {name!r}, using lru")
        policy_cls = LRUPolicy
    return policy_cls()


def order_for_eviction(entries: Iterable[CacheEntry], policy: str) -> List[CacheEntry]:
    """Sort entries into eviction order for a policy name."""
    return get_policy(policy).order(entries)


__all__ = [
    "EvictionPolicyName",
    "EvictionPolicy",
    "LRUPolicy",
    "LFUPolicy",
    "FIFOPolicy",
    "TTLPolicy",
    "get_policy",
    "order_for_eviction",
]
