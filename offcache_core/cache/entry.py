"""OffCache Entry - Cache Entry with TTL and Access Tracking.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import base64
import copy
import json
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

# Negative TTL sentinel: entry never expires, even with a default TTL configured
NO_EXPIRY: float = -1.0

# Size used when a value cannot be measured
DEFAULT_SIZE_ESTIMATE = 100

SizeEstimator = Callable[[Any], int]


def estimate_size(value: Any) -> int:
    """Estimate the byte size of a cached value.

    This is a heuristic, not an exact measurement: strings count their
    UTF-8 length, bytes their length, scalars a fixed width, and anything
    else its JSON encoding.

    Args:
        value: Value to measure

    Returns:
        Estimated size in bytes (never negative)
    """
    if isinstance(value, (bytes, bytearray)):
        return len(value)
    if isinstance(value, str):
        return len(value.encode("utf-8"))
    if isinstance(value, bool):
        return 1
    if isinstance(value, (int, float)):
        return 8
    try:
        return len(json.dumps(value))
    except (TypeError, ValueError):
        return DEFAULT_SIZE_ESTIMATE


@dataclass
class CacheEntry:
    """A cache entry with value, expiry and access metadata.

    Attributes:
        key: Cache key (must equal its map key)
        value: Cached value (bytes when compressed)
        size: Estimated size in bytes
        created_at: Creation time (epoch seconds)
        updated_at: Last write time
        accessed_at: Last successful read time
        expires_at: Expiry time, None means never
        ttl: TTL used to derive expires_at (0 when none)
        access_count: Successful reads
        compressed: Whether value holds compressed bytes
        metadata: Free-form metadata (compression details live here)
    """

    key: str
    value: Any
    size: int = 0
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)
    accessed_at: float = field(default_factory=time.time)
    expires_at: Optional[float] = None
    ttl: float = 0.0
    access_count: int = 0
    compressed: bool = False
    metadata: Optional[Dict[str, Any]] = field(default_factory=dict)

    def is_expired(self, now: Optional[float] = None) -> bool:
        """Check if entry has expired."""
        if self.expires_at is None:
            return False
        if now is None:
            now = time.time()
        return self.expires_at < now

    def remaining_ttl(self, now: Optional[float] = None) -> Optional[float]:
        """Get remaining TTL in seconds.

        Returns:
            Seconds left, 0 when expired, None when the entry never expires
        """
        if self.expires_at is None:
            return None
        if now is None:
            now = time.time()
        return max(0.0, self.expires_at - now)

    def touch(self, now: Optional[float] = None) -> None:
        """Record a successful read."""
        self.accessed_at = now if now is not None else time.time()
        self.access_count += 1

    def apply_ttl(self, ttl: float, now: Optional[float] = None) -> None:
        """Derive expires_at from a TTL; ttl <= 0 clears expiry."""
        if now is None:
            now = time.time()
        if ttl > 0:
            self.ttl = ttl
            self.expires_at = now + ttl
        else:
            self.ttl = 0.0
            self.expires_at = None

    def copy(self) -> "CacheEntry":
        """Value-copy of this entry.

        Metadata is deep-copied so repairs never leak into the source map.
        """
        clone = copy.copy(self)
        if self.metadata is not None:
            clone.metadata = copy.deepcopy(self.metadata)
        return clone

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary.

        Returns:
            Dictionary representation
        """
        value = self.value
        encoding = None
        if isinstance(value, (bytes, bytearray)):
            value = base64.b64encode(bytes(value)).decode("ascii")
            encoding = "base64"

        data = {
            "key": self.key,
            "value": value,
            "size": self.size,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "accessed_at": self.accessed_at,
            "expires_at": self.expires_at,
            "ttl": self.ttl,
            "access_count": self.access_count,
            "compressed": self.compressed,
            "metadata": self.metadata,
        }
        if encoding:
            data["value_encoding"] = encoding
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CacheEntry":
        """Create from dictionary.

        Missing fields fall back to defaults; no validation is done here
        so corrupted snapshots can still be loaded and repaired.

        Args:
            data: Dictionary data

        Returns:
            CacheEntry instance
        """
        now = time.time()
        value = data.get("value")
        if data.get("value_encoding") == "base64" and isinstance(value, str):
            value = base64.b64decode(value, validate=True)

        return cls(
            key=data.get("key", ""),
            value=value,
            size=data.get("size", 0),
            created_at=data.get("created_at", now),
            updated_at=data.get("updated_at", now),
            accessed_at=data.get("accessed_at", now),
            expires_at=data.get("expires_at"),
            ttl=data.get("ttl", 0.0),
            access_count=data.get("access_count", 0),
            compressed=data.get("compressed", False),
            metadata=data.get("metadata"),
        )

    def __repr__(self) -> str:
        if self.expires_at is not None:
            return (
                f"CacheEntry(key={self.key!r}, size={self.size}, "
                f"ttl={self.remaining_ttl():.1f}s)"
            )
        return f"CacheEntry(key={self.key!r}, size={self.size})"


__all__ = [
    "CacheEntry",
    "NO_EXPIRY",
    "SizeEstimator",
    "estimate_size",
]
