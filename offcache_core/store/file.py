"""OffCache Snapshot File - File-Based Cache Persistence.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from offcache_core.cache.config import CacheConfig
from offcache_core.cache.entry import CacheEntry
from offcache_core.errors import CacheIOError, CorruptionError, InvalidArgumentError
from offcache_core.metrics.collector import CacheMetrics
from offcache_core.protocol.serializer import Serializer, get_serializer

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = "1.0"
SNAPSHOT_FILENAME = "cache.json"

SYSTEM_DIRS = ("/etc", "/proc", "/sys", "/dev")

_writers_lock = threading.Lock()
_active_writers: Dict[str, threading.Lock] = {}


def _writer_lock(path: str) -> threading.Lock:
    """Return the lock owning writes to a destination."""
    key = os.path.abspath(path)
    with _writers_lock:
        lock = _active_writers.get(key)
        if lock is None:
            lock = _active_writers[key] = threading.Lock()
        return lock


def validate_path(path: str) -> str:
    """Reject path traversal and system directories.

    Args:
        path: Backup/restore path

    Returns:
        Normalized path

    Raises:
        InvalidArgumentError: If the path is unsafe
    """
    if not path:
        raise InvalidArgumentError("path is empty")
    if ".." in Path(path).parts:
        raise InvalidArgumentError("path traversal detected", context={"path": path})

    clean = os.path.normpath(path)
    if os.path.isabs(clean):
        for system_dir in SYSTEM_DIRS:
            if clean == system_dir or clean.startswith(system_dir + os.sep):
                raise InvalidArgumentError(
                    "access to system directories not allowed", context={"path": path}
                )
    return clean


@dataclass
class Snapshot:
    """Decoded snapshot file.

    Entries that could not be decoded are kept as None so repair can
    account for them.
    """

    version: str = SNAPSHOT_VERSION
    created_at: float = field(default_factory=time.time)
    updated_at: float = field(default_factory=time.time)
    config: Optional[CacheConfig] = None
    entries: Dict[str, Optional[CacheEntry]] = field(default_factory=dict)
    metrics: Optional[CacheMetrics] = None


class SnapshotStore:
    """Reads and writes cache snapshot files.

    Writes go to a uniquely named temp file beside the destination and
    are renamed into place, so a reader never sees a half-written
    snapshot. A destination has one writer at a time; a second writer
    fails instead of waiting.

    Example:
        store = SnapshotStore()
        store.write("/backups/cache.json", entries, metrics, config)
        snapshot = store.read("/backups/cache.json")
    """

    def __init__(self, serializer: str = "json"):
        """Initialize snapshot store.

        Args:
            serializer: Snapshot format (json or msgpack)

        Raises:
            InvalidArgumentError: If the format is unknown
        """
        try:
            self._serializer: Serializer = get_serializer(serializer)
        except KeyError as e:
            raise InvalidArgumentError(
                f"unknown snapshot format: {serializer}"
            ) from e

    @property
    def format_name(self) -> str:
        return self._serializer.format_name

    def write(
        self,
        path: str,
        entries: Mapping[str, CacheEntry],
        metrics: Optional[CacheMetrics] = None,
        config: Optional[CacheConfig] = None,
        created_at: Optional[float] = None,
    ) -> None:
        """Write a snapshot atomically.

        Args:
            path: Destination file
            entries: Entries to persist (a copy, not the live map)
            metrics: Metrics snapshot
            config: Configuration in effect
            created_at: Original creation time when rewriting a snapshot

        Raises:
            CacheIOError: On filesystem failure or a concurrent writer
        """
        now = time.time()
        document: Dict[str, Any] = {
            "version": SNAPSHOT_VERSION,
            "created_at": created_at if created_at is not None else now,
            "updated_at": now,
            "config": config.to_dict() if config is not None else None,
            "entries": {key: entry.to_dict() for key, entry in entries.items()},
            "metrics": metrics.to_dict() if metrics is not None else None,
        }

        try:
            payload = self._serializer.serialize(document)
        except (TypeError, ValueError) as e:
            raise CacheIOError(
                f"failed to encode snapshot: {e}", context={"path": path}
            ) from e

        lock = _writer_lock(path)
        if not lock.acquire(blocking=False):
            raise CacheIOError(
                "snapshot destination is being written by another writer",
                context={"path": path},
            )
        try:
            self._write_file(path, payload)
        finally:
            lock.release()

        logger.debug(f"Wrote snapshot with {len(entries)} entries to {path}")

    def _write_file(self, path: str, payload: bytes) -> None:
        directory = os.path.dirname(path)
        try:
            if directory:
                os.makedirs(directory, mode=0o750, exist_ok=True)
            fd, temp_path = tempfile.mkstemp(
                dir=directory or ".", prefix=f".{os.path.basename(path)}.", suffix=".tmp"
            )
        except OSError as e:
            raise CacheIOError(
                f"failed to create snapshot file: {e}", context={"path": path}
            ) from e

        try:
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(temp_path, path)
        except OSError as e:
            try:
                os.unlink(temp_path)
            except OSError:
                logger.warning(f"Failed to remove temp snapshot {temp_path}")
            raise CacheIOError(
                f"failed to write snapshot: {e}", context={"path": path}
            ) from e

    def read(self, path: str) -> Snapshot:
        """Read a snapshot.

        Args:
            path: Snapshot file

        Returns:
            Snapshot

        Raises:
            CacheIOError: If the file cannot be read
            CorruptionError: If the file is not a snapshot
        """
        try:
            with open(path, "rb") as f:
                payload = f.read()
        except OSError as e:
            raise CacheIOError(
                f"failed to open snapshot file: {e}", context={"path": path}
            ) from e

        try:
            document = self._serializer.deserialize(payload)
        except (TypeError, ValueError) as e:
            raise CorruptionError(f"failed to decode snapshot file {path}: {e}") from e

        if not isinstance(document, dict) or not isinstance(document.get("entries", {}), dict):
            raise CorruptionError(f"not a cache snapshot: {path}")

        entries: Dict[str, Optional[CacheEntry]] = {}
        for key, data in (document.get("entries") or {}).items():
            entries[key] = None
            if not isinstance(data, dict):
                continue
            try:
                entries[key] = CacheEntry.from_dict(data)
            except (TypeError, ValueError) as e:
                logger.warning(f"Undecodable snapshot entry {key!r} in {path}: {e}")

        config = None
        if isinstance(document.get("config"), dict):
            config = CacheConfig.from_dict(document["config"])

        metrics = None
        if isinstance(document.get("metrics"), dict):
            metrics = CacheMetrics.from_dict(document["metrics"])

        now = time.time()
        return Snapshot(
            version=str(document.get("version", SNAPSHOT_VERSION)),
            created_at=document.get("created_at") or now,
            updated_at=document.get("updated_at") or now,
            config=config,
            entries=entries,
            metrics=metrics,
        )

    def __repr__(self) -> str:
        return f"SnapshotStore(format={self.format_name})"


__all__ = [
    "Snapshot",
    "SnapshotStore",
    "SNAPSHOT_VERSION",
    "SNAPSHOT_FILENAME",
    "SYSTEM_DIRS",
    "validate_path",
]
