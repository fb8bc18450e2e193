"""Store module - Snapshot persistence for the cache."""

from offcache_core.store.file import (
    SNAPSHOT_FILENAME,
    SNAPSHOT_VERSION,
    Snapshot,
    SnapshotStore,
    validate_path,
)

__all__ = [
    "Snapshot",
    "SnapshotStore",
    "SNAPSHOT_FILENAME",
    "SNAPSHOT_VERSION",
    "validate_path",
]
