"""Tests for snapshot files and serializers.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import os

import pytest

from offcache_core.cache.config import CacheConfig
from offcache_core.cache.entry import CacheEntry
from offcache_core.errors import CacheIOError, CorruptionError, InvalidArgumentError
from offcache_core.metrics.collector import CacheMetrics
from offcache_core.protocol.serializer import (
    JSONSerializer,
    ValueFormat,
    compress,
    decode_value,
    decompress,
    encode_value,
    get_serializer,
)
from offcache_core.store.file import SNAPSHOT_VERSION, SnapshotStore, _writer_lock, validate_path


def sample_entries():
    return {
        "text": CacheEntry(key="text", value="hello", size=5, expires_at=None),
        "blob": CacheEntry(key="blob", value=b"\xff\x00", size=2, access_count=3),
    }


class TestValidatePath:
    """Tests for path validation."""

    def test_accepts_normal_paths(self, tmp_path):
        """Test ordinary paths are normalized and accepted."""
        assert validate_path("backups/./cache.json") == os.path.join("backups", "cache.json")
        assert validate_path(str(tmp_path / "cache.json")) == str(tmp_path / "cache.json")

    def test_rejects_traversal(self):
        """Test parent directory components."""
        with pytest.raises(InvalidArgumentError):
            validate_path("../cache.json")
        with pytest.raises(InvalidArgumentError):
            validate_path("backups/../../cache.json")

    def test_rejects_system_dirs(self):
        """Test system directories."""
        for path in ("/etc/cache.json", "/proc/1/environ", "/sys/x", "/dev/null"):
            with pytest.raises(InvalidArgumentError):
                validate_path(path)

    def test_rejects_empty(self):
        """Test empty path."""
        with pytest.raises(InvalidArgumentError):
            validate_path("")

    def test_prefix_is_not_system_dir(self):
        """Test a sibling sharing a prefix is allowed."""
        assert validate_path("/etcetera/cache.json") == "/etcetera/cache.json"


class TestSnapshotStore:
    """Tests for SnapshotStore."""

    def test_write_and_read(self, tmp_path):
        """Test a snapshot reads back."""
        store = SnapshotStore()
        path = str(tmp_path / "nested" / "cache.json")

        store.write(path, sample_entries(), CacheMetrics(hits=4), CacheConfig(max_entries=7))
        snapshot = store.read(path)

        assert snapshot.version == SNAPSHOT_VERSION
        assert snapshot.entries["text"].value == "hello"
        assert snapshot.entries["blob"].value == b"\xff\x00"
        assert snapshot.entries["blob"].access_count == 3
        assert snapshot.metrics.hits == 4
        assert snapshot.config.max_entries == 7
        assert not [name for name in os.listdir(os.path.dirname(path)) if name.endswith(".tmp")]

    def test_keeps_created_at(self, tmp_path):
        """Test rewriting a snapshot keeps its creation time."""
        store = SnapshotStore()
        path = str(tmp_path / "cache.json")

        store.write(path, {}, created_at=123.0)

        snapshot = store.read(path)
        assert snapshot.created_at == 123.0
        assert snapshot.updated_at > 123.0

    def test_missing_file(self, tmp_path):
        """Test reading a missing file."""
        with pytest.raises(CacheIOError):
            SnapshotStore().read(str(tmp_path / "missing.json"))

    def test_malformed_file(self, tmp_path):
        """Test reading garbage."""
        path = tmp_path / "cache.json"
        path.write_text("{not json")

        with pytest.raises(CorruptionError):
            SnapshotStore().read(str(path))

    def test_not_a_snapshot(self, tmp_path):
        """Test valid JSON that is not a snapshot."""
        path = tmp_path / "cache.json"
        path.write_text("[1, 2, 3]")

        with pytest.raises(CorruptionError):
            SnapshotStore().read(str(path))

    def test_bad_entries_become_none(self, tmp_path):
        """Test undecodable entries are kept for repair."""
        path = tmp_path / "cache.json"
        path.write_text('{"entries": {"a": 42, "b": {"key": "b", "value": "x"}}}')

        snapshot = SnapshotStore().read(str(path))

        assert snapshot.entries["a"] is None
        assert snapshot.entries["b"].value == "x"
        assert snapshot.metrics is None

    def test_bad_base64_entry(self, tmp_path):
        """Test an undecodable binary value is kept for repair."""
        path = tmp_path / "cache.json"
        path.write_text(
            '{"entries": {"bad": {"key": "bad", "value": "!!!notb64", "value_encoding": "base64"},'
            ' "ok": {"key": "ok", "value": "x"}}}'
        )

        snapshot = SnapshotStore().read(str(path))

        assert snapshot.entries["bad"] is None
        assert snapshot.entries["ok"].value == "x"

    def test_concurrent_writer(self, tmp_path):
        """Test a second writer to the same destination fails."""
        path = str(tmp_path / "cache.json")
        lock = _writer_lock(path)

        lock.acquire()
        try:
            with pytest.raises(CacheIOError):
                SnapshotStore().write(path, sample_entries())
        finally:
            lock.release()

        assert not os.path.exists(path)
        SnapshotStore().write(path, sample_entries())
        assert os.path.exists(path)

    def test_stale_temp_file(self, tmp_path):
        """Test a temp file left by a crashed writer does not block writes."""
        path = str(tmp_path / "cache.json")
        open(path + ".tmp", "w").close()

        SnapshotStore().write(path, sample_entries())

        assert set(SnapshotStore().read(path).entries) == {"text", "blob"}

    def test_unknown_format(self):
        """Test unknown snapshot formats."""
        with pytest.raises(InvalidArgumentError):
            SnapshotStore("yaml")

    def test_msgpack(self, tmp_path):
        """Test MessagePack snapshots."""
        pytest.importorskip("msgpack")
        store = SnapshotStore("msgpack")
        path = str(tmp_path / "cache.msgpack")

        store.write(path, sample_entries(), CacheMetrics(sets=2))
        snapshot = store.read(path)

        assert store.format_name == "msgpack"
        assert snapshot.entries["blob"].value == b"\xff\x00"
        assert snapshot.metrics.sets == 2


class TestSerializer:
    """Tests for value codecs."""

    def test_compression(self):
        """Test both compression types."""
        data = b"offcache " * 200
        for compression in ("gzip", "zlib"):
            packed = compress(data, compression, 9)
            assert len(packed) < len(data)
            assert decompress(packed, compression) == data

    def test_unknown_compression(self):
        """Test unknown compression types."""
        with pytest.raises(ValueError):
            compress(b"data", "lz4")

    def test_value_formats(self):
        """Test value encoding keeps the Python type."""
        for value, fmt in (("text", ValueFormat.STR), (b"raw", ValueFormat.BYTES),
                           ({"a": [1]}, ValueFormat.JSON)):
            raw, value_format = encode_value(value)
            assert value_format == fmt
            assert decode_value(raw, value_format.value) == value

    def test_default_serializer(self):
        """Test JSON is the default."""
        assert isinstance(get_serializer(), JSONSerializer)
        with pytest.raises(KeyError):
            get_serializer("pickle")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
