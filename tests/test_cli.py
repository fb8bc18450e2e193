"""Tests for the offcache CLI.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import json
import time

import pytest

from offcache_core.cache.cache import Cache
from offcache_core.cache.config import CacheConfig
from offcache_core.cli import main


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("OFFCACHE_DIR", "OFFCACHE_MAX_SIZE", "OFFCACHE_DEFAULT_TTL", "OFFCACHE_EVICTION_POLICY"):
        monkeypatch.delenv(name, raising=False)


def seed(cache_dir, **entries):
    cache = Cache(CacheConfig(location=str(cache_dir)))
    for key, value in entries.items():
        cache.set(key, value)
    cache.sync()
    return cache


def write_snapshot(cache_dir, entries):
    (cache_dir / "cache.json").write_text(json.dumps({"version": "1.0", "entries": entries}))


class TestCLI:
    """Tests for CLI commands."""

    def test_no_command(self, capsys):
        """Test help is printed without a command."""
        assert main([]) == 0
        assert "offcache" in capsys.readouterr().out

    def test_show(self, tmp_path, capsys):
        """Test status output."""
        seed(tmp_path, key="value")

        assert main(["--cache-dir", str(tmp_path), "show"]) == 0

        out = capsys.readouterr().out
        assert out.startswith("Cache Status:")
        assert "Entries:         1" in out

    def test_show_json(self, tmp_path, capsys):
        """Test JSON status output."""
        seed(tmp_path, key="value")

        assert main(["--cache-dir", str(tmp_path), "show", "--json"]) == 0

        data = json.loads(capsys.readouterr().out)
        assert data["entries"] == 1
        assert data["location"] == str(tmp_path)

    def test_clean_persists(self, tmp_path, capsys):
        """Test clean writes the result back."""
        cache = Cache(CacheConfig(location=str(tmp_path)))
        cache.set("gone", "v", ttl=0.01)
        cache.set("kept", "v")
        cache.sync()
        time.sleep(0.05)

        assert main(["--cache-dir", str(tmp_path), "clean"]) == 0
        assert "Removed" in capsys.readouterr().out

        loaded = Cache(CacheConfig(location=str(tmp_path)))
        assert loaded.load() == 1
        assert loaded.exists("kept")

    def test_validate(self, tmp_path, capsys):
        """Test validate on a healthy cache."""
        seed(tmp_path, key="value")

        assert main(["--cache-dir", str(tmp_path), "validate"]) == 0
        assert "Health: healthy" in capsys.readouterr().out

    def test_validate_corrupt_snapshot(self, tmp_path, capsys):
        """Test validate reports corruption stored in the snapshot."""
        write_snapshot(tmp_path, {
            "other": {"key": "other", "value": "hello", "size": -5, "access_count": -1},
        })

        assert main(["--cache-dir", str(tmp_path), "validate"]) == 1

        captured = capsys.readouterr()
        assert "Health: unhealthy" in captured.out
        assert "negative size for key: other" in captured.err

    def test_repair_corrupt_snapshot(self, tmp_path, capsys):
        """Test repair drops unrepairable entries and persists the result."""
        write_snapshot(tmp_path, {
            "packed": {"key": "packed", "value": "x", "size": 1, "compressed": True, "metadata": ["bad"]},
            "other": {"key": "other", "value": "hello", "size": -5},
        })

        assert main(["--cache-dir", str(tmp_path), "repair"]) == 0
        assert "dropped 1 entries" in capsys.readouterr().out
        assert main(["--cache-dir", str(tmp_path), "validate"]) == 0

    def test_bad_environment(self, tmp_path, monkeypatch, capsys):
        """Test an unparsable environment variable fails cleanly."""
        monkeypatch.setenv("OFFCACHE_MAX_SIZE", "lots")

        assert main(["--cache-dir", str(tmp_path), "show"]) == 1
        assert "OFFCACHE_MAX_SIZE" in capsys.readouterr().err

    def test_validate_missing_directory(self, tmp_path, capsys):
        """Test validate fails when the directory is missing."""
        missing = tmp_path / "missing"

        assert main(["--cache-dir", str(missing), "validate"]) == 1
        assert "offcache validate:" in capsys.readouterr().err

    def test_backup_and_restore(self, tmp_path, capsys):
        """Test a backup restores into another directory."""
        source = tmp_path / "source"
        target = tmp_path / "target"
        target.mkdir()
        seed(source, alpha="a", beta={"n": 2})
        backup = str(tmp_path / "backups" / "cache.json")

        assert main(["--cache-dir", str(source), "backup", backup]) == 0
        assert main(["--cache-dir", str(target), "restore", backup]) == 0
        assert "Restored 2 entries" in capsys.readouterr().out

        restored = Cache(CacheConfig(location=str(target)))
        assert restored.load() == 2
        assert restored.get("beta") == {"n": 2}

    def test_backup_rejects_traversal(self, tmp_path, capsys):
        """Test unsafe backup paths fail cleanly."""
        assert main(["--cache-dir", str(tmp_path), "backup", "../escape.json"]) == 1
        assert "path traversal" in capsys.readouterr().err

    def test_restore_missing(self, tmp_path):
        """Test restoring a missing backup."""
        assert main(["--cache-dir", str(tmp_path), "restore", str(tmp_path / "none.json")]) == 1

    def test_repair_and_compact(self, tmp_path, capsys):
        """Test repair and compact run on a seeded cache."""
        seed(tmp_path, key="value")

        assert main(["--cache-dir", str(tmp_path), "repair"]) == 0
        assert main(["--cache-dir", str(tmp_path), "compact"]) == 0

        out = capsys.readouterr().out
        assert "dropped 0 entries" in out
        assert "Compacted cache" in out


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
