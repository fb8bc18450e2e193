"""OffCache CLI - Cache Maintenance Commands.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

Usage:
    # Show cache status
    offcache show

    # Remove expired entries
    offcache clean

    # Repair corrupted entries
    offcache --cache-dir /tmp/cache repair

    # Back up and restore
    offcache backup backups/cache.json
    offcache restore backups/cache.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import List, Optional

from offcache_core.cache.cache import Cache
from offcache_core.cache.config import CacheConfig
from offcache_core.errors import CacheError
from offcache_core.metrics.reporter import CacheReporter
from offcache_core.validation.validator import HealthStatus

logger = logging.getLogger(__name__)


def open_cache(args: argparse.Namespace) -> Cache:
    """Build a cache from the environment and flags and load its snapshot."""
    config = CacheConfig.from_env()
    if args.cache_dir:
        config.location = args.cache_dir
    cache = Cache(config)
    loaded = cache.load()
    logger.debug(f"Loaded {loaded} entries from {cache.snapshot_path}")
    return cache


def cmd_show(args: argparse.Namespace) -> int:
    """Show cache status."""
    cache = open_cache(args)
    reporter = CacheReporter(cache)

    if args.json:
        print(json.dumps(reporter.summary(), indent=2))
    else:
        print(reporter.render())
    return 0


def cmd_clean(args: argparse.Namespace) -> int:
    """Remove expired entries."""
    cache = open_cache(args)
    removed = cache.clean()
    cache.sync()
    print(f"Removed {removed} expired entries")
    return 0


def cmd_repair(args: argparse.Namespace) -> int:
    """Repair corrupted entries."""
    cache = open_cache(args)
    dropped = cache.repair()
    cache.sync()
    print(f"Repaired cache, dropped {dropped} entries")
    return 0


def cmd_compact(args: argparse.Namespace) -> int:
    """Compact the cache."""
    cache = open_cache(args)
    result = cache.compact()
    cache.sync()
    print(
        f"Compacted cache: {result.entries_removed} entries removed, "
        f"{result.size_reduced} bytes freed"
    )
    return 0


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate the cache and report its health."""
    cache = open_cache(args)
    report = cache.check_health()

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(f"Health: {report.status.value}")
        for issue in report.issues:
            print(f"  [{issue.type.value}] {issue.description}")
        for warning in report.warnings:
            print(f"  warning: {warning.description}")
        for recommendation in report.recommendations:
            print(f"  - {recommendation}")

    cache.validate()
    return 1 if report.status == HealthStatus.UNHEALTHY else 0


def cmd_backup(args: argparse.Namespace) -> int:
    """Back up the cache."""
    cache = open_cache(args)
    cache.backup(args.path)
    print(f"Backed up {cache.size()} entries to {args.path}")
    return 0


def cmd_restore(args: argparse.Namespace) -> int:
    """Restore the cache from a backup."""
    cache = open_cache(args)
    restored = cache.restore(args.path)
    cache.sync()
    print(f"Restored {restored} entries from {args.path}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="offcache",
        description="OffCache maintenance CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  show      Show cache status
  clean     Remove expired entries
  repair    Repair corrupted entries
  compact   Remove expired entries and recompute size
  validate  Check cache integrity and health
  backup    Write the cache to a snapshot file
  restore   Replace the cache with a snapshot file

Examples:
  %(prog)s show --json
  %(prog)s --cache-dir /tmp/offcache clean
  %(prog)s backup backups/cache.json
        """,
    )
    parser.add_argument("--cache-dir", help="Cache directory (default: OFFCACHE_DIR or ~/.offcache/cache)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    show_parser = subparsers.add_parser("show", help="Show cache status")
    show_parser.add_argument("--json", action="store_true", help="Output as JSON")

    subparsers.add_parser("clean", help="Remove expired entries")
    subparsers.add_parser("repair", help="Repair corrupted entries")
    subparsers.add_parser("compact", help="Compact the cache")

    validate_parser = subparsers.add_parser("validate", help="Validate the cache")
    validate_parser.add_argument("--json", action="store_true", help="Output as JSON")

    backup_parser = subparsers.add_parser("backup", help="Back up the cache")
    backup_parser.add_argument("path", help="Backup file")

    restore_parser = subparsers.add_parser("restore", help="Restore the cache")
    restore_parser.add_argument("path", help="Backup file")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    commands = {
        "show": cmd_show,
        "clean": cmd_clean,
        "repair": cmd_repair,
        "compact": cmd_compact,
        "validate": cmd_validate,
        "backup": cmd_backup,
        "restore": cmd_restore,
    }

    handler = commands.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except CacheError as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        print(f"offcache {args.command}: {e}", file=sys.stderr)
        return 1


__all__ = ["main", "build_parser"]


if __name__ == "__main__":
    sys.exit(main())
