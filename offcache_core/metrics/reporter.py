"""OffCache Reporter - Cache Status Reports.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from offcache_core.cache.cache import Cache
    from offcache_core.cache.offline import OfflineManager


def _format_time(timestamp: Optional[float]) -> str:
    if timestamp is None:
        return "never"
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat(timespec="seconds")


def _format_bytes(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{size} B"


class CacheReporter:
    """Builds the status shown by ``offcache show``.

    Example:
        reporter = CacheReporter(cache)
        print(reporter.render())
    """

    def __init__(self, cache: "Cache", offline: Optional["OfflineManager"] = None):
        """Initialize reporter.

        Args:
            cache: Cache to report on
            offline: Offline manager whose state is reported as the mode
        """
        self.cache = cache
        self.offline = offline

    def summary(self) -> Dict[str, Any]:
        """Collect status as a JSON-friendly dict."""
        stats = self.cache.get_stats()
        metrics = self.cache.get_metrics()
        collector = self.cache.metrics

        return {
            "location": self.cache.location,
            "mode": self.offline.state.value if self.offline else "online",
            "health": stats.cache_health,
            "entries": metrics.current_entries,
            "expired_entries": stats.expired_entries,
            "size": metrics.current_size,
            "max_size": metrics.max_size,
            "max_entries": metrics.max_entries,
            "hit_rate": metrics.hit_rate,
            "miss_rate": metrics.miss_rate,
            "uptime": collector.get_uptime(),
            "counters": {
                "gets": metrics.gets,
                "hits": metrics.hits,
                "misses": metrics.misses,
                "sets": metrics.sets,
                "deletes": metrics.deletes,
                "evictions": metrics.evictions,
            },
            "evictions_by_reason": collector.get_evictions_by_reason(),
            "last_cleanup": metrics.last_cleanup,
            "last_compaction": metrics.last_compaction,
            "last_backup": metrics.last_backup,
        }

    def render(self) -> str:
        """Render status as text."""
        data = self.summary()
        counters = data["counters"]

        lines: List[str] = [
            "Cache Status:",
            f"  Location:        {data['location']}",
            f"  Mode:            {data['mode']}",
            f"  Health:          {data['health']}",
            f"  Entries:         {data['entries']} ({data['expired_entries']} expired)"
            + (f" / {data['max_entries']}" if data["max_entries"] else ""),
            f"  Size:            {_format_bytes(data['size'])}"
            + (f" / {_format_bytes(data['max_size'])}" if data["max_size"] else ""),
            f"  Hit rate:        {data['hit_rate']:.2%}",
            f"  Miss rate:       {data['miss_rate']:.2%}",
            f"  Operations:      {counters['gets']} gets, {counters['sets']} sets, "
            f"{counters['deletes']} deletes, {counters['evictions']} evictions",
        ]

        if data["evictions_by_reason"]:
            reasons = ", ".join(
                f"{reason}={count}"
                for reason, count in sorted(data["evictions_by_reason"].items())
            )
            lines.append(f"  Evicted:         {reasons}")

        lines.extend([
            f"  Last cleanup:    {_format_time(data['last_cleanup'])}",
            f"  Last compaction: {_format_time(data['last_compaction'])}",
            f"  Last backup:     {_format_time(data['last_backup'])}",
        ])
        return "\n".join(lines)


__all__ = ["CacheReporter"]
