"""Metrics module - Cache metrics and reporting."""

from offcache_core.metrics.collector import (
    CacheMetrics,
    MetricsCollector,
    Timer,
)
from offcache_core.metrics.reporter import CacheReporter

__all__ = [
    "CacheMetrics",
    "MetricsCollector",
    "Timer",
    "CacheReporter",
]
