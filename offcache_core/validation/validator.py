"""OffCache Validator - Integrity Checks, Health Reports and Repair.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

Validation reports problems; repair fixes what it can and drops the rest.
Neither mutates its input: repair builds a new entry map and a new metrics
snapshot, so the caller decides when (and whether) to install them.
"""

from __future__ import annotations

import logging
import os
import threading
import time
import zlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from offcache_core.cache.config import CacheConfig, EvictionPolicyName
from offcache_core.cache.entry import CacheEntry, SizeEstimator, estimate_size
from offcache_core.errors import (
    CacheIOError,
    CachePermissionError,
    ConfigurationError,
    CorruptionError,
    InvalidArgumentError,
    OperationCancelledError,
)
from offcache_core.metrics.collector import CacheMetrics
from offcache_core.protocol.serializer import CompressionType, decompress

logger = logging.getLogger(__name__)

WRITE_PROBE = ".write_test"

EXPIRED_RATIO_THRESHOLD = 0.5
CORRUPTED_RATIO_THRESHOLD = 0.1
HIT_RATE_THRESHOLD = 0.5
HIT_RATE_MIN_GETS = 100


class HealthStatus(Enum):
    """Overall cache health, ordered from best to worst."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]


_STATUS_RANK = {
    HealthStatus.HEALTHY: 0,
    HealthStatus.DEGRADED: 1,
    HealthStatus.UNHEALTHY: 2,
}


class IssueType(Enum):
    """Health issue categories."""

    PERMISSION = "permission"
    CONFIGURATION = "configuration"
    EXPIRATION = "expiration"
    CORRUPTION = "corruption"
    LIMIT_EXCEEDED = "limit_exceeded"


class WarningType(Enum):
    """Health warning categories."""

    HIT_RATE = "hit_rate"


@dataclass
class CacheIssue:
    """A problem that affects health status."""

    type: IssueType
    severity: str
    description: str
    detected_at: float = field(default_factory=time.time)
    resolution: str = ""
    fixable: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "severity": self.severity,
            "description": self.description,
            "detected_at": self.detected_at,
            "resolution": self.resolution,
            "fixable": self.fixable,
        }


@dataclass
class CacheWarning:
    """An observation that does not change health status."""

    type: WarningType
    description: str
    threshold: Any = None
    current: Any = None
    suggestion: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "description": self.description,
            "threshold": self.threshold,
            "current": self.current,
            "suggestion": self.suggestion,
        }


@dataclass
class HealthReport:
    """Cache health check result.

    Attributes:
        status: Overall status
        issues: Problems found (machine-readable)
        warnings: Observations that do not degrade status
        recommendations: Human-readable next steps
        expired_entries: Entries past their expiry
        corrupted_entries: Entries failing basic structural checks
        total_entries: Entries inspected
        timestamp: When the check ran
    """

    status: HealthStatus = HealthStatus.HEALTHY
    issues: List[CacheIssue] = field(default_factory=list)
    warnings: List[CacheWarning] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)
    expired_entries: int = 0
    corrupted_entries: int = 0
    total_entries: int = 0
    timestamp: float = field(default_factory=time.time)

    @property
    def healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY

    def degrade(self, status: HealthStatus) -> None:
        """Lower the status to at least ``status``; never improves it."""
        if status.rank > self.status.rank:
            self.status = status

    def add_issue(self, issue: CacheIssue, status: HealthStatus) -> None:
        self.issues.append(issue)
        self.degrade(status)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "issues": [i.to_dict() for i in self.issues],
            "warnings": [w.to_dict() for w in self.warnings],
            "recommendations": list(self.recommendations),
            "expired_entries": self.expired_entries,
            "corrupted_entries": self.corrupted_entries,
            "total_entries": self.total_entries,
            "timestamp": self.timestamp,
        }


_ISSUE_RECOMMENDATIONS = {
    IssueType.CORRUPTION: "Run 'offcache repair' to fix corrupted cache data",
    IssueType.PERMISSION: "Check file system permissions for cache directory",
    IssueType.EXPIRATION: "Run 'offcache clean' to remove expired entries",
    IssueType.LIMIT_EXCEEDED: "Run 'offcache compact' or raise max_size/max_entries",
    IssueType.CONFIGURATION: "Fix the cache configuration and restart",
}

_WARNING_RECOMMENDATIONS = {
    WarningType.HIT_RATE: "Consider preloading frequently used data",
}

HEALTHY_RECOMMENDATION = "Cache is healthy - no action required"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_count(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _compression_issue(key: str, entry: CacheEntry) -> Optional[str]:
    """Check compression metadata of a compressed entry."""
    if not entry.compressed:
        return None
    metadata = entry.metadata if isinstance(entry.metadata, dict) else {}
    if "compression_type" not in metadata:
        return f"compressed entry missing compression_type metadata for key: {key}"
    if "original_size" not in metadata:
        return f"compressed entry missing original_size metadata for key: {key}"
    original_size = metadata["original_size"]
    if _is_number(original_size) and original_size < 0:
        return f"negative original_size in metadata for key: {key}"
    return None


def validate_entries(
    entries: Mapping[str, Optional[CacheEntry]],
    now: Optional[float] = None,
) -> List[str]:
    """Check every entry for structural violations.

    Args:
        entries: Entry map to inspect (not modified)
        now: Reference time for future-timestamp checks

    Returns:
        One description per violation, empty when the map is clean
    """
    if now is None:
        now = time.time()
    issues: List[str] = []

    for key, entry in entries.items():
        if entry is None:
            issues.append(f"nil entry for key: {key}")
            continue

        if entry.key != key:
            issues.append(f"key mismatch: expected {key}, got {entry.key}")

        if not _is_count(entry.size) or entry.size < 0:
            issues.append(f"negative size for key: {key}")

        for name in ("created_at", "updated_at", "accessed_at"):
            stamp = getattr(entry, name)
            if not _is_number(stamp):
                issues.append(f"invalid {name} for key: {key}")
            elif stamp > now:
                issues.append(f"future {name} for key: {key}")

        if not _is_count(entry.access_count) or entry.access_count < 0:
            issues.append(f"negative access count for key: {key}")

        if entry.metadata is not None and not isinstance(entry.metadata, dict):
            issues.append(f"invalid metadata for key: {key}")

        compression = _compression_issue(key, entry)
        if compression:
            issues.append(compression)

    return issues


def validate_configuration(config: Optional[CacheConfig]) -> None:
    """Check a configuration, collecting every violation.

    Args:
        config: Configuration to check

    Raises:
        InvalidArgumentError: If config is None
        ConfigurationError: If any invariant is broken
    """
    if config is None:
        raise InvalidArgumentError("cache configuration is nil")

    violations: List[str] = []

    if config.max_size < 0:
        violations.append(f"max_size cannot be negative: {config.max_size}")
    if config.max_entries < 0:
        violations.append(f"max_entries cannot be negative: {config.max_entries}")
    if not 0 <= config.eviction_ratio <= 1:
        violations.append(f"eviction_ratio must be between 0 and 1: {config.eviction_ratio}")
    if config.eviction_policy not in EvictionPolicyName.names():
        violations.append(f"invalid eviction policy: {config.eviction_policy}")
    if config.enable_compression and not 1 <= config.compression_level <= 9:
        violations.append(
            f"compression_level must be between 1 and 9: {config.compression_level}"
        )
    if config.compression_type not in CompressionType.names():
        violations.append(f"invalid compression type: {config.compression_type}")
    if config.default_ttl < 0:
        violations.append(f"default_ttl cannot be negative: {config.default_ttl}")
    if config.sync_interval <= 0:
        violations.append(f"sync_interval must be positive: {config.sync_interval}")

    if violations:
        raise ConfigurationError(violations)


class CacheValidator:
    """Cache integrity validator and repairer.

    Example:
        validator = CacheValidator(config.cache_dir, config)
        report = validator.check_cache_health(entries, metrics)
        if report.corrupted_entries:
            entries, metrics = validator.repair_cache(entries, metrics)
    """

    def __init__(self, cache_dir: str, config: Optional[CacheConfig] = None):
        """Initialize validator.

        Args:
            cache_dir: Directory probed for accessibility
            config: Configuration checked by health reports
        """
        self.cache_dir = cache_dir
        self.config = config

    def set_config(self, config: CacheConfig) -> None:
        self.config = config

    def validate_directory(self) -> None:
        """Check the cache directory exists and is writable.

        Writes and removes a probe file.

        Raises:
            CacheIOError: If the directory is missing or not a directory
            CachePermissionError: If it cannot be written
        """
        if not os.path.exists(self.cache_dir):
            raise CacheIOError(
                "cache directory does not exist", context={"path": self.cache_dir}
            )
        if not os.path.isdir(self.cache_dir):
            raise CacheIOError(
                "cache path is not a directory", context={"path": self.cache_dir}
            )

        probe = os.path.join(self.cache_dir, WRITE_PROBE)
        try:
            with open(probe, "w") as f:
                f.write("test")
        except PermissionError as e:
            raise CachePermissionError(
                "cache directory is not writable", context={"path": self.cache_dir}
            ) from e
        except OSError as e:
            raise CacheIOError(
                f"cache directory probe failed: {e}", context={"path": self.cache_dir}
            ) from e

        try:
            os.remove(probe)
        except OSError as e:
            logger.warning(f"Failed to remove write probe {probe}: {e}")

    def validate_entries(self, entries: Mapping[str, Optional[CacheEntry]]) -> List[str]:
        return validate_entries(entries)

    def validate_cache(self, entries: Mapping[str, Optional[CacheEntry]]) -> None:
        """Validate the directory, then every entry.

        Raises:
            CacheIOError: From the directory probe
            CorruptionError: With every entry violation joined
        """
        self.validate_directory()

        issues = validate_entries(entries)
        if issues:
            raise CorruptionError(
                "validation issues found: " + "; ".join(issues), issues=issues
            )

    def validate_configuration(self, config: Optional[CacheConfig] = None) -> None:
        """Validate ``config``, or the validator's own configuration."""
        validate_configuration(config if config is not None else self.config)

    def check_cache_health(
        self,
        entries: Mapping[str, Optional[CacheEntry]],
        metrics: Optional[CacheMetrics] = None,
    ) -> HealthReport:
        """Run a health check.

        Args:
            entries: Entry map to inspect (not modified)
            metrics: Metrics snapshot for limit and hit-rate checks

        Returns:
            HealthReport
        """
        report = HealthReport()
        now = report.timestamp

        try:
            self.validate_directory()
        except CacheIOError as e:
            report.add_issue(CacheIssue(
                type=IssueType.PERMISSION,
                severity="critical",
                description=f"Directory issue: {e.message}",
                resolution="Check file system permissions for cache directory",
            ), HealthStatus.UNHEALTHY)

        try:
            validate_configuration(self.config)
        except InvalidArgumentError as e:
            report.add_issue(CacheIssue(
                type=IssueType.CONFIGURATION,
                severity="high",
                description=f"Configuration issue: {e.message}",
            ), HealthStatus.DEGRADED)

        expired = 0
        corrupted = 0
        for key, entry in entries.items():
            if entry is None:
                corrupted += 1
                continue
            if (
                entry.key != key
                or not _is_count(entry.size) or entry.size < 0
                or not _is_count(entry.access_count) or entry.access_count < 0
            ):
                corrupted += 1
            if _is_number(entry.expires_at) and entry.expires_at < now:
                expired += 1

        total = len(entries)
        report.expired_entries = expired
        report.corrupted_entries = corrupted
        report.total_entries = total

        if total > 0:
            expired_ratio = expired / total
            corrupted_ratio = corrupted / total

            if expired_ratio > EXPIRED_RATIO_THRESHOLD:
                report.add_issue(CacheIssue(
                    type=IssueType.EXPIRATION,
                    severity="medium",
                    description=f"High expired entry ratio: {expired_ratio * 100:.2f}%",
                    resolution="Run cache cleanup",
                    fixable=True,
                ), HealthStatus.DEGRADED)

            if corrupted_ratio > CORRUPTED_RATIO_THRESHOLD:
                report.add_issue(CacheIssue(
                    type=IssueType.CORRUPTION,
                    severity="high",
                    description=f"Corrupted entries detected: {corrupted_ratio * 100:.2f}%",
                    resolution="Run cache repair",
                    fixable=True,
                ), HealthStatus.UNHEALTHY)

        if metrics is not None:
            if metrics.max_size > 0 and metrics.current_size > metrics.max_size:
                report.add_issue(CacheIssue(
                    type=IssueType.LIMIT_EXCEEDED,
                    severity="medium",
                    description=(
                        f"Cache size exceeds maximum limit: "
                        f"{metrics.current_size} > {metrics.max_size}"
                    ),
                    resolution="Increase max_size or run cleanup",
                    fixable=True,
                ), HealthStatus.DEGRADED)

            if metrics.max_entries > 0 and metrics.current_entries > metrics.max_entries:
                report.add_issue(CacheIssue(
                    type=IssueType.LIMIT_EXCEEDED,
                    severity="medium",
                    description=(
                        f"Cache entry count exceeds maximum limit: "
                        f"{metrics.current_entries} > {metrics.max_entries}"
                    ),
                    resolution="Increase max_entries or run cleanup",
                    fixable=True,
                ), HealthStatus.DEGRADED)

            if metrics.gets > HIT_RATE_MIN_GETS and metrics.hit_rate < HIT_RATE_THRESHOLD:
                report.warnings.append(CacheWarning(
                    type=WarningType.HIT_RATE,
                    description=f"Low cache hit rate: {metrics.hit_rate * 100:.2f}%",
                    threshold=HIT_RATE_THRESHOLD,
                    current=metrics.hit_rate,
                    suggestion="Review cache strategy or increase cache size",
                ))

        report.recommendations = self._recommendations(report)
        logger.debug(
            f"Health check: {report.status.value}, {len(report.issues)} issues, "
            f"{len(report.warnings)} warnings"
        )
        return report

    def _recommendations(self, report: HealthReport) -> List[str]:
        recommendations: List[str] = []
        for issue in report.issues:
            text = _ISSUE_RECOMMENDATIONS[issue.type]
            if text not in recommendations:
                recommendations.append(text)
        for warning in report.warnings:
            text = _WARNING_RECOMMENDATIONS[warning.type]
            if text not in recommendations:
                recommendations.append(text)
        if not recommendations:
            recommendations.append(HEALTHY_RECOMMENDATION)
        return recommendations

    def repair_cache(
        self,
        entries: Mapping[str, Optional[CacheEntry]],
        metrics: Optional[CacheMetrics] = None,
        size_estimator: SizeEstimator = estimate_size,
        cancel: Optional[threading.Event] = None,
    ) -> Tuple[Dict[str, CacheEntry], CacheMetrics]:
        """Build a repaired copy of the entry map and metrics.

        Fixes key mismatches, negative sizes (re-estimated from the value),
        future timestamps (clamped to now), negative access counts and
        missing metadata. Drops missing entries, compressed entries whose
        payload cannot be described, and entries already expired. Gauges are
        recomputed from the result; counters and limits carry over.

        Repairing the output again changes nothing.

        Args:
            entries: Entry map (not modified)
            metrics: Metrics snapshot (not modified)
            size_estimator: Size function for re-estimated entries
            cancel: Event checked between entries

        Returns:
            (repaired entries, repaired metrics)

        Raises:
            OperationCancelledError: If cancel is set mid-pass
        """
        now = time.time()
        repaired: Dict[str, CacheEntry] = {}
        dropped = 0
        fixed = 0

        for key, entry in entries.items():
            if cancel is not None and cancel.is_set():
                raise OperationCancelledError("cancelled during cache repair")

            if entry is None:
                dropped += 1
                continue

            candidate = entry.copy()
            changed = self._repair_entry(key, candidate, now, size_estimator)
            if candidate.compressed and not self._repair_compression(candidate):
                logger.debug(f"Dropping unrepairable compressed entry {key!r}")
                dropped += 1
                continue
            if candidate.expires_at is not None and candidate.expires_at < now:
                dropped += 1
                continue

            if changed:
                fixed += 1
            repaired[key] = candidate

        new_metrics = metrics.copy() if metrics is not None else CacheMetrics()
        new_metrics.current_size = sum(e.size for e in repaired.values())
        new_metrics.current_entries = len(repaired)

        if fixed or dropped:
            logger.info(f"Cache repair fixed {fixed} entries, dropped {dropped}")
        return repaired, new_metrics

    def _repair_entry(
        self,
        key: str,
        entry: CacheEntry,
        now: float,
        size_estimator: SizeEstimator,
    ) -> bool:
        """Fix one entry in place; return whether anything changed."""
        changed = False

        if entry.key != key:
            entry.key = key
            changed = True

        if not _is_count(entry.size) or entry.size < 0:
            entry.size = max(0, int(size_estimator(entry.value)))
            changed = True

        for name in ("created_at", "updated_at", "accessed_at"):
            stamp = getattr(entry, name)
            if not _is_number(stamp) or stamp > now:
                setattr(entry, name, now)
                changed = True

        if not _is_count(entry.access_count) or entry.access_count < 0:
            entry.access_count = 0
            changed = True

        if entry.expires_at is not None and not _is_number(entry.expires_at):
            entry.expires_at = None
            entry.ttl = 0.0
            changed = True

        if not isinstance(entry.metadata, dict):
            entry.metadata = {}
            changed = True

        return changed

    def _repair_compression(self, entry: CacheEntry) -> bool:
        """Fix compression metadata; False when the entry must be dropped."""
        compression_type = entry.metadata.get("compression_type")
        if compression_type not in CompressionType.names():
            return False

        original_size = entry.metadata.get("original_size")
        if _is_count(original_size) and original_size >= 0:
            return True

        try:
            raw = decompress(entry.value, compression_type)
        except (OSError, EOFError, zlib.error, TypeError, ValueError):
            return False
        entry.metadata["original_size"] = len(raw)
        return True


__all__ = [
    "CacheValidator",
    "HealthReport",
    "HealthStatus",
    "CacheIssue",
    "CacheWarning",
    "IssueType",
    "WarningType",
    "HEALTHY_RECOMMENDATION",
    "validate_entries",
    "validate_configuration",
]
