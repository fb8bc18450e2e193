"""OffCache Validation Module - Integrity, Health and Repair."""

from offcache_core.validation.validator import (
    HEALTHY_RECOMMENDATION,
    CacheIssue,
    CacheValidator,
    CacheWarning,
    HealthReport,
    HealthStatus,
    IssueType,
    WarningType,
    validate_configuration,
    validate_entries,
)

__all__ = [
    "CacheValidator",
    "HealthReport",
    "HealthStatus",
    "CacheIssue",
    "CacheWarning",
    "IssueType",
    "WarningType",
    "HEALTHY_RECOMMENDATION",
    "validate_configuration",
    "validate_entries",
]
