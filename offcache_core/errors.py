"""OffCache Errors - Cache Error Hierarchy.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.

All cache exceptions inherit from CacheError so callers (the CLI, the
project generator) can catch one type and still branch on ``code``.

Usage:
    from offcache_core.errors import KeyNotFoundError

    try:
        value = cache.get("templates:list")
    except KeyNotFoundError:
        value = fetch_templates()
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional


class CacheError(Exception):
    """Base exception for all cache errors.

    Attributes:
        code: Machine-readable error code
        message: Human-readable description
        context: Extra debugging context
    """

    code: str = "CACHE_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class KeyNotFoundError(CacheError, KeyError):
    """Key is absent or has expired."""

    code: str = "NOT_FOUND"

    def __init__(self, key: str, reason: str = "not found"):
        super().__init__(f"key {reason}: {key}", context={"key": key})
        self.key = key
        self.reason = reason


class InvalidArgumentError(CacheError, ValueError):
    """Argument rejected before any state was touched."""

    code: str = "INVALID_ARGUMENT"


class ConfigurationError(InvalidArgumentError):
    """Cache configuration failed validation.

    Attributes:
        violations: Every invariant the configuration breaks
    """

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, violations: List[str]):
        super().__init__("invalid cache configuration: " + "; ".join(violations))
        self.violations = list(violations)


class CorruptionError(CacheError):
    """Structural violations found in cache entries or the cache file.

    Attributes:
        issues: One description per violation
    """

    code: str = "CORRUPTION"

    def __init__(self, message: str, issues: Optional[List[str]] = None):
        super().__init__(message, context={"issues": len(issues or [])})
        self.issues = list(issues or [])


class CacheIOError(CacheError):
    """Filesystem operation failed (backup, restore, directory probe)."""

    code: str = "IO_ERROR"


class CachePermissionError(CacheIOError):
    """Cache directory or file is not writable."""

    code: str = "PERMISSION_DENIED"


class InvalidStateError(CacheError):
    """Operation not valid in the current offline/online state."""

    code: str = "INVALID_STATE"


class NotOfflineError(InvalidStateError):
    """Offline-only read path called while online."""

    code: str = "NOT_OFFLINE"

    def __init__(self, operation: str):
        super().__init__(f"not in offline mode: {operation} is offline-only")
        self.operation = operation


class OperationCancelledError(CacheError):
    """Long-running maintenance was cancelled; live state is unchanged."""

    code: str = "CANCELLED"


__all__ = [
    "CacheError",
    "KeyNotFoundError",
    "InvalidArgumentError",
    "ConfigurationError",
    "CorruptionError",
    "CacheIOError",
    "CachePermissionError",
    "InvalidStateError",
    "NotOfflineError",
    "OperationCancelledError",
]
