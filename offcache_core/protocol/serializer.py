"""OffCache Serializer - Value Compression and Snapshot Codecs.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import gzip
import json
import logging
import zlib
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


class CompressionType(Enum):
    """Supported compression types."""

    GZIP = "gzip"
    ZLIB = "zlib"

    @classmethod
    def names(cls) -> List[str]:
        """List accepted configuration names."""
        return [c.value for c in cls]


class ValueFormat(Enum):
    """How a compressed payload maps back to a Python value."""

    STR = "str"
    BYTES = "bytes"
    JSON = "json"


def compress(data: bytes, compression: str = "gzip", level: int = 6) -> bytes:
    """Compress bytes.

    Args:
        data: Raw bytes
        compression: Compression type name
        level: Compression level (1-9)

    Returns:
        Compressed bytes

    Raises:
        ValueError: If compression type is unknown
    """
    ctype = CompressionType(compression)
    if ctype == CompressionType.GZIP:
        return gzip.compress(data, compresslevel=level)
    return zlib.compress(data, level)


def decompress(data: bytes, compression: str = "gzip") -> bytes:
    """Decompress bytes produced by compress().

    Args:
        data: Compressed bytes
        compression: Compression type name

    Returns:
        Raw bytes
    """
    ctype = CompressionType(compression)
    if ctype == CompressionType.GZIP:
        return gzip.decompress(data)
    return zlib.decompress(data)


def encode_value(value: Any) -> Tuple[bytes, ValueFormat]:
    """Turn a cache value into bytes for compression.

    Args:
        value: Value to encode

    Returns:
        (payload, format) tuple

    Raises:
        TypeError: If value is not JSON-serializable
    """
    if isinstance(value, bytes):
        return value, ValueFormat.BYTES
    if isinstance(value, str):
        return value.encode("utf-8"), ValueFormat.STR
    return json.dumps(value).encode("utf-8"), ValueFormat.JSON


def decode_value(data: bytes, value_format: str) -> Any:
    """Inverse of encode_value().

    Args:
        data: Payload bytes
        value_format: ValueFormat name stored in entry metadata

    Returns:
        Decoded value
    """
    fmt = ValueFormat(value_format)
    if fmt == ValueFormat.BYTES:
        return data
    if fmt == ValueFormat.STR:
        return data.decode("utf-8")
    return json.loads(data.decode("utf-8"))


class Serializer(ABC):
    """Abstract serializer for cache snapshot files."""

    @property
    @abstractmethod
    def format_name(self) -> str:
        """Get format name."""
        pass

    @abstractmethod
    def serialize(self, value: Any) -> bytes:
        """Serialize value to bytes.

        Args:
            value: Value to serialize

        Returns:
            Serialized bytes
        """
        pass

    @abstractmethod
    def deserialize(self, data: bytes) -> Any:
        """Deserialize bytes to value.

        Args:
            data: Serialized bytes

        Returns:
            Deserialized value
        """
        pass


class JSONSerializer(Serializer):
    """JSON serializer.

    Human-readable snapshots. Values must already be JSON-compatible;
    entry bytes are base64-tagged by CacheEntry.to_dict().
    """

    def __init__(self, indent: Optional[int] = 2):
        self.indent = indent

    @property
    def format_name(self) -> str:
        return "json"

    def serialize(self, value: Any) -> bytes:
        return json.dumps(value, indent=self.indent, default=str).encode("utf-8")

    def deserialize(self, data: bytes) -> Any:
        return json.loads(data.decode("utf-8"))


class MsgPackSerializer(Serializer):
    """MessagePack serializer.

    Compact binary snapshots.
    Requires msgpack package.
    """

    @property
    def format_name(self) -> str:
        return "msgpack"

    def serialize(self, value: Any) -> bytes:
        try:
            import msgpack
        except ImportError:
            raise ImportError("msgpack package not installed (pip install offcache[msgpack])")
        return msgpack.packb(value, use_bin_type=True, default=str)

    def deserialize(self, data: bytes) -> Any:
        try:
            import msgpack
        except ImportError:
            raise ImportError("msgpack package not installed (pip install offcache[msgpack])")
        return msgpack.unpackb(data, raw=False)


class SerializerRegistry:
    """Registry of snapshot serializers."""

    def __init__(self):
        self._serializers: Dict[str, Serializer] = {}
        self._default: str = "json"

        self.register(JSONSerializer())
        self.register(MsgPackSerializer())

    def register(self, serializer: Serializer) -> None:
        """Register a serializer.

        Args:
            serializer: Serializer to register
        """
        self._serializers[serializer.format_name] = serializer

    def get(self, format_name: str) -> Serializer:
        """Get serializer by format.

        Raises:
            KeyError: If format not found
        """
        if format_name not in self._serializers:
            raise KeyError(f"Unknown serializer format: {format_name}")
        return self._serializers[format_name]

    def get_default(self) -> Serializer:
        return self._serializers[self._default]

    def list_formats(self) -> List[str]:
        return list(self._serializers.keys())


_registry = SerializerRegistry()


def get_serializer(format_name: Optional[str] = None) -> Serializer:
    """Get serializer by format.

    Args:
        format_name: Format name or None for default (json)

    Returns:
        Serializer instance
    """
    if format_name is None:
        return _registry.get_default()
    return _registry.get(format_name)


__all__ = [
    "CompressionType",
    "ValueFormat",
    "compress",
    "decompress",
    "encode_value",
    "decode_value",
    "Serializer",
    "JSONSerializer",
    "MsgPackSerializer",
    "SerializerRegistry",
    "get_serializer",
]
