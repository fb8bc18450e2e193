"""Protocol module - Value compression and snapshot serialization."""

from offcache_core.protocol.serializer import (
    CompressionType,
    JSONSerializer,
    MsgPackSerializer,
    Serializer,
    ValueFormat,
    compress,
    decode_value,
    decompress,
    encode_value,
    get_serializer,
)

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
    "get_serializer",
]
