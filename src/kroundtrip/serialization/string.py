from __future__ import annotations

from confluent_kafka.serialization import (
    SerializationContext,
    SerializationError,
    StringDeserializer,
    StringSerializer,
)

from kroundtrip.errors import DecodeError, EncodeError
from kroundtrip.models.schema import SchemaHandle
from kroundtrip.serialization.base import Serializer


class PlainStringSerializer(Serializer):
    """UTF-8 text with no header and no structural validation."""

    def __init__(self, handle: SchemaHandle, codec: str = "utf_8"):
        super().__init__(handle)
        self._serializer = StringSerializer(codec)
        self._deserializer = StringDeserializer(codec)

    def serialize(self, data: str, ctx: SerializationContext | None = None) -> bytes:
        if not isinstance(data, str):
            raise EncodeError(f"STRING payload must be str, got {type(data).__name__}")
        try:
            return self._serializer(data, ctx)
        except SerializationError as e:
            raise EncodeError(str(e)) from e

    def deserialize(self, data: bytes, ctx: SerializationContext | None = None) -> str:
        if data is None:
            raise DecodeError("STRING payload is missing")
        try:
            return self._deserializer(data, ctx)
        except SerializationError as e:
            raise DecodeError(str(e)) from e
