"""Dispatches typed payloads to the serializer for their schema handle."""

from __future__ import annotations

import threading

from kroundtrip.errors import DecodeError, EncodeError
from kroundtrip.models.payload import AvroRecord, JsonBlob, Payload, StringPayload
from kroundtrip.models.schema import SchemaHandle, SchemaRole, SchemaType
from kroundtrip.serialization.avro import AvroSerializer
from kroundtrip.serialization.base import Serializer, serialization_context
from kroundtrip.serialization.json import JsonSerializer
from kroundtrip.serialization.string import PlainStringSerializer


class Codec:
    """Encodes payloads with registry handles and decodes them back.

    ``decode(encode(p, h), h) == p`` for every payload valid under ``h``.
    Serializers are built once per handle and shared between workers.
    ``topic`` names the serialization context; it defaults to the subject.
    """

    def __init__(self, topic: str | None = None) -> None:
        self.topic = topic
        self._serializers: dict[SchemaHandle, Serializer] = {}
        self._lock = threading.Lock()

    def _serializer_for(self, handle: SchemaHandle) -> Serializer:
        with self._lock:
            serializer = self._serializers.get(handle)
            if serializer is None:
                match handle.schema_type:
                    case SchemaType.AVRO:
                        serializer = AvroSerializer(handle)
                    case SchemaType.JSON:
                        serializer = JsonSerializer(handle)
                    case SchemaType.STRING:
                        serializer = PlainStringSerializer(handle)
                self._serializers[handle] = serializer
            return serializer

    def encode(
        self, payload: Payload, handle: SchemaHandle, role: SchemaRole = SchemaRole.VALUE
    ) -> bytes:
        match payload:
            case AvroRecord(data=data):
                schema_type = SchemaType.AVRO
            case JsonBlob(data=data):
                schema_type = SchemaType.JSON
            case StringPayload(text=data):
                schema_type = SchemaType.STRING
            case _:
                raise EncodeError(f"Unsupported payload type: {type(payload).__name__}")

        if schema_type != handle.schema_type:
            raise EncodeError(
                f"{schema_type.value} payload cannot be encoded with "
                f"{handle.schema_type.value} schema '{handle.subject}'"
            )
        ctx = serialization_context(self.topic or handle.subject, role)
        return self._serializer_for(handle).serialize(data, ctx)

    def decode(
        self, data: bytes | None, handle: SchemaHandle, role: SchemaRole = SchemaRole.VALUE
    ) -> Payload:
        if data is None:
            raise DecodeError(f"Nothing to decode for '{handle.subject}'")
        ctx = serialization_context(self.topic or handle.subject, role)
        decoded = self._serializer_for(handle).deserialize(data, ctx)
        match handle.schema_type:
            case SchemaType.AVRO:
                return AvroRecord(decoded)
            case SchemaType.JSON:
                return JsonBlob(decoded)
            case _:
                return StringPayload(decoded)
