from __future__ import annotations

import json
from typing import Any

import fastavro
from confluent_kafka.schema_registry.avro import AvroDeserializer
from confluent_kafka.schema_registry.avro import AvroSerializer as ConfluentAvroSerializer
from confluent_kafka.serialization import SerializationContext, SerializationError
from fastavro.validation import ValidationError, validate

from kroundtrip.errors import DecodeError, EncodeError
from kroundtrip.models.schema import SchemaHandle
from kroundtrip.serialization.base import HandleSchemaLookup, Serializer


class AvroSerializer(Serializer):
    """Registry-framed Avro through the confluent Avro serdes."""

    def __init__(self, handle: SchemaHandle):
        super().__init__(handle)
        self._schema = fastavro.parse_schema(json.loads(handle.schema_str))
        lookup = HandleSchemaLookup(handle)
        self._serializer = ConfluentAvroSerializer(
            lookup,
            handle.schema_str,
            conf={
                "auto.register.schemas": False,
                "subject.name.strategy": self.subject_name,
            },
        )
        self._deserializer = AvroDeserializer(lookup, handle.schema_str)

    def serialize(self, data: Any, ctx: SerializationContext) -> bytes:
        self.require_schema_id(EncodeError)
        try:
            validate(data, self._schema, raise_errors=True)
        except ValidationError as e:
            fields = sorted({err.field for err in e.errors if err.field}) or ["<root>"]
            raise EncodeError(
                f"Payload does not match schema '{self.handle.subject}' "
                f"at field(s): {', '.join(fields)}"
            ) from e

        try:
            return self._serializer(data, ctx)
        except (SerializationError, ValueError, TypeError) as e:
            raise EncodeError(f"Cannot encode for '{self.handle.subject}': {e}") from e

    def deserialize(self, data: bytes, ctx: SerializationContext) -> Any:
        self.require_schema_id(DecodeError)
        try:
            return self._deserializer(data, ctx)
        except DecodeError:
            raise
        except Exception as e:
            raise DecodeError(f"Corrupt Avro message for '{self.handle.subject}': {e}") from e
