from __future__ import annotations

import json
from typing import Any

from confluent_kafka.schema_registry.json_schema import JSONDeserializer, JSONSerializer
from confluent_kafka.serialization import SerializationContext, SerializationError
from jsonschema.exceptions import best_match
from jsonschema.validators import validator_for

from kroundtrip.errors import DecodeError, EncodeError
from kroundtrip.models.schema import SchemaHandle
from kroundtrip.serialization.base import HandleSchemaLookup, Serializer


class JsonSerializer(Serializer):
    """Registry-framed JSON through the confluent JSON Schema serdes."""

    def __init__(self, handle: SchemaHandle):
        super().__init__(handle)
        schema = json.loads(handle.schema_str)
        self._validator = validator_for(schema)(schema)
        lookup = HandleSchemaLookup(handle)
        self._serializer = JSONSerializer(
            handle.schema_str,
            lookup,
            conf={
                "auto.register.schemas": False,
                "subject.name.strategy": self.subject_name,
            },
        )
        self._deserializer = JSONDeserializer(handle.schema_str, schema_registry_client=lookup)

    def _first_error(self, data: Any) -> str | None:
        error = best_match(self._validator.iter_errors(data))
        if error is None:
            return None
        path = "/".join(str(part) for part in error.absolute_path) or "<root>"
        return f"{path}: {error.message}"

    def serialize(self, data: Any, ctx: SerializationContext) -> bytes:
        self.require_schema_id(EncodeError)
        error = self._first_error(data)
        if error is not None:
            raise EncodeError(f"Payload does not match schema '{self.handle.subject}' at {error}")
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
            raise DecodeError(f"Corrupt JSON message for '{self.handle.subject}': {e}") from e
