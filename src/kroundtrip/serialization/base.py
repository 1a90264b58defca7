"""Serializer interface and the registry view handed to confluent serdes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from confluent_kafka.schema_registry import Schema
from confluent_kafka.serialization import MessageField, SerializationContext

from kroundtrip.errors import DecodeError, EncodeError
from kroundtrip.models.schema import SchemaHandle, SchemaRole


def serialization_context(topic: str, role: SchemaRole) -> SerializationContext:
    field = MessageField.KEY if role == SchemaRole.KEY else MessageField.VALUE
    return SerializationContext(topic, field)


@dataclass(frozen=True)
class HandleRegistration:
    """Registered-schema record for a handle resolved during setup."""

    schema_id: int
    schema: Schema
    subject: str
    version: int | None
    guid: str | None = None


class HandleSchemaLookup:
    """Answers the confluent serdes' registry lookups from one handle.

    Encode and decode never reach the registry; bytes whose header names
    any other schema id fail with ``DecodeError``.
    """

    def __init__(self, handle: SchemaHandle):
        self.handle = handle
        self.schema = Schema(handle.schema_str, handle.schema_type.value)

    def lookup_schema(self, subject_name, schema, normalize_schemas=False, deleted=False):
        return HandleRegistration(
            schema_id=self.handle.schema_id,
            schema=self.schema,
            subject=self.handle.subject,
            version=self.handle.version,
        )

    def get_schema(self, schema_id, subject_name=None, fmt=None):
        if schema_id != self.handle.schema_id:
            raise DecodeError(
                f"Message was written with schema id {schema_id}, "
                f"expected {self.handle.schema_id}"
            )
        return self.schema


class Serializer(ABC):
    """Encodes and decodes plain Python structures for one schema handle."""

    def __init__(self, handle: SchemaHandle):
        self.handle = handle

    def subject_name(self, ctx: SerializationContext | None, record_name: str | None) -> str:
        return self.handle.subject

    def require_schema_id(self, error: type[EncodeError] | type[DecodeError]) -> None:
        if self.handle.schema_id is None:
            raise error(
                f"{self.handle.schema_type.value} handle for '{self.handle.subject}' "
                "has no registry schema id"
            )

    @abstractmethod
    def serialize(self, data: Any, ctx: SerializationContext) -> bytes:
        pass

    @abstractmethod
    def deserialize(self, data: bytes, ctx: SerializationContext) -> Any:
        pass
