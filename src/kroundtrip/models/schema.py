"""Schema roles, types, naming strategies and registry handles."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SchemaRole(str, Enum):
    KEY = "key"
    VALUE = "value"


class SchemaType(str, Enum):
    AVRO = "AVRO"
    JSON = "JSON"
    STRING = "STRING"


class SubjectNameStrategy(str, Enum):
    TOPIC_NAME = "topic_name"
    RECORD_NAME = "record_name"
    TOPIC_RECORD_NAME = "topic_record_name"


@dataclass(frozen=True)
class SchemaDefinition:
    """Raw schema document for one message role."""

    schema_str: str
    schema_type: SchemaType = SchemaType.AVRO


@dataclass(frozen=True)
class SchemaHandle:
    """Registry identity binding encoded bytes to one schema version.

    ``schema_id`` is ``None`` for STRING schemas, which are never stored
    in the registry.
    """

    subject: str
    schema_id: int | None
    schema_type: SchemaType
    schema_str: str
    version: int | None = None
