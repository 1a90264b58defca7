"""Schema definitions per message role and subject naming."""

from __future__ import annotations

import json
from importlib import resources
from pathlib import Path
from typing import Any

import fastavro
from fastavro.schema import SchemaParseException, UnknownType
from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for

from kroundtrip.errors import ConfigError
from kroundtrip.models.schema import (
    SchemaDefinition,
    SchemaRole,
    SchemaType,
    SubjectNameStrategy,
)

DEFAULT_KEY_SCHEMA = "order-key.avsc"
DEFAULT_VALUE_SCHEMA = "order-value.avsc"


def _schema_type_for(path: Path) -> SchemaType:
    if path.suffix == ".avsc":
        return SchemaType.AVRO
    if path.suffix == ".json":
        return SchemaType.JSON
    if path.suffix == ".txt":
        return SchemaType.STRING
    raise ConfigError(
        f"Cannot tell the schema type of {path}: expected .avsc (Avro), "
        ".json (JSON Schema) or .txt (plain string)"
    )


class SchemaCatalog:
    """Holds the key and value schema documents for one run.

    Definitions are parsed eagerly so a bad document fails with
    ``ConfigError`` before any network call is made.
    """

    def __init__(self, definitions: dict[SchemaRole, SchemaDefinition]):
        self._definitions = dict(definitions)
        self._parsed: dict[SchemaRole, Any] = {}
        for role, definition in self._definitions.items():
            self._parsed[role] = self._parse(role, definition)

    @classmethod
    def from_files(
        cls,
        key_path: Path | None,
        value_path: Path,
    ) -> SchemaCatalog:
        definitions: dict[SchemaRole, SchemaDefinition] = {}
        for role, path in ((SchemaRole.KEY, key_path), (SchemaRole.VALUE, value_path)):
            if path is None:
                continue
            path = Path(path)
            try:
                text = path.read_text()
            except OSError as e:
                raise ConfigError(f"Cannot read {role.value} schema '{path}': {e}") from e
            definitions[role] = SchemaDefinition(text, _schema_type_for(path))
        return cls(definitions)

    @classmethod
    def default(cls) -> SchemaCatalog:
        """Catalog for the bundled order key/value Avro schemas."""
        package = resources.files("kroundtrip.schemas")
        return cls(
            {
                SchemaRole.KEY: SchemaDefinition(
                    package.joinpath(DEFAULT_KEY_SCHEMA).read_text(), SchemaType.AVRO
                ),
                SchemaRole.VALUE: SchemaDefinition(
                    package.joinpath(DEFAULT_VALUE_SCHEMA).read_text(), SchemaType.AVRO
                ),
            }
        )

    def roles(self) -> list[SchemaRole]:
        return [role for role in SchemaRole if role in self._definitions]

    def definition(self, role: SchemaRole) -> SchemaDefinition:
        try:
            return self._definitions[role]
        except KeyError:
            raise ConfigError(f"No {role.value} schema defined") from None

    def subject_name(
        self,
        topic: str,
        role: SchemaRole,
        strategy: SubjectNameStrategy = SubjectNameStrategy.TOPIC_NAME,
    ) -> str:
        definition = self.definition(role)
        if strategy == SubjectNameStrategy.TOPIC_NAME:
            return f"{topic}-{role.value}"

        record_name = self._record_name(role, definition)
        if strategy == SubjectNameStrategy.RECORD_NAME:
            return record_name
        return f"{topic}-{record_name}"

    def _record_name(self, role: SchemaRole, definition: SchemaDefinition) -> str:
        doc = self._parsed[role]
        match definition.schema_type:
            case SchemaType.AVRO:
                if not isinstance(doc, dict) or "name" not in doc:
                    raise ConfigError(f"{role.value} schema is not a named Avro type")
                name = doc["name"]
                namespace = doc.get("namespace")
                if "." in name or not namespace:
                    return name
                return f"{namespace}.{name}"
            case SchemaType.JSON:
                if not isinstance(doc, dict) or "title" not in doc:
                    raise ConfigError(f"{role.value} JSON schema has no title")
                return doc["title"]
            case _:
                raise ConfigError(
                    f"{role.value} schema of type {definition.schema_type.value} has no record name"
                )

    @staticmethod
    def _parse(role: SchemaRole, definition: SchemaDefinition) -> Any:
        if definition.schema_type == SchemaType.STRING:
            return definition.schema_str

        try:
            doc = json.loads(definition.schema_str)
        except json.JSONDecodeError as e:
            raise ConfigError(f"{role.value} schema is not valid JSON: {e}") from e

        if definition.schema_type == SchemaType.AVRO:
            try:
                fastavro.parse_schema(doc)
            except (SchemaParseException, UnknownType, TypeError, ValueError, KeyError) as e:
                raise ConfigError(f"{role.value} schema is not a valid Avro schema: {e}") from e
        else:
            if not isinstance(doc, (dict, bool)):
                raise ConfigError(f"{role.value} JSON schema must be an object")
            try:
                validator_for(doc).check_schema(doc)
            except SchemaError as e:
                raise ConfigError(
                    f"{role.value} schema is not a valid JSON schema: {e.message}"
                ) from e
        return doc
