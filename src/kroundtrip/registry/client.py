"""Schema registry client returning cached, immutable schema handles."""

from __future__ import annotations

import contextlib
import json
import logging
import threading
from typing import Any

from confluent_kafka.schema_registry import Schema, SchemaRegistryClient
from confluent_kafka.schema_registry.error import SchemaRegistryError

from kroundtrip.errors import NotFoundError, RegistryError, SchemaConflictError
from kroundtrip.models.schema import SchemaHandle, SchemaType

logger = logging.getLogger(__name__)

HTTP_NOT_FOUND = 404
HTTP_CONFLICT = 409
HTTP_UNPROCESSABLE = 422


def _canonical(schema_str: str, schema_type: SchemaType) -> Any:
    if schema_type == SchemaType.STRING:
        return schema_str
    return json.loads(schema_str)


class RegistryClient:
    """Registers and resolves schemas, caching one handle per subject.

    Once a subject has a handle it never changes for the lifetime of the
    client: identical re-registration returns it, a different definition
    raises ``SchemaConflictError``. Safe to share between worker threads.
    """

    def __init__(self, url: str, client: SchemaRegistryClient | None = None):
        self.url = url
        self._exit_stack = contextlib.ExitStack()
        self._client = self._exit_stack.enter_context(
            client if client is not None else SchemaRegistryClient({"url": url})
        )
        self._handles: dict[str, SchemaHandle] = {}
        self._subject_locks: dict[str, threading.Lock] = {}
        self._lock = threading.Lock()

    def _subject_lock(self, subject: str) -> threading.Lock:
        with self._lock:
            if subject not in self._subject_locks:
                self._subject_locks[subject] = threading.Lock()
            return self._subject_locks[subject]

    def register(
        self,
        subject: str,
        schema_str: str,
        schema_type: SchemaType = SchemaType.AVRO,
    ) -> SchemaHandle:
        with self._subject_lock(subject):
            cached = self._handles.get(subject)
            if cached is not None:
                if cached.schema_type == schema_type and _canonical(
                    cached.schema_str, cached.schema_type
                ) == _canonical(schema_str, schema_type):
                    return cached
                raise SchemaConflictError(
                    f"Subject '{subject}' is already bound to schema id {cached.schema_id} "
                    "for this run; refusing to register a different schema"
                )

            if schema_type == SchemaType.STRING:
                handle = SchemaHandle(
                    subject=subject,
                    schema_id=None,
                    schema_type=schema_type,
                    schema_str=schema_str,
                )
            else:
                handle = self._register_remote(subject, schema_str, schema_type)

            self._handles[subject] = handle
            logger.info(
                "Registered %s schema for subject '%s' (id=%s, version=%s)",
                schema_type.value,
                subject,
                handle.schema_id,
                handle.version,
            )
            return handle

    def _register_remote(
        self, subject: str, schema_str: str, schema_type: SchemaType
    ) -> SchemaHandle:
        client = self._open_client()
        schema = Schema(schema_str, schema_type.value)
        try:
            schema_id = client.register_schema(subject, schema)
            registered = client.lookup_schema(subject, schema)
        except SchemaRegistryError as e:
            if e.http_status_code in (HTTP_CONFLICT, HTTP_UNPROCESSABLE):
                raise SchemaConflictError(
                    f"Schema for subject '{subject}' is incompatible: {e.error_message}"
                ) from e
            raise RegistryError(f"Failed to register schema for '{subject}': {e}") from e
        except Exception as e:
            raise RegistryError(f"Schema registry at {self.url} unreachable: {e}") from e

        return SchemaHandle(
            subject=subject,
            schema_id=schema_id,
            schema_type=schema_type,
            schema_str=schema_str,
            version=registered.version,
        )

    def resolve(self, subject: str) -> SchemaHandle:
        with self._subject_lock(subject):
            cached = self._handles.get(subject)
            if cached is not None:
                return cached

            client = self._open_client()
            try:
                registered = client.get_latest_version(subject)
            except SchemaRegistryError as e:
                if e.http_status_code == HTTP_NOT_FOUND:
                    raise NotFoundError(f"Subject '{subject}' is not registered") from e
                raise RegistryError(f"Failed to resolve subject '{subject}': {e}") from e
            except Exception as e:
                raise RegistryError(f"Schema registry at {self.url} unreachable: {e}") from e

            handle = SchemaHandle(
                subject=subject,
                schema_id=registered.schema_id,
                schema_type=SchemaType(registered.schema.schema_type or SchemaType.AVRO.value),
                schema_str=registered.schema.schema_str,
                version=registered.version,
            )
            self._handles[subject] = handle
            return handle

    def _open_client(self) -> SchemaRegistryClient:
        if self._client is None:
            raise RegistryError(f"Schema registry client for {self.url} is closed")
        return self._client

    def close(self) -> None:
        self._client = None
        self._exit_stack.close()
