"""Explicitly owned client handles for a run and for each worker."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from kroundtrip.errors import NotFoundError
from kroundtrip.kafka.admin import TopicAdmin
from kroundtrip.kafka.consumer import Consumer
from kroundtrip.kafka.factory import ClientFactory
from kroundtrip.kafka.producer import Producer
from kroundtrip.models.config import RunConfig
from kroundtrip.models.schema import SchemaHandle, SchemaRole
from kroundtrip.registry.catalog import SchemaCatalog
from kroundtrip.registry.client import RegistryClient
from kroundtrip.serialization.codec import Codec

logger = logging.getLogger(__name__)


def _close_all(handles: list[tuple[str, object]]) -> list[str]:
    """Close every handle, logging failures instead of raising them."""
    errors = []
    for name, handle in handles:
        try:
            handle.close()
        except Exception as e:
            logger.warning("Failed to close %s: %s", name, e)
            errors.append(f"close {name}: {e}")
    return errors


@dataclass
class HarnessContext:
    """Handles shared read-only by every worker of one run."""

    config: RunConfig
    catalog: SchemaCatalog
    admin: TopicAdmin
    registry: RegistryClient
    codec: Codec = field(default_factory=Codec)
    handles: dict[SchemaRole, SchemaHandle] = field(default_factory=dict)

    @classmethod
    def open(
        cls, config: RunConfig, factory: ClientFactory, catalog: SchemaCatalog
    ) -> HarnessContext:
        admin = factory.create_admin()
        try:
            registry = factory.create_registry()
        except Exception:
            admin.close()
            raise
        return cls(
            config=config,
            catalog=catalog,
            admin=admin,
            registry=registry,
            codec=Codec(config.topic.name),
        )

    def handle(self, role: SchemaRole) -> SchemaHandle:
        try:
            return self.handles[role]
        except KeyError:
            raise NotFoundError(f"No {role.value} schema registered for this run") from None

    def close(self) -> list[str]:
        return _close_all([("registry client", self.registry), ("topic admin", self.admin)])


@dataclass
class WorkerContext:
    """Producer and consumer exclusively owned by one worker."""

    index: int
    group_id: str
    producer: Producer
    consumer: Consumer

    @classmethod
    def open(cls, factory: ClientFactory, index: int, group_id: str) -> WorkerContext:
        producer = factory.create_producer()
        try:
            consumer = factory.create_consumer(group_id)
        except Exception:
            producer.close()
            raise
        return cls(index=index, group_id=group_id, producer=producer, consumer=consumer)

    def close(self) -> list[str]:
        return _close_all(
            [
                (f"producer of worker {self.index}", self.producer),
                (f"consumer of worker {self.index}", self.consumer),
            ]
        )
