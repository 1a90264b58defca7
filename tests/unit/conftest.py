"""Fixtures for unit tests running against in-memory clients."""

import random

import pytest

from kroundtrip.generators.order import OrderGenerator
from kroundtrip.harness.roundtrip import RoundTripHarness
from kroundtrip.models.config import ConsumerConfig, RunConfig
from kroundtrip.models.schema import SchemaRole
from kroundtrip.registry.catalog import SchemaCatalog
from kroundtrip.registry.client import RegistryClient
from tests.unit.fakes import FakeBroker, FakeClientFactory, FakeSchemaRegistry


@pytest.fixture
def run_config():
    """Single worker, single message, short consume timeout."""
    return RunConfig(consumer=ConsumerConfig(timeout_ms=2000))


@pytest.fixture
def broker():
    return FakeBroker()


@pytest.fixture
def fake_registry():
    return FakeSchemaRegistry()


@pytest.fixture
def registry_client(fake_registry):
    return RegistryClient("http://registry:8081", client=fake_registry)


@pytest.fixture
def catalog():
    """Bundled order key/value Avro schemas."""
    return SchemaCatalog.default()


@pytest.fixture
def avro_handles(catalog, registry_client):
    """Key and value handles registered for 'orders'."""
    return {
        role: registry_client.register(
            f"orders-{role.value}",
            catalog.definition(role).schema_str,
            catalog.definition(role).schema_type,
        )
        for role in (SchemaRole.KEY, SchemaRole.VALUE)
    }


@pytest.fixture
def make_harness(broker, fake_registry):
    """Build a harness and the fake factory it runs against."""

    def _make(config: RunConfig, catalog: SchemaCatalog | None = None):
        factory = FakeClientFactory(config, broker=broker, registry=fake_registry)
        harness = RoundTripHarness(
            config,
            factory=factory,
            catalog=catalog,
            order_generator=OrderGenerator(random.Random(7)),
            run_id="test",
        )
        return harness, factory

    return _make
