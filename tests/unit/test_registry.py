from concurrent.futures import ThreadPoolExecutor

import pytest
from confluent_kafka.schema_registry.error import SchemaRegistryError

from kroundtrip.errors import NotFoundError, RegistryError, SchemaConflictError
from kroundtrip.models.schema import SchemaType
from kroundtrip.registry.client import RegistryClient
from tests.unit.fakes import FakeSchemaRegistry, UnreachableSchemaRegistry

KEY_SCHEMA = '{"type": "record", "name": "OrderKey", "fields": [{"name": "key", "type": "string"}]}'
OTHER_SCHEMA = '{"type": "record", "name": "OrderKey", "fields": [{"name": "id", "type": "int"}]}'


def test_register_returns_handle(registry_client, fake_registry):
    handle = registry_client.register("orders-key", KEY_SCHEMA)

    assert handle.subject == "orders-key"
    assert handle.schema_id == 1
    assert handle.schema_type == SchemaType.AVRO
    assert handle.version == 1
    assert fake_registry.register_calls == 1


def test_identical_reregistration_returns_equal_handle(registry_client, fake_registry):
    first = registry_client.register("orders-key", KEY_SCHEMA)
    # Same document, different whitespace.
    second = registry_client.register("orders-key", KEY_SCHEMA.replace(", ", ","))

    assert second == first
    assert fake_registry.register_calls == 1


def test_identical_registration_from_another_client_shares_id(fake_registry):
    first = RegistryClient("http://registry:8081", client=fake_registry).register(
        "orders-key", KEY_SCHEMA
    )
    second = RegistryClient("http://registry:8081", client=fake_registry).register(
        "orders-key", KEY_SCHEMA
    )

    assert second.schema_id == first.schema_id
    assert second.version == first.version


def test_different_schema_for_bound_subject_conflicts(registry_client):
    registry_client.register("orders-key", KEY_SCHEMA)

    with pytest.raises(SchemaConflictError):
        registry_client.register("orders-key", OTHER_SCHEMA)


def test_incompatible_schema_rejected_by_registry(fake_registry):
    RegistryClient("http://registry:8081", client=fake_registry).register("orders-key", KEY_SCHEMA)

    other = RegistryClient("http://registry:8081", client=fake_registry)
    with pytest.raises(SchemaConflictError, match="incompatible"):
        other.register("orders-key", OTHER_SCHEMA)


def test_string_schema_is_local(registry_client, fake_registry):
    handle = registry_client.register("orders-value", "", SchemaType.STRING)

    assert handle.schema_id is None
    assert handle.schema_type == SchemaType.STRING
    assert fake_registry.register_calls == 0


def test_concurrent_registration_calls_registry_once(registry_client, fake_registry):
    with ThreadPoolExecutor(max_workers=8) as pool:
        handles = list(
            pool.map(lambda _: registry_client.register("orders-key", KEY_SCHEMA), range(32))
        )

    assert len(set(handles)) == 1
    assert fake_registry.register_calls == 1


def test_resolve_unknown_subject(registry_client):
    with pytest.raises(NotFoundError):
        registry_client.resolve("missing-value")


def test_resolve_latest_version(fake_registry):
    registered = RegistryClient("http://registry:8081", client=fake_registry).register(
        "orders-key", KEY_SCHEMA
    )

    resolved = RegistryClient("http://registry:8081", client=fake_registry).resolve("orders-key")

    assert resolved == registered


def test_unreachable_registry():
    client = RegistryClient("http://registry:8081", client=UnreachableSchemaRegistry())

    with pytest.raises(RegistryError, match="unreachable"):
        client.register("orders-key", KEY_SCHEMA)


def test_server_error_is_registry_error():
    class FailingRegistry(FakeSchemaRegistry):
        def register_schema(self, subject_name, schema, normalize_schemas=False):
            raise SchemaRegistryError(500, 50001, "Error in the backend data store")

    client = RegistryClient("http://registry:8081", client=FailingRegistry())

    with pytest.raises(RegistryError) as exc_info:
        client.register("orders-key", KEY_SCHEMA)
    assert not isinstance(exc_info.value, SchemaConflictError)
    assert isinstance(exc_info.value.__cause__, SchemaRegistryError)


def test_close_releases_client(registry_client, fake_registry):
    registry_client.close()

    assert fake_registry.closed


def test_closed_client_rejects_calls(registry_client):
    registry_client.close()
    registry_client.close()

    with pytest.raises(RegistryError, match="closed"):
        registry_client.register("orders-key", KEY_SCHEMA)
    with pytest.raises(RegistryError, match="closed"):
        registry_client.resolve("orders-key")
