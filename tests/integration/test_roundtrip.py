"""Round trips against real Kafka and Schema Registry containers."""

import dataclasses

import pytest

from kroundtrip.harness.checks import EVEN_INDEX_CHECK, KEY_CHECKS
from kroundtrip.harness.roundtrip import RoundTripHarness
from kroundtrip.harness.state import HarnessState
from kroundtrip.kafka.admin import TopicAdmin
from kroundtrip.kafka.consumer import Consumer
from kroundtrip.models.message import KeyStrategy
from kroundtrip.models.schema import SchemaRole
from kroundtrip.registry.catalog import SchemaCatalog
from kroundtrip.registry.client import RegistryClient

pytestmark = pytest.mark.integration


@pytest.mark.asyncio
async def test_single_order_round_trip(run_config):
    result = await RoundTripHarness(run_config).run()

    assert result.fatal_error is None
    assert result.errors == []
    assert result.exit_code == 0
    assert result.state == HarnessState.TORN_DOWN
    assert result.checks["1 message returned"].ok
    assert result.produce_duration.count == 1


@pytest.mark.asyncio
async def test_alternating_keys_round_trip(run_config):
    config = dataclasses.replace(
        run_config, messages_per_worker=5, key_strategy=KeyStrategy.ALTERNATING
    )

    result = await RoundTripHarness(config).run()

    assert result.exit_code == 0
    assert result.checks[KEY_CHECKS[KeyStrategy.ALTERNATING]].ok
    assert result.checks[EVEN_INDEX_CHECK].ok


@pytest.mark.asyncio
async def test_concurrent_workers(run_config):
    config = dataclasses.replace(run_config, workers=3, messages_per_worker=4)

    result = await RoundTripHarness(config).run()

    assert result.exit_code == 0
    assert result.messages_produced == 12
    assert result.messages_consumed == 12
    assert result.checks["4 message returned"].passes == 3


def test_topic_create_and_delete_are_idempotent(run_config):
    admin = TopicAdmin(run_config.cluster)
    try:
        assert admin.create_if_not_exists(run_config.topic) is True
        assert admin.create_if_not_exists(run_config.topic) is False
        assert admin.topic_exists(run_config.topic.name)
        assert admin.delete_all(run_config.topic.name) is True
    finally:
        admin.close()


def test_empty_topic_consume_times_out(run_config):
    admin = TopicAdmin(run_config.cluster)
    admin.create_if_not_exists(run_config.topic)
    consumer = Consumer(run_config.topic.name, "empty-topic-group", run_config.cluster)
    try:
        assert consumer.consume(limit=10, timeout=0.1) == []
    finally:
        consumer.close()
        admin.delete_all(run_config.topic.name)
        admin.close()


def test_reregistration_returns_same_handle(run_config):
    catalog = SchemaCatalog.default()
    definition = catalog.definition(SchemaRole.VALUE)
    subject = catalog.subject_name(run_config.topic.name, SchemaRole.VALUE)

    first_client = RegistryClient(run_config.registry_url)
    second_client = RegistryClient(run_config.registry_url)
    try:
        first = first_client.register(subject, definition.schema_str, definition.schema_type)
        again = first_client.register(subject, definition.schema_str, definition.schema_type)
        other = second_client.register(subject, definition.schema_str, definition.schema_type)

        assert again == first
        assert other == first
        assert second_client.resolve(subject).schema_id == first.schema_id
    finally:
        first_client.close()
        second_client.close()
