"""Fixtures for integration tests using testcontainers."""

import time
import uuid

import pytest
from testcontainers.core.container import DockerContainer
from testcontainers.core.network import Network
from testcontainers.core.waiting_utils import wait_for_logs
from testcontainers.kafka import KafkaContainer

from kroundtrip.models.config import ClusterConfig, ConsumerConfig, RunConfig
from kroundtrip.models.topic import TopicConfig


@pytest.fixture(scope="module")
def docker_network():
    """Create a shared Docker network for containers."""
    with Network() as network:
        yield network


@pytest.fixture(scope="module")
def kafka_container(docker_network):
    """Start Kafka container for integration tests."""
    with (
        KafkaContainer("confluentinc/cp-kafka:7.5.0")
        .with_network(docker_network)
        .with_network_aliases("kafka")
    ) as kafka:
        yield kafka


@pytest.fixture(scope="module")
def schema_registry_container(kafka_container, docker_network):
    """Start Schema Registry connected to Kafka over the internal network alias."""
    with (
        DockerContainer("confluentinc/cp-schema-registry:7.5.0")
        .with_network(docker_network)
        .with_env("SCHEMA_REGISTRY_HOST_NAME", "schema-registry")
        .with_env("SCHEMA_REGISTRY_LISTENERS", "http://0.0.0.0:8081")
        .with_env(
            "SCHEMA_REGISTRY_KAFKASTORE_BOOTSTRAP_SERVERS",
            "PLAINTEXT://kafka:9092",
        )
        .with_exposed_ports(8081)
    ) as registry:
        wait_for_logs(registry, "Server started", timeout=60)
        time.sleep(2)  # Registry answers 500s until its store topic is ready
        yield registry


@pytest.fixture(scope="module")
def bootstrap_servers(kafka_container):
    return kafka_container.get_bootstrap_server()


@pytest.fixture(scope="module")
def schema_registry_url(schema_registry_container):
    """Get Schema Registry URL for tests."""
    host = schema_registry_container.get_container_host_ip()
    port = schema_registry_container.get_exposed_port(8081)
    return f"http://{host}:{port}"


@pytest.fixture
def run_config(bootstrap_servers, schema_registry_url):
    """Config for a fresh topic per test; a single-broker cluster needs RF 1."""
    return RunConfig(
        topic=TopicConfig(name=f"roundtrip-{uuid.uuid4().hex[:8]}", partitions=3),
        cluster=ClusterConfig(bootstrap_servers=bootstrap_servers),
        consumer=ConsumerConfig(timeout_ms=60000),
        registry_url=schema_registry_url,
    )
