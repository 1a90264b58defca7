"""Run configuration models."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from kroundtrip.errors import ConfigError
from kroundtrip.models.message import KeyStrategy
from kroundtrip.models.schema import SubjectNameStrategy
from kroundtrip.models.topic import TopicConfig

SECURITY_PROTOCOLS = ("PLAINTEXT", "SSL", "SASL_PLAINTEXT", "SASL_SSL")


@dataclass
class ClusterConfig:
    """Connection and security settings shared by every broker client."""

    bootstrap_servers: str = "localhost:9092"
    security_protocol: str = "PLAINTEXT"
    sasl_mechanism: str | None = None
    sasl_username: str | None = None
    sasl_password: str | None = None
    ssl_ca_location: str | None = None

    def __post_init__(self):
        if not self.bootstrap_servers:
            raise ConfigError("bootstrap_servers must not be empty")
        if self.security_protocol not in SECURITY_PROTOCOLS:
            raise ConfigError(f"Unsupported security_protocol: {self.security_protocol}")
        if self.security_protocol.startswith("SASL") and not self.sasl_mechanism:
            raise ConfigError("sasl_mechanism is required for SASL security protocols")

    def to_client_config(self) -> dict[str, str]:
        """librdkafka settings common to producers, consumers and admin clients."""
        config = {
            "bootstrap.servers": self.bootstrap_servers,
            "security.protocol": self.security_protocol,
        }
        if self.sasl_mechanism:
            config["sasl.mechanism"] = self.sasl_mechanism
        if self.sasl_username:
            config["sasl.username"] = self.sasl_username
        if self.sasl_password:
            config["sasl.password"] = self.sasl_password
        if self.ssl_ca_location:
            config["ssl.ca.location"] = self.ssl_ca_location
        return config


@dataclass
class ProducerConfig:
    acks: str = "1"
    compression_type: str = "snappy"
    linger_ms: int = 5
    batch_size: int = 1
    retries: int = 3
    flush_timeout_seconds: float = 30.0

    def __post_init__(self):
        if self.acks not in ("0", "1", "all", "-1"):
            raise ConfigError(f"acks must be one of 0, 1, all, -1, got '{self.acks}'")
        if self.batch_size < 1:
            raise ConfigError("batch_size must be at least 1")
        if self.retries < 0:
            raise ConfigError("retries must not be negative")


@dataclass
class ConsumerConfig:
    group_prefix: str = "kroundtrip-order-group"
    auto_offset_reset: str = "earliest"
    timeout_ms: int = 60000

    def __post_init__(self):
        if self.auto_offset_reset not in ("earliest", "latest"):
            raise ConfigError("auto_offset_reset must be 'earliest' or 'latest'")
        if self.timeout_ms < 0:
            raise ConfigError("timeout_ms must not be negative")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000


@dataclass
class RunConfig:
    """Everything one harness run needs."""

    topic: TopicConfig = field(default_factory=lambda: TopicConfig(name="test-topic-avro"))
    cluster: ClusterConfig = field(default_factory=ClusterConfig)
    producer: ProducerConfig = field(default_factory=ProducerConfig)
    consumer: ConsumerConfig = field(default_factory=ConsumerConfig)
    registry_url: str = "http://localhost:8081"
    messages_per_worker: int = 1
    workers: int = 1
    key_strategy: KeyStrategy = KeyStrategy.PREFIXED
    subject_strategy: SubjectNameStrategy = SubjectNameStrategy.TOPIC_NAME
    key_schema_path: Path | None = None
    value_schema_path: Path | None = None
    delete_topic_on_teardown: bool = True

    def __post_init__(self):
        if self.messages_per_worker < 1:
            raise ConfigError("messages_per_worker must be at least 1")
        if self.workers < 1:
            raise ConfigError("workers must be at least 1")
        if not self.registry_url:
            raise ConfigError("registry_url must not be empty")
