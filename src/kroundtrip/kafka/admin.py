"""Topic administration."""

from __future__ import annotations

import logging
import time

from confluent_kafka import KafkaError, KafkaException
from confluent_kafka.admin import AdminClient, NewTopic

from kroundtrip.errors import AdminError
from kroundtrip.kafka.base import librdkafka_logger
from kroundtrip.models.config import ClusterConfig
from kroundtrip.models.topic import TopicConfig

logger = logging.getLogger(__name__)


def _kafka_error(exc: KafkaException) -> KafkaError | None:
    if exc.args and isinstance(exc.args[0], KafkaError):
        return exc.args[0]
    return None


class TopicAdmin:
    """Idempotent topic create and delete.

    Retriable cluster errors are retried ``retries`` times; "already exists"
    on create and "unknown topic" on delete count as success.
    """

    def __init__(
        self,
        cluster_config: ClusterConfig,
        client: AdminClient | None = None,
        retries: int = 3,
        retry_backoff_seconds: float = 1.0,
        operation_timeout_seconds: float = 30.0,
    ):
        self.cluster_config = cluster_config
        self.retries = retries
        self.retry_backoff_seconds = retry_backoff_seconds
        self.operation_timeout_seconds = operation_timeout_seconds
        if client is None:
            config = cluster_config.to_client_config()
            config["logger"] = librdkafka_logger
            client = AdminClient(config)
        self._client = client

    def _open_client(self) -> AdminClient:
        if self._client is None:
            raise AdminError("Topic admin is closed")
        return self._client

    def _wait(self, attempt: int) -> None:
        if self.retry_backoff_seconds > 0:
            time.sleep(self.retry_backoff_seconds * attempt)

    def create_if_not_exists(self, topic: TopicConfig) -> bool:
        """Create ``topic``; returns False if it already existed."""
        new_topic = NewTopic(
            topic.name,
            num_partitions=topic.partitions,
            replication_factor=topic.replication_factor,
            config=topic.config_entries(),
        )
        attempt = 0
        while True:
            attempt += 1
            try:
                futures = self._open_client().create_topics(
                    [new_topic], operation_timeout=self.operation_timeout_seconds
                )
                futures[topic.name].result()
            except KafkaException as e:
                error = _kafka_error(e)
                if error is not None and error.code() == KafkaError.TOPIC_ALREADY_EXISTS:
                    logger.debug("Topic '%s' already exists", topic.name)
                    return False
                if error is not None and error.retriable() and attempt <= self.retries:
                    logger.warning(
                        "Retrying creation of topic '%s' (attempt %d/%d): %s",
                        topic.name,
                        attempt,
                        self.retries,
                        error.str(),
                    )
                    self._wait(attempt)
                    continue
                raise AdminError(f"Failed to create topic '{topic.name}': {e}") from e

            logger.info(
                "Created topic '%s' (%d partitions, replication factor %d, %s)",
                topic.name,
                topic.partitions,
                topic.replication_factor,
                topic.config_entries(),
            )
            return True

    def delete_all(self, name: str) -> bool:
        """Delete topic ``name`` and its data; returns False if it was absent."""
        attempt = 0
        while True:
            attempt += 1
            try:
                futures = self._open_client().delete_topics(
                    [name], operation_timeout=self.operation_timeout_seconds
                )
                futures[name].result()
            except KafkaException as e:
                error = _kafka_error(e)
                if error is not None and error.code() == KafkaError.UNKNOWN_TOPIC_OR_PART:
                    logger.debug("Topic '%s' already absent", name)
                    return False
                if error is not None and error.retriable() and attempt <= self.retries:
                    logger.warning(
                        "Retrying deletion of topic '%s' (attempt %d/%d): %s",
                        name,
                        attempt,
                        self.retries,
                        error.str(),
                    )
                    self._wait(attempt)
                    continue
                raise AdminError(f"Failed to delete topic '{name}': {e}") from e

            logger.info("Deleted topic '%s'", name)
            return True

    def topic_exists(self, name: str, timeout: float = 10.0) -> bool:
        client = self._open_client()
        try:
            metadata = client.list_topics(topic=name, timeout=timeout)
        except KafkaException as e:
            raise AdminError(f"Failed to fetch metadata for '{name}': {e}") from e
        topic = metadata.topics.get(name)
        return topic is not None and topic.error is None

    def close(self) -> None:
        self._client = None
