"""Bounded, timeout-limited group consumer."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from confluent_kafka import Consumer as KafkaConsumer
from confluent_kafka import KafkaError, KafkaException

from kroundtrip.errors import ConsumeError
from kroundtrip.kafka.base import ClientStats, ManagedClient, librdkafka_logger
from kroundtrip.models.config import ClusterConfig, ConsumerConfig
from kroundtrip.models.message import ConsumeResult, Message

logger = logging.getLogger(__name__)

# Errors that mean the consumer can no longer reach the cluster.
CONNECTIVITY_ERRORS = frozenset(
    {
        KafkaError._ALL_BROKERS_DOWN,
        KafkaError._TRANSPORT,
        KafkaError._AUTHENTICATION,
        KafkaError._SSL,
    }
)


def _decode_header(value: bytes | str | None) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return value.decode("utf-8", errors="replace")


def _decode_headers(raw: list[tuple[str, bytes | str | None]] | None) -> dict[str, str]:
    if not raw:
        return {}
    return {name: _decode_header(value) for name, value in raw}


@dataclass
class ConsumerStats(ClientStats):
    messages_consumed: int = 0
    bytes_consumed: int = 0


class Consumer(ManagedClient[ConsumerStats]):
    """Pulls up to ``limit`` messages within a timeout.

    A short or empty result is not an error; callers check its length.
    """

    def __init__(
        self,
        topic: str,
        group_id: str,
        cluster_config: ClusterConfig,
        config: ConsumerConfig | None = None,
        client: KafkaConsumer | None = None,
    ):
        super().__init__()
        self.topic = topic
        self.group_id = group_id
        self.config = config or ConsumerConfig()
        self._stats = ConsumerStats()
        if client is None:
            client_config = cluster_config.to_client_config()
            client_config.update(
                {
                    "group.id": group_id,
                    "auto.offset.reset": self.config.auto_offset_reset,
                    "enable.auto.commit": True,
                    "logger": librdkafka_logger,
                }
            )
            client = KafkaConsumer(client_config)
        self._client = client
        self._client.subscribe([topic])

    def consume(self, limit: int, timeout: float) -> ConsumeResult:
        """Block until ``limit`` messages arrive or ``timeout`` seconds pass."""
        if self.closed:
            raise ConsumeError(f"Consumer for group '{self.group_id}' is closed")

        messages: ConsumeResult = []
        deadline = time.monotonic() + timeout
        while len(messages) < limit:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            try:
                records = self._client.consume(
                    num_messages=limit - len(messages), timeout=remaining
                )
            except KafkaException as e:
                raise ConsumeError(f"Consumer for '{self.topic}' failed: {e}") from e

            for record in records:
                error = record.error()
                if error is None:
                    messages.append(
                        Message(
                            key=record.key(),
                            value=record.value(),
                            headers=_decode_headers(record.headers()),
                            topic=record.topic(),
                            partition=record.partition(),
                            offset=record.offset(),
                        )
                    )
                elif error.code() == KafkaError._PARTITION_EOF:
                    continue
                elif error.fatal() or error.code() in CONNECTIVITY_ERRORS:
                    raise ConsumeError(
                        f"Consumer for '{self.topic}' lost connectivity: {error.str()}"
                    )
                else:
                    logger.warning(
                        "Skipping consumer error on '%s' (group %s): %s",
                        self.topic,
                        self.group_id,
                        error.str(),
                    )

        with self._stats._lock:
            self._stats.messages_consumed += len(messages)
            self._stats.bytes_consumed += sum(len(m.value or b"") for m in messages)

        logger.debug(
            "Consumed %d/%d message(s) from '%s' (group %s)",
            len(messages),
            limit,
            self.topic,
            self.group_id,
        )
        return messages

    def _release(self) -> None:
        self._client.close()

    def get_stats(self) -> ConsumerStats:
        with self._stats._lock:
            return ConsumerStats(
                messages_consumed=self._stats.messages_consumed,
                bytes_consumed=self._stats.bytes_consumed,
            )
