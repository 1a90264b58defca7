"""Batch producer that returns only after the broker acknowledges."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from confluent_kafka import KafkaError, KafkaException, Producer as KafkaProducer

from kroundtrip.errors import SendError
from kroundtrip.kafka.base import ClientStats, ManagedClient, librdkafka_logger
from kroundtrip.models.config import ClusterConfig, ProducerConfig
from kroundtrip.models.message import Message, ProduceBatch

logger = logging.getLogger(__name__)

QUEUE_FULL_POLL_SECONDS = 0.5


@dataclass
class ProducerStats(ClientStats):
    messages_sent: int = 0
    bytes_sent: int = 0
    errors: int = 0


class Producer(ManagedClient[ProducerStats]):
    """Sends encoded messages to one topic.

    Owned by a single worker. ``send`` makes no pacing assumptions; per-key
    ordering comes from the broker's key hashing.
    """

    def __init__(
        self,
        topic: str,
        cluster_config: ClusterConfig,
        config: ProducerConfig | None = None,
        client: KafkaProducer | None = None,
    ):
        super().__init__()
        self.topic = topic
        self.config = config or ProducerConfig()
        self._stats = ProducerStats()
        if client is None:
            client_config = cluster_config.to_client_config()
            client_config.update(
                {
                    "acks": self.config.acks,
                    "compression.type": self.config.compression_type,
                    "linger.ms": self.config.linger_ms,
                    "retries": self.config.retries,
                    "logger": librdkafka_logger,
                }
            )
            client = KafkaProducer(client_config)
        self._client = client

    def send(self, batch: ProduceBatch) -> None:
        if self.closed:
            raise SendError(f"Producer for '{self.topic}' is closed")
        if not batch:
            return

        failures: list[str] = []

        def on_delivery(err: KafkaError | None, msg) -> None:
            if err is not None:
                failures.append(f"partition {msg.partition()}: {err.str()}")

        for message in batch:
            self._produce(message, on_delivery)

        remaining = self._client.flush(self.config.flush_timeout_seconds)
        if remaining > 0:
            self._record_failure()
            raise SendError(
                f"{remaining} message(s) to '{self.topic}' not acknowledged within "
                f"{self.config.flush_timeout_seconds}s"
            )
        if failures:
            self._record_failure()
            raise SendError(
                f"Delivery to '{self.topic}' failed for {len(failures)} message(s): {failures[0]}"
            )

        with self._stats._lock:
            self._stats.messages_sent += len(batch)
            self._stats.bytes_sent += sum(
                len(m.value) + (len(m.key) if m.key else 0) for m in batch
            )

    def _produce(self, message: Message, on_delivery) -> None:
        headers = list(message.headers.items()) or None
        attempt = 0
        while True:
            try:
                self._client.produce(
                    self.topic,
                    value=message.value,
                    key=message.key,
                    headers=headers,
                    on_delivery=on_delivery,
                )
                return
            except BufferError as e:
                if attempt >= self.config.retries:
                    self._record_failure()
                    raise SendError(f"Local producer queue for '{self.topic}' is full") from e
            except KafkaException as e:
                error = e.args[0] if e.args and isinstance(e.args[0], KafkaError) else None
                if error is None or not error.retriable() or attempt >= self.config.retries:
                    self._record_failure()
                    raise SendError(f"Failed to produce to '{self.topic}': {e}") from e
            attempt += 1
            logger.debug("Retrying produce to '%s' (attempt %d)", self.topic, attempt)
            self._client.poll(QUEUE_FULL_POLL_SECONDS)

    def _record_failure(self) -> None:
        with self._stats._lock:
            self._stats.errors += 1

    def flush(self, timeout: float = 30.0) -> int:
        return self._client.flush(timeout)

    def _release(self) -> None:
        remaining = self._client.flush(self.config.flush_timeout_seconds)
        if remaining:
            logger.warning("%d message(s) to '%s' dropped on close", remaining, self.topic)

    def get_stats(self) -> ProducerStats:
        with self._stats._lock:
            return ProducerStats(
                messages_sent=self._stats.messages_sent,
                bytes_sent=self._stats.bytes_sent,
                errors=self._stats.errors,
            )
