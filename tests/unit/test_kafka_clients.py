import time

import pytest
from confluent_kafka import KafkaError

from kroundtrip.errors import AdminError, ConsumeError, SendError
from kroundtrip.kafka.admin import TopicAdmin
from kroundtrip.kafka.consumer import Consumer
from kroundtrip.kafka.producer import Producer
from kroundtrip.models.config import ClusterConfig, ProducerConfig
from kroundtrip.models.message import Message
from kroundtrip.models.topic import TopicConfig
from tests.unit.fakes import FakeAdminClient, FakeConsumerClient, FakeProducerClient

TOPIC = TopicConfig(name="orders", partitions=3)


@pytest.fixture
def cluster():
    return ClusterConfig()


def _admin(cluster, broker, errors=None):
    return TopicAdmin(
        cluster, client=FakeAdminClient(broker, errors), retry_backoff_seconds=0
    )


def _consumer(cluster, broker, group_id="group-1", errors=None):
    return Consumer(
        "orders", group_id, cluster, client=FakeConsumerClient(broker, group_id, errors)
    )


def _messages(count):
    return [Message(value=f"value-{i}".encode(), key=f"key-{i}".encode()) for i in range(count)]


class TestTopicAdmin:
    def test_create_is_idempotent(self, cluster, broker):
        admin = _admin(cluster, broker)

        assert admin.create_if_not_exists(TOPIC) is True
        assert admin.create_if_not_exists(TOPIC) is False
        assert broker.topic_configs["orders"] == {
            "partitions": 3,
            "replication_factor": 1,
            "config": {"compression.type": "snappy"},
        }
        assert admin.topic_exists("orders")

    def test_retriable_error_is_retried(self, cluster, broker):
        admin = _admin(
            cluster, broker, [KafkaError(KafkaError.REQUEST_TIMED_OUT, retriable=True)]
        )

        assert admin.create_if_not_exists(TOPIC) is True
        assert broker.create_calls == 2

    def test_retries_exhausted(self, cluster, broker):
        errors = [KafkaError(KafkaError._TRANSPORT, retriable=True)] * 4
        admin = _admin(cluster, broker, errors)

        with pytest.raises(AdminError):
            admin.create_if_not_exists(TOPIC)
        assert broker.create_calls == 4

    def test_fatal_error_is_not_retried(self, cluster, broker):
        admin = _admin(cluster, broker, [KafkaError(KafkaError.TOPIC_AUTHORIZATION_FAILED)])

        with pytest.raises(AdminError):
            admin.create_if_not_exists(TOPIC)
        assert broker.create_calls == 1

    def test_delete_all(self, cluster, broker):
        admin = _admin(cluster, broker)
        admin.create_if_not_exists(TOPIC)

        assert admin.delete_all("orders") is True
        assert admin.delete_all("orders") is False
        assert not admin.topic_exists("orders")

    def test_closed_admin_rejects_calls(self, cluster, broker):
        admin = _admin(cluster, broker)
        admin.close()

        with pytest.raises(AdminError, match="closed"):
            admin.create_if_not_exists(TOPIC)
        with pytest.raises(AdminError, match="closed"):
            admin.delete_all("orders")
        with pytest.raises(AdminError, match="closed"):
            admin.topic_exists("orders")


class TestProducer:
    def test_send_waits_for_acknowledgement(self, cluster, broker):
        broker.topics["orders"] = []
        producer = Producer("orders", cluster, client=FakeProducerClient(broker))

        producer.send(_messages(3))

        assert [r.value() for r in broker.topics["orders"]] == [b"value-0", b"value-1", b"value-2"]
        stats = producer.get_stats()
        assert stats.messages_sent == 3
        assert stats.errors == 0

    def test_headers_are_sent(self, cluster, broker):
        broker.topics["orders"] = []
        producer = Producer("orders", cluster, client=FakeProducerClient(broker))

        producer.send([Message(value=b"v", headers={"origin": "kroundtrip"})])

        assert broker.topics["orders"][0].headers() == [("origin", b"kroundtrip")]

    def test_full_queue_is_retried(self, cluster, broker):
        broker.topics["orders"] = []
        client = FakeProducerClient(broker, buffer_errors=2)
        producer = Producer("orders", cluster, client=client)

        producer.send(_messages(1))

        assert client.poll_calls == 2
        assert len(broker.topics["orders"]) == 1

    def test_full_queue_gives_up(self, cluster, broker):
        broker.topics["orders"] = []
        client = FakeProducerClient(broker, buffer_errors=10)
        producer = Producer("orders", cluster, ProducerConfig(retries=1), client=client)

        with pytest.raises(SendError, match="queue"):
            producer.send(_messages(1))
        assert producer.get_stats().errors == 1

    def test_delivery_failure(self, cluster, broker):
        producer = Producer("orders", cluster, client=FakeProducerClient(broker))

        with pytest.raises(SendError, match="Delivery"):
            producer.send(_messages(2))

    def test_unacknowledged_messages(self, cluster, broker):
        broker.topics["orders"] = []
        producer = Producer("orders", cluster, client=FakeProducerClient(broker, unflushed=1))

        with pytest.raises(SendError, match="not acknowledged"):
            producer.send(_messages(1))

    def test_closed_producer_rejects_send(self, cluster, broker):
        producer = Producer("orders", cluster, client=FakeProducerClient(broker))
        producer.close()
        producer.close()

        with pytest.raises(SendError):
            producer.send(_messages(1))


class TestConsumer:
    def test_empty_topic_returns_nothing_after_timeout(self, cluster, broker):
        broker.topics["orders"] = []
        consumer = _consumer(cluster, broker)

        start = time.monotonic()
        messages = consumer.consume(limit=10, timeout=0.1)

        assert messages == []
        assert time.monotonic() - start >= 0.1

    def test_consume_never_exceeds_limit(self, cluster, broker):
        broker.topics["orders"] = []
        for i in range(5):
            broker.append("orders", None, f"v{i}".encode(), [("origin", b"kroundtrip")])
        consumer = _consumer(cluster, broker)

        first = consumer.consume(limit=3, timeout=1.0)
        second = consumer.consume(limit=3, timeout=0.1)

        assert [m.value for m in first] == [b"v0", b"v1", b"v2"]
        assert [m.value for m in second] == [b"v3", b"v4"]
        assert first[0].headers == {"origin": "kroundtrip"}
        assert first[0].topic == "orders"
        assert consumer.get_stats().messages_consumed == 5

    def test_headers_decode_to_text(self, cluster, broker):
        broker.topics["orders"] = []
        broker.append(
            "orders", None, b"v", [("origin", b"kroundtrip"), ("trace", "t-1"), ("empty", None)]
        )

        (message,) = _consumer(cluster, broker).consume(limit=1, timeout=1.0)

        assert message.headers == {"origin": "kroundtrip", "trace": "t-1", "empty": ""}

    def test_groups_read_independently(self, cluster, broker):
        broker.topics["orders"] = []
        broker.append("orders", None, b"v", None)

        assert len(_consumer(cluster, broker, "group-1").consume(limit=1, timeout=1.0)) == 1
        assert len(_consumer(cluster, broker, "group-2").consume(limit=1, timeout=1.0)) == 1

    def test_partition_eof_is_skipped(self, cluster, broker):
        broker.topics["orders"] = []
        broker.append("orders", None, b"v", None)
        consumer = _consumer(cluster, broker, errors=[KafkaError(KafkaError._PARTITION_EOF)])

        assert len(consumer.consume(limit=1, timeout=1.0)) == 1

    def test_lost_connectivity_raises(self, cluster, broker):
        broker.topics["orders"] = []
        consumer = _consumer(cluster, broker, errors=[KafkaError(KafkaError._ALL_BROKERS_DOWN)])

        with pytest.raises(ConsumeError, match="connectivity"):
            consumer.consume(limit=1, timeout=1.0)

    def test_close(self, cluster, broker):
        broker.topics["orders"] = []
        client = FakeConsumerClient(broker, "group-1")
        consumer = Consumer("orders", "group-1", cluster, client=client)

        with consumer:
            pass

        assert client.closed
        with pytest.raises(ConsumeError):
            consumer.consume(limit=1, timeout=0.1)
