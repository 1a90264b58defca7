"""Factory for the broker and registry clients a run needs."""

from __future__ import annotations

from kroundtrip.kafka.admin import TopicAdmin
from kroundtrip.kafka.consumer import Consumer
from kroundtrip.kafka.producer import Producer
from kroundtrip.models.config import RunConfig
from kroundtrip.registry.client import RegistryClient


class ClientFactory:
    def __init__(self, config: RunConfig):
        self.config = config

    def create_admin(self) -> TopicAdmin:
        return TopicAdmin(self.config.cluster)

    def create_registry(self) -> RegistryClient:
        return RegistryClient(self.config.registry_url)

    def create_producer(self) -> Producer:
        return Producer(
            topic=self.config.topic.name,
            cluster_config=self.config.cluster,
            config=self.config.producer,
        )

    def create_consumer(self, group_id: str) -> Consumer:
        return Consumer(
            topic=self.config.topic.name,
            group_id=group_id,
            cluster_config=self.config.cluster,
            config=self.config.consumer,
        )
