from kroundtrip.kafka.admin import TopicAdmin
from kroundtrip.kafka.consumer import Consumer
from kroundtrip.kafka.factory import ClientFactory
from kroundtrip.kafka.producer import Producer

__all__ = [
    "ClientFactory",
    "Consumer",
    "Producer",
    "TopicAdmin",
]
