from kroundtrip.serialization.avro import AvroSerializer
from kroundtrip.serialization.base import Serializer
from kroundtrip.serialization.codec import Codec
from kroundtrip.serialization.json import JsonSerializer
from kroundtrip.serialization.string import PlainStringSerializer

__all__ = [
    "AvroSerializer",
    "Codec",
    "JsonSerializer",
    "PlainStringSerializer",
    "Serializer",
]
