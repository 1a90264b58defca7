"""Topic model."""

from __future__ import annotations

from dataclasses import dataclass

from kroundtrip.errors import ConfigError

COMPRESSION_CODECS = ("none", "gzip", "snappy", "lz4", "zstd")


@dataclass(frozen=True)
class TopicConfig:
    """Topic created once per run and shared read-only by every worker."""

    name: str
    partitions: int = 6
    replication_factor: int = 1
    compression: str = "snappy"

    def __post_init__(self):
        if not self.name:
            raise ConfigError("topic name must not be empty")
        if self.partitions < 1:
            raise ConfigError("partitions must be at least 1")
        if self.replication_factor < 1:
            raise ConfigError("replication_factor must be at least 1")
        if self.compression not in COMPRESSION_CODECS:
            raise ConfigError(
                f"compression must be one of {', '.join(COMPRESSION_CODECS)}, "
                f"got '{self.compression}'"
            )

    def config_entries(self) -> dict[str, str]:
        return {"compression.type": self.compression}
