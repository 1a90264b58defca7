"""Message and key strategy models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class KeyStrategy(Enum):
    """Key generation strategies and the format contract each one implies."""

    PREFIXED = "prefixed"  # "key-<uuid>"
    ALTERNATING = "alternating"  # ROUTER on even index, CHANNEL on odd


KEY_PREFIX = "key-"
ROUTER = "ROUTER"
CHANNEL = "CHANNEL"


@dataclass(frozen=True)
class Message:
    """An encoded record as sent to or received from the broker."""

    value: bytes
    key: bytes | None = None
    headers: dict[str, str] = field(default_factory=dict)
    topic: str | None = None
    partition: int | None = None
    offset: int | None = None


ProduceBatch = list[Message]
ConsumeResult = list[Message]
