"""Base class for exclusively owned broker clients."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Generic, TypeVar

librdkafka_logger = logging.getLogger("kroundtrip.kafka.librdkafka")


@dataclass
class ClientStats:
    """Base class for client statistics."""

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


StatsT = TypeVar("StatsT", bound=ClientStats)


class ManagedClient(ABC, Generic[StatsT]):
    """A client handle with an explicit, idempotent release."""

    def __init__(self) -> None:
        self._closed = threading.Event()

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def close(self) -> None:
        """Release the underlying client. Calling it twice is a no-op."""
        if self._closed.is_set():
            return
        self._closed.set()
        self._release()

    @abstractmethod
    def _release(self) -> None:
        ...

    @abstractmethod
    def get_stats(self) -> StatsT:
        """Get client statistics."""
        ...

    def __enter__(self):
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
