from __future__ import annotations

import uuid
from abc import ABC, abstractmethod

from kroundtrip.models.message import CHANNEL, KEY_PREFIX, ROUTER, KeyStrategy


class KeyGenerator(ABC):
    @abstractmethod
    def generate(self, index: int, correlation_id: str) -> str:
        pass

    @abstractmethod
    def is_valid(self, key: str) -> bool:
        """Whether ``key`` satisfies this generator's format contract."""


class PrefixedKeyGenerator(KeyGenerator):
    def generate(self, index: int, correlation_id: str) -> str:
        return f"{KEY_PREFIX}{correlation_id}"

    def is_valid(self, key: str) -> bool:
        return key.startswith(KEY_PREFIX)


class AlternatingKeyGenerator(KeyGenerator):
    def generate(self, index: int, correlation_id: str) -> str:
        return ROUTER if index % 2 == 0 else CHANNEL

    def is_valid(self, key: str) -> bool:
        return key in (ROUTER, CHANNEL)


def create_key_generator(strategy: KeyStrategy) -> KeyGenerator:
    match strategy:
        case KeyStrategy.PREFIXED:
            return PrefixedKeyGenerator()
        case KeyStrategy.ALTERNATING:
            return AlternatingKeyGenerator()
        case _:
            raise ValueError(f"Unknown key strategy: {strategy}")


def new_correlation_id() -> str:
    return str(uuid.uuid4())
