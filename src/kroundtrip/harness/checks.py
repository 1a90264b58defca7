"""Verification checks over decoded messages.

Checks never raise: each one yields a named pass/fail outcome.
"""

from __future__ import annotations

from dataclasses import dataclass

from kroundtrip.generators.order import MAX_ITEMS, MAX_QUANTITY, MIN_ITEMS, MIN_QUANTITY
from kroundtrip.models.message import CHANNEL, KEY_PREFIX, ROUTER, KeyStrategy
from kroundtrip.models.payload import Order

KEY_CHECKS = {
    KeyStrategy.PREFIXED: f"key starts with '{KEY_PREFIX}' string",
    KeyStrategy.ALTERNATING: f"key is {ROUTER} or {CHANNEL}",
}
EVEN_INDEX_CHECK = f"even index maps to {ROUTER}"
CONTENT_CHECK = "value contains 'client-' and 'product-' strings"
BOUNDS_CHECK = "items within bounds"


@dataclass(frozen=True)
class DecodedMessage:
    key: str | None
    order: Order


def count_check_name(expected: int) -> str:
    return f"{expected} message returned"


def _valid_key(key: str | None, strategy: KeyStrategy) -> bool:
    if key is None:
        return False
    if strategy == KeyStrategy.PREFIXED:
        return key.startswith(KEY_PREFIX)
    return key in (ROUTER, CHANNEL)


def _content_ok(order: Order) -> bool:
    return order.clientName == f"client-{order.id}" and all(
        item.productName.startswith(f"product-{order.id}-") for item in order.items
    )


def _within_bounds(order: Order) -> bool:
    return MIN_ITEMS <= len(order.items) <= MAX_ITEMS and all(
        MIN_QUANTITY <= item.quantity <= MAX_QUANTITY for item in order.items
    )


def run_checks(
    messages: list[DecodedMessage],
    expected: int,
    key_strategy: KeyStrategy,
    check_keys: bool = True,
) -> dict[str, bool]:
    """Evaluate every check; content checks fail on an empty result."""
    received = bool(messages)
    checks = {count_check_name(expected): len(messages) == expected}

    if check_keys:
        checks[KEY_CHECKS[key_strategy]] = received and all(
            _valid_key(m.key, key_strategy) for m in messages
        )
        if key_strategy == KeyStrategy.ALTERNATING:
            checks[EVEN_INDEX_CHECK] = received and all(
                (m.order.id % 2 == 0) == (m.key == ROUTER) for m in messages
            )

    checks[CONTENT_CHECK] = received and all(_content_ok(m.order) for m in messages)
    checks[BOUNDS_CHECK] = received and all(_within_bounds(m.order) for m in messages)
    return checks
