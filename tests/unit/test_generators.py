import random

import pytest

from kroundtrip.generators.key import (
    AlternatingKeyGenerator,
    PrefixedKeyGenerator,
    create_key_generator,
    new_correlation_id,
)
from kroundtrip.generators.order import (
    MAX_ITEMS,
    MAX_QUANTITY,
    MIN_ITEMS,
    MIN_QUANTITY,
    OrderGenerator,
)
from kroundtrip.models.message import CHANNEL, ROUTER, KeyStrategy


@pytest.mark.parametrize("seed", range(20))
def test_orders_within_bounds(seed):
    order = OrderGenerator(random.Random(seed)).generate(4)

    assert order.id == 4
    assert order.clientName == "client-4"
    assert MIN_ITEMS <= len(order.items) <= MAX_ITEMS
    for i, item in enumerate(order.items):
        assert item.sku == f"4-{i}"
        assert item.productName == f"product-4-{i}"
        assert MIN_QUANTITY <= item.quantity <= MAX_QUANTITY


def test_same_seed_same_order():
    assert OrderGenerator(random.Random(1)).generate(0) == OrderGenerator(random.Random(1)).generate(0)


def test_prefixed_keys():
    generator = create_key_generator(KeyStrategy.PREFIXED)
    correlation_id = new_correlation_id()

    key = generator.generate(0, correlation_id)

    assert isinstance(generator, PrefixedKeyGenerator)
    assert key == f"key-{correlation_id}"
    assert generator.is_valid(key)
    assert not generator.is_valid(ROUTER)


def test_alternating_keys():
    generator = create_key_generator(KeyStrategy.ALTERNATING)

    keys = [generator.generate(i, new_correlation_id()) for i in range(5)]

    assert isinstance(generator, AlternatingKeyGenerator)
    assert keys == [ROUTER, CHANNEL, ROUTER, CHANNEL, ROUTER]
    assert all(generator.is_valid(key) for key in keys)
    assert not generator.is_valid("key-1")


def test_correlation_ids_are_unique():
    assert len({new_correlation_id() for _ in range(100)}) == 100
