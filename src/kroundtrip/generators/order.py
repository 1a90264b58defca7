from __future__ import annotations

import random

from kroundtrip.models.payload import Order, OrderItem

MIN_ITEMS = 1
MAX_ITEMS = 50
MIN_QUANTITY = 1
MAX_QUANTITY = 10


class OrderGenerator:
    """Orders with a random number of items, each with a random quantity."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.Random()

    def items(self, index: int) -> list[OrderItem]:
        rows = self._rng.randint(MIN_ITEMS, MAX_ITEMS)
        return [
            OrderItem(
                sku=f"{index}-{i}",
                productName=f"product-{index}-{i}",
                quantity=self._rng.randint(MIN_QUANTITY, MAX_QUANTITY),
            )
            for i in range(rows)
        ]

    def generate(self, index: int) -> Order:
        return Order(id=index, clientName=f"client-{index}", items=self.items(index))
