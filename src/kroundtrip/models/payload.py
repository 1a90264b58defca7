"""Typed payloads.

A payload is a closed tagged variant: the variant decides which schema type
the codec encodes it with. Domain records (orders and their keys) convert
to and from the plain structures carried inside the variants.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Union

from kroundtrip.errors import DecodeError, EncodeError
from kroundtrip.models.schema import SchemaType


@dataclass(frozen=True)
class AvroRecord:
    data: dict[str, Any]


@dataclass(frozen=True)
class JsonBlob:
    data: Any


@dataclass(frozen=True)
class StringPayload:
    text: str


Payload = Union[AvroRecord, JsonBlob, StringPayload]


@dataclass(frozen=True)
class OrderItem:
    sku: str
    productName: str  # noqa: N815
    quantity: int

    def to_record(self) -> dict[str, Any]:
        return {"sku": self.sku, "productName": self.productName, "quantity": self.quantity}

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> OrderItem:
        return cls(sku=data["sku"], productName=data["productName"], quantity=data["quantity"])


@dataclass(frozen=True)
class Order:
    id: int
    clientName: str  # noqa: N815
    items: list[OrderItem] = field(default_factory=list)

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "clientName": self.clientName,
            "items": [item.to_record() for item in self.items],
        }

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> Order:
        return cls(
            id=data["id"],
            clientName=data["clientName"],
            items=[OrderItem.from_record(item) for item in data["items"]],
        )


@dataclass(frozen=True)
class OrderKey:
    key: str

    def to_record(self) -> dict[str, Any]:
        return {"key": self.key}

    @classmethod
    def from_record(cls, data: dict[str, Any]) -> OrderKey:
        return cls(key=data["key"])


def order_payload(order: Order, schema_type: SchemaType) -> Payload:
    match schema_type:
        case SchemaType.AVRO:
            return AvroRecord(order.to_record())
        case SchemaType.JSON:
            return JsonBlob(order.to_record())
        case SchemaType.STRING:
            return StringPayload(json.dumps(order.to_record()))
    raise EncodeError(f"Unsupported schema type: {schema_type}")


def key_payload(key: str, schema_type: SchemaType) -> Payload:
    match schema_type:
        case SchemaType.AVRO:
            return AvroRecord(OrderKey(key).to_record())
        case SchemaType.JSON:
            return JsonBlob(OrderKey(key).to_record())
        case SchemaType.STRING:
            return StringPayload(key)
    raise EncodeError(f"Unsupported schema type: {schema_type}")


def order_from_payload(payload: Payload) -> Order:
    try:
        match payload:
            case AvroRecord(data=data) | JsonBlob(data=data):
                return Order.from_record(data)
            case StringPayload(text=text):
                return Order.from_record(json.loads(text))
    except (KeyError, TypeError, ValueError) as e:
        raise DecodeError(f"Decoded value is not an order: {e}") from e
    raise DecodeError(f"Unsupported payload type: {type(payload).__name__}")


def key_from_payload(payload: Payload) -> str:
    match payload:
        case AvroRecord(data={"key": str() as key}) | JsonBlob(data={"key": str() as key}):
            return key
        case StringPayload(text=text):
            return text
    raise DecodeError(f"Decoded key has no 'key' field: {payload!r}")
