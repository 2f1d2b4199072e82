"""Domain models for the order desk."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class OrderType(str, Enum):
    DINE_IN = "Dine-in"
    TAKEAWAY = "Takeaway"
    DELIVERY = "Delivery"


class OrderStatus(str, Enum):
    PENDING = "Pending"
    PREPARING = "Preparing"
    READY = "Ready"
    DELIVERED = "Delivered"
    CANCELED = "Canceled"


ALL = "All"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not isinstance(value, str):
        raise TypeError(f"timestamp must be a string, got {type(value).__name__}")
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _mapping(raw: Any, what: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise TypeError(f"{what} must be an object, got {type(raw).__name__}")
    return raw


@dataclass(frozen=True)
class MenuItem:
    """A sellable menu item."""

    id: str
    name: str
    price: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> MenuItem:
        raw = _mapping(raw, "menu item")
        return cls(id=str(raw["id"]), name=str(raw["name"]), price=float(raw["price"]))


@dataclass
class OrderLine:
    """One item row captured by value at order time."""

    item_id: str
    name: str
    price: float
    qty: int = 1

    @classmethod
    def from_menu_item(cls, item: MenuItem, qty: int = 1) -> OrderLine:
        return cls(item_id=item.id, name=item.name, price=item.price, qty=qty)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> OrderLine:
        raw = _mapping(raw, "order line")
        return cls(
            item_id=str(raw.get("item_id", "")),
            name=str(raw["name"]),
            price=float(raw["price"]),
            qty=int(raw.get("qty", 1)),
        )


@dataclass
class DeliveryInfo:
    name: str = ""
    phone: str = ""
    address: str = ""
    note: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> DeliveryInfo:
        raw = _mapping(raw, "delivery")
        return cls(
            name=str(raw.get("name") or ""),
            phone=str(raw.get("phone") or ""),
            address=str(raw.get("address") or ""),
            note=str(raw.get("note") or ""),
        )


@dataclass
class Order:
    """A live order held by the order store."""

    id: str
    customer: str
    type: OrderType
    items: list[OrderLine]
    status: OrderStatus = OrderStatus.PENDING
    assigned: str = "Unassigned"
    created_at: str = field(default_factory=utc_now_iso)
    delivery: DeliveryInfo | None = None
    payment_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["type"] = self.type.value
        data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Order:
        raw = _mapping(raw, "order")
        delivery = raw.get("delivery")
        items = raw["items"]
        if not isinstance(items, list):
            raise TypeError(f"order items must be a list, got {type(items).__name__}")
        created_at = raw["created_at"]
        parse_timestamp(created_at)
        return cls(
            id=str(raw["id"]),
            customer=str(raw.get("customer") or ""),
            type=OrderType(raw["type"]),
            items=[OrderLine.from_dict(line) for line in items],
            status=OrderStatus(raw.get("status", OrderStatus.PENDING.value)),
            assigned=str(raw.get("assigned") or "Unassigned"),
            created_at=created_at,
            delivery=None if delivery is None else DeliveryInfo.from_dict(delivery),
            payment_type=raw.get("payment_type"),
        )


@dataclass
class CompletionRecord:
    """Independent snapshot of an order taken when it first became Delivered."""

    order: Order
    completed_at: str

    @property
    def id(self) -> str:
        return self.order.id

    def to_dict(self) -> dict[str, Any]:
        data = self.order.to_dict()
        data["completed_at"] = self.completed_at
        return data

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CompletionRecord:
        raw = _mapping(raw, "completion record")
        completed_at = raw["completed_at"]
        parse_timestamp(completed_at)
        return cls(order=Order.from_dict(raw), completed_at=completed_at)


@dataclass
class ShopProfile:
    """Shop identity printed on receipts."""

    name: str = "My Restaurant"
    address: str = ""
    phone: str = ""
    tax_number: str = ""
    logo: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ShopProfile:
        raw = _mapping(raw, "shop profile")
        return cls(
            name=str(raw.get("name") or ""),
            address=str(raw.get("address") or ""),
            phone=str(raw.get("phone") or ""),
            tax_number=str(raw.get("tax_number") or ""),
            logo=raw.get("logo") or None,
        )
