"""Order store: the authoritative set of live orders."""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import replace
from typing import Any, Callable, Iterable

from orderdesk.errors import InvalidOrder, OrderNotFound
from orderdesk.events import Listeners
from orderdesk.ids import ORDER_PREFIX, new_id
from orderdesk.models import DeliveryInfo, Order, OrderLine, OrderStatus, OrderType, utc_now_iso

logger = logging.getLogger(__name__)

_IMMUTABLE_FIELDS = {"id", "created_at"}
_PATCHABLE_FIELDS = {"customer", "type", "items", "status", "assigned", "delivery", "payment_type"}


def validate_order(order: Order) -> None:
    """Raise InvalidOrder when ``order`` breaks a structural invariant."""
    if not order.id:
        raise InvalidOrder("Order id is required")
    if not isinstance(order.type, OrderType):
        raise InvalidOrder(f"Unknown order type {order.type!r}")
    if not isinstance(order.status, OrderStatus):
        raise InvalidOrder(f"Unknown order status {order.status!r}")
    if not order.items:
        raise InvalidOrder(f"Order {order.id!r} has no items")
    for idx, line in enumerate(order.items):
        if isinstance(line.qty, bool) or not isinstance(line.qty, int) or line.qty < 1:
            raise InvalidOrder(f"Line {idx} of {order.id!r}: qty must be an integer >= 1")
        if line.price < 0:
            raise InvalidOrder(f"Line {idx} of {order.id!r}: price must be >= 0")
    if order.type is OrderType.DELIVERY and order.delivery is None:
        raise InvalidOrder(f"Delivery order {order.id!r} needs delivery details")
    if order.type is not OrderType.DELIVERY and order.delivery is not None:
        raise InvalidOrder(f"Only delivery orders carry delivery details ({order.id!r})")


def new_order(
    customer: str,
    order_type: OrderType,
    lines: Iterable[OrderLine],
    delivery: DeliveryInfo | None = None,
    payment_type: str | None = None,
    assigned: str = "Unassigned",
    order_id: str | None = None,
    created_at: str | None = None,
    taken: Iterable[str] = (),
) -> Order:
    """Build a fresh Pending order with the creation defaults applied."""
    is_delivery = order_type is OrderType.DELIVERY
    if is_delivery and delivery is None:
        delivery = DeliveryInfo()
    customer = customer.strip()
    if not customer:
        customer = (delivery.name.strip() if is_delivery and delivery else "") or "Guest"
    return Order(
        id=order_id or new_id(ORDER_PREFIX, set(taken)),
        customer=customer,
        type=order_type,
        items=[copy.copy(line) for line in lines],
        status=OrderStatus.PENDING,
        assigned=assigned.strip() or "Unassigned",
        created_at=created_at or utc_now_iso(),
        delivery=copy.copy(delivery) if is_delivery else None,
        payment_type=payment_type or None,
    )


def order_changes(before: Order, after: Order) -> dict[str, Any]:
    """Return the patchable fields whose values differ between two versions of an order."""
    if before.id != after.id:
        raise InvalidOrder(f"Cannot diff different orders {before.id!r} and {after.id!r}")
    return {
        name: copy.deepcopy(getattr(after, name))
        for name in sorted(_PATCHABLE_FIELDS)
        if getattr(before, name) != getattr(after, name)
    }


class OrderStore:
    """Live orders, newest inserted first.

    ``on_delivered`` is called with the new order whenever an upsert or patch
    moves an order into Delivered from any other status, or inserts an order
    that is already Delivered.
    """

    def __init__(
        self,
        orders: Iterable[Order] = (),
        on_delivered: Callable[[Order], Any] | None = None,
    ) -> None:
        self._orders: list[Order] = [copy.deepcopy(order) for order in orders]
        self._on_delivered = on_delivered
        self._lock = threading.RLock()
        self.listeners: Listeners[list[Order]] = Listeners()

    def __len__(self) -> int:
        return len(self._orders)

    def __contains__(self, order_id: object) -> bool:
        return self._index(order_id) is not None

    def ids(self) -> set[str]:
        return {order.id for order in self._orders}

    def orders(self) -> list[Order]:
        """Snapshot of the active set."""
        with self._lock:
            return copy.deepcopy(self._orders)

    def subscribe(self, callback: Callable[[list[Order]], None]) -> Callable[[], None]:
        return self.listeners.subscribe(callback)

    def _index(self, order_id: object) -> int | None:
        for idx, order in enumerate(self._orders):
            if order.id == order_id:
                return idx
        return None

    def _changed(self) -> None:
        self.listeners.emit(self.orders())

    def _archive_if_delivered(self, previous: OrderStatus | None, current: Order) -> None:
        if current.status is not OrderStatus.DELIVERED or previous is OrderStatus.DELIVERED:
            return
        if self._on_delivered is not None:
            self._on_delivered(copy.deepcopy(current))

    def get(self, order_id: str) -> Order:
        with self._lock:
            idx = self._index(order_id)
            if idx is None:
                raise OrderNotFound(order_id)
            return copy.deepcopy(self._orders[idx])

    def upsert(self, order: Order) -> Order:
        """Insert a new order at the head or replace an existing one wholesale."""
        validate_order(order)
        stored = copy.deepcopy(order)
        with self._lock:
            idx = self._index(order.id)
            if idx is None:
                previous = None
                self._orders.insert(0, stored)
                logger.info("created order %s (%s)", stored.id, stored.status.value)
            else:
                previous = self._orders[idx].status
                self._orders[idx] = stored
                logger.info("replaced order %s (%s -> %s)", stored.id, previous.value, stored.status.value)
            self._archive_if_delivered(previous, stored)
        self._changed()
        return copy.deepcopy(stored)

    def patch(self, order_id: str, **fields: Any) -> Order | None:
        """Merge ``fields`` into an order; returns None when the id is unknown."""
        bad = set(fields) & _IMMUTABLE_FIELDS
        if bad:
            raise InvalidOrder(f"Cannot patch immutable field(s): {', '.join(sorted(bad))}")
        unknown = set(fields) - _PATCHABLE_FIELDS
        if unknown:
            raise InvalidOrder(f"Unknown order field(s): {', '.join(sorted(unknown))}")
        try:
            if "status" in fields:
                fields["status"] = OrderStatus(fields["status"])
            if "type" in fields:
                fields["type"] = OrderType(fields["type"])
        except ValueError as exc:
            raise InvalidOrder(str(exc)) from exc
        with self._lock:
            idx = self._index(order_id)
            if idx is None:
                logger.warning("patch: %s", OrderNotFound(order_id))
                return None
            before = self._orders[idx]
            after = replace(copy.deepcopy(before), **copy.deepcopy(fields))
            validate_order(after)
            self._orders[idx] = after
            logger.info("patched order %s fields=%s", order_id, sorted(fields))
            self._archive_if_delivered(before.status, after)
        self._changed()
        return copy.deepcopy(after)

    def set_status(self, order_id: str, status: OrderStatus) -> Order | None:
        return self.patch(order_id, status=status)

    def delete(self, order_id: str) -> bool:
        """Remove an order from the active set; archive records are untouched."""
        with self._lock:
            idx = self._index(order_id)
            if idx is None:
                logger.warning("delete: %s", OrderNotFound(order_id))
                return False
            del self._orders[idx]
            logger.info("deleted order %s", order_id)
        self._changed()
        return True
