# conftest.py
from datetime import datetime, timedelta, timezone

import pytest

from orderdesk.models import DeliveryInfo, OrderLine, OrderType
from orderdesk.persistence import MemoryKeyValueStore
from orderdesk.state import AppState
from orderdesk.store import new_order

UTC = timezone.utc


class Clock:
    """Manually advanced clock returning ISO timestamps."""

    def __init__(self, start: datetime):
        self.current = start

    def __call__(self) -> str:
        return self.current.isoformat()

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)

    def set(self, moment: datetime) -> None:
        self.current = moment


@pytest.fixture
def clock():
    return Clock(datetime(2026, 10, 18, 12, 0, tzinfo=UTC))


@pytest.fixture
def kv():
    return MemoryKeyValueStore()


@pytest.fixture
def state(kv, clock):
    return AppState.open(kv, now=clock, tz=UTC)


@pytest.fixture
def make_order(clock):
    counter = {"n": 0}

    def _make(customer="Ana", order_type=OrderType.DINE_IN, items=None, created_at=None, **kwargs):
        counter["n"] += 1
        lines = items or [OrderLine(item_id="m1", name="Soup", price=5.0, qty=2)]
        delivery = kwargs.pop("delivery", None)
        if order_type is OrderType.DELIVERY and delivery is None:
            delivery = DeliveryInfo(name=customer, phone="555-0100", address="1 Main St")
        return new_order(
            customer,
            order_type,
            lines,
            delivery=delivery,
            order_id=kwargs.pop("order_id", f"ord_{counter['n']:03d}"),
            created_at=created_at or clock(),
            **kwargs,
        )

    return _make
