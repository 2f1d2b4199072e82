"""Line and order total calculation."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from orderdesk.models import Order, OrderLine

_CENT = Decimal("0.01")


def money(value: float) -> float:
    """Round to cents, half-up."""
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def format_money(value: float) -> str:
    """Format with exactly two decimal digits."""
    return str(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def line_total(line: OrderLine) -> float:
    return line.qty * line.price


def order_total(order: Order | Iterable[OrderLine]) -> float:
    """Sum of qty * price over every line of ``order``."""
    lines = order.items if isinstance(order, Order) else order
    return sum((line_total(line) for line in lines), 0.0)
