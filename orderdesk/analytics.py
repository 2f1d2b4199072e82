"""Order count time series and quick stats."""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo
from typing import Iterable

from orderdesk.config import ANALYTICS_BUCKETS
from orderdesk.models import Order, OrderStatus, parse_timestamp


def hour_label(moment: datetime, tz: tzinfo | None = None) -> str:
    """Hour-of-day label in local time, e.g. ``3PM`` or ``11AM``."""
    local = moment.astimezone(tz)
    hour = local.hour % 12 or 12
    return f"{hour}{'AM' if local.hour < 12 else 'PM'}"


def hourly_order_counts(
    orders: Iterable[Order],
    now: datetime | None = None,
    buckets: int = ANALYTICS_BUCKETS,
    tz: tzinfo | None = None,
) -> list[tuple[str, int]]:
    """Count orders per trailing hourly bucket, oldest bucket first.

    Orders are matched by hour label only; labels outside the window are dropped.
    """
    now = now or datetime.now().astimezone()
    counts: dict[str, int] = {}
    for offset in range(buckets - 1, -1, -1):
        counts[hour_label(now - timedelta(hours=offset), tz)] = 0
    for order in orders:
        label = hour_label(parse_timestamp(order.created_at), tz)
        if label in counts:
            counts[label] += 1
    return list(counts.items())


def status_counts(orders: Iterable[Order]) -> dict[str, int]:
    orders = list(orders)
    stats = {"total": len(orders)}
    for status in OrderStatus:
        stats[status.value] = sum(1 for order in orders if order.status is status)
    return stats
