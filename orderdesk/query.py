"""Filter, search and pagination over the live orders."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable

from orderdesk.config import PAGE_SIZE
from orderdesk.models import ALL, Order, OrderStatus, OrderType, parse_timestamp


def _matches_text(order: Order, needle: str) -> bool:
    if not needle:
        return True
    return (
        needle in order.id.lower()
        or needle in order.customer.lower()
        or any(needle in line.name.lower() for line in order.items)
    )


def filter_orders(
    orders: Iterable[Order],
    status: OrderStatus | str = ALL,
    order_type: OrderType | str = ALL,
    text: str = "",
) -> list[Order]:
    """AND of status, type and free-text filters, newest created first.

    Ties on ``created_at`` keep their input order.
    """
    needle = text.strip().lower()
    status_value = status.value if isinstance(status, OrderStatus) else status
    type_value = order_type.value if isinstance(order_type, OrderType) else order_type
    kept = [
        order
        for order in orders
        if (status_value == ALL or order.status.value == status_value)
        and (type_value == ALL or order.type.value == type_value)
        and _matches_text(order, needle)
    ]
    return sorted(kept, key=lambda order: parse_timestamp(order.created_at), reverse=True)


def total_pages(count: int, page_size: int = PAGE_SIZE) -> int:
    return max(1, math.ceil(count / page_size))


def clamp_page(page: int, pages: int) -> int:
    return min(max(1, page), pages)


@dataclass(frozen=True)
class Page:
    items: list[Order]
    page: int
    total_pages: int
    total: int


def paginate(results: list[Order], page: int, page_size: int = PAGE_SIZE) -> Page:
    pages = total_pages(len(results), page_size)
    page = clamp_page(page, pages)
    start = (page - 1) * page_size
    return Page(items=results[start : start + page_size], page=page, total_pages=pages, total=len(results))


class OrderQuery:
    """Mutable query state; any filter change resets the page to 1."""

    def __init__(self, page_size: int = PAGE_SIZE) -> None:
        self.page_size = page_size
        self.status: str = ALL
        self.order_type: str = ALL
        self.text = ""
        self.page = 1

    def set_status(self, status: OrderStatus | str) -> None:
        self.status = status.value if isinstance(status, OrderStatus) else status
        self.page = 1

    def set_type(self, order_type: OrderType | str) -> None:
        self.order_type = order_type.value if isinstance(order_type, OrderType) else order_type
        self.page = 1

    def set_text(self, text: str) -> None:
        self.text = text
        self.page = 1

    def next_page(self) -> None:
        self.page += 1

    def prev_page(self) -> None:
        self.page = max(1, self.page - 1)

    def apply(self, orders: Iterable[Order]) -> Page:
        """Filter and paginate ``orders``; the stored page is clamped too."""
        results = filter_orders(orders, self.status, self.order_type, self.text)
        page = paginate(results, self.page, self.page_size)
        self.page = page.page
        return page
