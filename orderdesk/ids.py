"""Opaque identifier generation for orders and menu items."""

from __future__ import annotations

from typing import Container
from uuid import uuid4

ORDER_PREFIX = "ord"
MENU_PREFIX = "m"


def new_id(prefix: str = ORDER_PREFIX, taken: Container[str] = ()) -> str:
    """Return a fresh ``<prefix>_<7 hex>`` id not present in ``taken``."""
    while True:
        candidate = f"{prefix}_{uuid4().hex[:7]}"
        if candidate not in taken:
            return candidate
