"""Menu catalog with a seeded default."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Iterable

from orderdesk.errors import MenuItemNotFound
from orderdesk.events import Listeners
from orderdesk.ids import MENU_PREFIX, new_id
from orderdesk.models import MenuItem

logger = logging.getLogger(__name__)

DEFAULT_MENU: tuple[MenuItem, ...] = (MenuItem(id="m1", name="chicken tikka", price=250.0),)


def validate_menu_item(name: str, price: float) -> None:
    if not name.strip():
        raise ValueError("Menu item name is required")
    if price < 0:
        raise ValueError("Menu item price must be >= 0")


class MenuCatalog:
    """Menu items, newest added first."""

    def __init__(self, items: Iterable[MenuItem] = DEFAULT_MENU) -> None:
        self._items: list[MenuItem] = list(items)
        self.listeners: Listeners[list[MenuItem]] = Listeners()

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))

    def items(self) -> list[MenuItem]:
        return list(self._items)

    def subscribe(self, callback: Callable[[list[MenuItem]], None]) -> Callable[[], None]:
        return self.listeners.subscribe(callback)

    def get(self, item_id: str) -> MenuItem:
        for item in self._items:
            if item.id == item_id:
                return item
        raise MenuItemNotFound(item_id)

    def add(self, name: str, price: float) -> MenuItem:
        validate_menu_item(name, price)
        item = MenuItem(id=new_id(MENU_PREFIX, {m.id for m in self._items}), name=name.strip(), price=float(price))
        self._items.insert(0, item)
        logger.info("menu add %s %r", item.id, item.name)
        self.listeners.emit(self.items())
        return item

    def update(self, item_id: str, **fields: Any) -> MenuItem:
        """Change name and/or price; existing orders keep their captured copies."""
        current = self.get(item_id)
        updated = replace(current, **fields)
        validate_menu_item(updated.name, updated.price)
        self._items = [updated if item.id == item_id else item for item in self._items]
        logger.info("menu update %s", item_id)
        self.listeners.emit(self.items())
        return updated

    def delete(self, item_id: str) -> bool:
        kept = [item for item in self._items if item.id != item_id]
        if len(kept) == len(self._items):
            logger.warning("menu delete: %s", MenuItemNotFound(item_id))
            return False
        self._items = kept
        self.listeners.emit(self.items())
        return True
