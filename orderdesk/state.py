"""Application state aggregate: components, persistence wiring and lifecycle."""

from __future__ import annotations

import logging
from datetime import tzinfo
from typing import Any, Callable, TypeVar

from orderdesk.archive import CompletionArchive, Confirm, DayGroup
from orderdesk.config import COMPLETED_KEY, MENU_KEY, ORDERS_KEY, SHOP_KEY
from orderdesk.errors import PersistenceUnavailable
from orderdesk.events import Listeners
from orderdesk.menu import DEFAULT_MENU, MenuCatalog, validate_menu_item
from orderdesk.models import CompletionRecord, MenuItem, Order, OrderStatus, ShopProfile, utc_now_iso
from orderdesk.persistence import KeyValueStore, load_or_default
from orderdesk.printer import ReceiptSurface
from orderdesk.shop import ShopSettings
from orderdesk.store import OrderStore, validate_order

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _decode_list(blob: Any, decode: Callable[[dict[str, Any]], T], key: str) -> list[T]:
    """Decode a JSON list, dropping entries that fail to parse."""
    if not isinstance(blob, list):
        logger.warning("stored %s is not a list, using default", key)
        return []
    decoded: list[T] = []
    for idx, raw in enumerate(blob):
        try:
            decoded.append(decode(raw))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("dropping corrupt %s entry #%d: %r", key, idx, exc)
    return decoded


def _decode_order(raw: Any) -> Order:
    order = Order.from_dict(raw)
    validate_order(order)
    return order


def _decode_record(raw: Any) -> CompletionRecord:
    record = CompletionRecord.from_dict(raw)
    validate_order(record.order)
    return record


def _decode_menu_item(raw: Any) -> MenuItem:
    item = MenuItem.from_dict(raw)
    validate_menu_item(item.name, item.price)
    return item


class AppState:
    """Everything the application mutates, built once at start.

    Each component persists itself under its own key after every change;
    a failed save is reported to the warning listeners and never rolled back.
    """

    def __init__(
        self,
        store: KeyValueStore,
        orders: list[Order] | None = None,
        completed: list[CompletionRecord] | None = None,
        menu: list[MenuItem] | None = None,
        shop: ShopProfile | None = None,
        now: Callable[[], str] = utc_now_iso,
        tz: tzinfo | None = None,
    ) -> None:
        self.kv = store
        self.warnings: Listeners[str] = Listeners()
        self.archive = CompletionArchive(completed or [], now=now, tz=tz)
        self.orders = OrderStore(orders or [], on_delivered=self.archive.record)
        self.menu = MenuCatalog(DEFAULT_MENU if menu is None else menu)
        self.shop = ShopSettings(shop)
        self._unsubscribe = [
            self.orders.subscribe(lambda snapshot: self._save(ORDERS_KEY, [o.to_dict() for o in snapshot])),
            self.archive.subscribe(lambda snapshot: self._save(COMPLETED_KEY, [r.to_dict() for r in snapshot])),
            self.menu.subscribe(lambda snapshot: self._save(MENU_KEY, [m.to_dict() for m in snapshot])),
            self.shop.subscribe(lambda profile: self._save(SHOP_KEY, profile.to_dict())),
        ]

    @classmethod
    def open(cls, store: KeyValueStore, now: Callable[[], str] = utc_now_iso, tz: tzinfo | None = None) -> AppState:
        """Build state from persisted blobs, falling back to defaults per key."""
        orders = _decode_list(load_or_default(store, ORDERS_KEY, []), _decode_order, ORDERS_KEY)
        completed = _decode_list(
            load_or_default(store, COMPLETED_KEY, []), _decode_record, COMPLETED_KEY
        )
        menu_blob = load_or_default(store, MENU_KEY, None)
        menu = None if menu_blob is None else _decode_list(menu_blob, _decode_menu_item, MENU_KEY)
        shop_blob = load_or_default(store, SHOP_KEY, None)
        shop = None
        if isinstance(shop_blob, dict):
            shop = ShopProfile.from_dict(shop_blob)
        elif shop_blob is not None:
            logger.warning("stored %s is not an object, using blank profile", SHOP_KEY)
        logger.info("state opened orders=%d completed=%d", len(orders), len(completed))
        return cls(store, orders=orders, completed=completed, menu=menu, shop=shop, now=now, tz=tz)

    def subscribe_orders(self, callback: Callable[[list[Order]], None]) -> Callable[[], None]:
        return self.orders.subscribe(callback)

    def subscribe_archive(self, callback: Callable[[list[CompletionRecord]], None]) -> Callable[[], None]:
        return self.archive.subscribe(callback)

    def subscribe_menu(self, callback: Callable[[list[MenuItem]], None]) -> Callable[[], None]:
        return self.menu.subscribe(callback)

    def subscribe_shop(self, callback: Callable[[ShopProfile], None]) -> Callable[[], None]:
        return self.shop.subscribe(callback)

    def subscribe_warnings(self, callback: Callable[[str], None]) -> Callable[[], None]:
        return self.warnings.subscribe(callback)

    def _save(self, key: str, blob: Any) -> None:
        try:
            self.kv.save(key, blob)
        except PersistenceUnavailable as exc:
            logger.warning("save %s failed: %s", key, exc)
            self.warnings.emit(f"Could not save {key}: {exc}")

    def flush(self) -> None:
        """Write every component's current snapshot."""
        self._save(ORDERS_KEY, [o.to_dict() for o in self.orders.orders()])
        self._save(COMPLETED_KEY, [r.to_dict() for r in self.archive.records()])
        self._save(MENU_KEY, [m.to_dict() for m in self.menu.items()])
        self._save(SHOP_KEY, self.shop.profile.to_dict())

    def close(self) -> None:
        self.flush()
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []
        logger.info("state closed")

    def set_status(self, order_id: str, status: OrderStatus) -> Order | None:
        return self.orders.set_status(order_id, status)

    def remove_completed(self, order_id: str) -> bool:
        return self.archive.remove(order_id)

    def clear_completed(self, confirm: Confirm) -> bool:
        return self.archive.clear(confirm)

    def remove_completed_day(self, day: str, confirm: Confirm) -> int:
        return self.archive.remove_day(day, confirm)

    def completed_by_day(self) -> list[DayGroup]:
        return self.archive.grouped_by_day()

    def print_receipt(self, order_id: str, surface: ReceiptSurface) -> None:
        """Hand one order's receipt to ``surface``; failures propagate uncaught."""
        order = self.orders.get(order_id)
        surface.present(order, self.shop.profile)
