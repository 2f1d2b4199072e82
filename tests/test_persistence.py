import sqlite3
from datetime import timezone

import pytest

from orderdesk.config import COMPLETED_KEY, MENU_KEY, ORDERS_KEY, SHOP_KEY
from orderdesk.errors import PersistenceUnavailable
from orderdesk.menu import DEFAULT_MENU
from orderdesk.models import OrderStatus, ShopProfile
from orderdesk.persistence import MemoryKeyValueStore, SqliteKeyValueStore, load_or_default
from orderdesk.query import OrderQuery
from orderdesk.state import AppState


class BrokenStore:
    """Store whose every call fails like an unreachable backend."""

    def load(self, key):
        raise PersistenceUnavailable(f"cannot load {key}")

    def save(self, key, blob):
        raise PersistenceUnavailable(f"cannot save {key}")


def test_sqlite_round_trip(tmp_path):
    store = SqliteKeyValueStore(tmp_path / "nested" / "desk.db")
    store.bootstrap_schema()
    assert store.load(ORDERS_KEY) is None
    store.save(ORDERS_KEY, [{"id": "ord_1", "customer": "Ana ✓"}])
    store.save(ORDERS_KEY, [{"id": "ord_2"}])
    assert store.load(ORDERS_KEY) == [{"id": "ord_2"}]


def test_sqlite_corrupt_value_raises_persistence_unavailable(tmp_path):
    db = tmp_path / "desk.db"
    store = SqliteKeyValueStore(db)
    store.bootstrap_schema()
    with sqlite3.connect(db) as conn:
        conn.execute("INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)", (MENU_KEY, "{not json", "x"))
    with pytest.raises(PersistenceUnavailable):
        store.load(MENU_KEY)
    assert load_or_default(store, MENU_KEY, "fallback") == "fallback"


def test_sqlite_missing_table_is_persistence_unavailable(tmp_path):
    store = SqliteKeyValueStore(tmp_path / "desk.db")
    with pytest.raises(PersistenceUnavailable):
        store.load(ORDERS_KEY)


def test_open_uses_documented_defaults_for_absent_keys(kv):
    state = AppState.open(kv)
    assert state.orders.orders() == []
    assert state.archive.records() == []
    assert state.menu.items() == list(DEFAULT_MENU)
    assert state.shop.profile == ShopProfile()


def test_open_falls_back_per_key_on_corruption(caplog):
    kv = MemoryKeyValueStore()
    kv.put_raw(ORDERS_KEY, "[{broken")
    kv.put_raw(COMPLETED_KEY, '{"not": "a list"}')
    kv.save(MENU_KEY, [{"id": "m7", "name": "Dal", "price": 120}, {"name": "no id"}])
    kv.save(SHOP_KEY, ["wrong shape"])
    state = AppState.open(kv)
    assert state.orders.orders() == []
    assert state.archive.records() == []
    assert [item.id for item in state.menu.items()] == ["m7"]
    assert state.shop.profile == ShopProfile()
    assert "dropping corrupt menu entry" in caplog.text


def test_open_with_broken_backend_uses_defaults():
    state = AppState.open(BrokenStore())
    assert state.orders.orders() == []
    assert state.menu.items() == list(DEFAULT_MENU)


def test_every_mutation_is_persisted_under_its_own_key(state, kv, make_order):
    order = state.orders.upsert(make_order())
    state.set_status(order.id, OrderStatus.DELIVERED)
    state.menu.add("Lassi", 80)
    state.shop.save(ShopProfile(name="Desk Diner"))

    assert [o["id"] for o in kv.load(ORDERS_KEY)] == [order.id]
    assert kv.load(ORDERS_KEY)[0]["status"] == "Delivered"
    assert [r["id"] for r in kv.load(COMPLETED_KEY)] == [order.id]
    assert kv.load(COMPLETED_KEY)[0]["completed_at"] == "2026-10-18T12:00:00+00:00"
    assert kv.load(MENU_KEY)[0]["name"] == "Lassi"
    assert kv.load(SHOP_KEY)["name"] == "Desk Diner"


def test_state_reloads_what_it_saved(state, kv, make_order, clock):
    order = state.orders.upsert(make_order())
    state.set_status(order.id, OrderStatus.DELIVERED)
    state.close()

    reopened = AppState.open(kv, now=clock)
    assert reopened.orders.orders() == state.orders.orders()
    assert [r.to_dict() for r in reopened.archive.records()] == [r.to_dict() for r in state.archive.records()]


def test_save_failure_is_a_warning_and_not_rolled_back(make_order):
    state = AppState(BrokenStore())
    warnings = []
    state.subscribe_warnings(warnings.append)
    order = state.orders.upsert(make_order())
    assert state.orders.get(order.id).customer == "Ana"
    assert warnings == [f"Could not save {ORDERS_KEY}: cannot save {ORDERS_KEY}"]


def test_archive_save_failure_does_not_undo_order_save(make_order):
    class ArchiveDown(MemoryKeyValueStore):
        def save(self, key, blob):
            if key == COMPLETED_KEY:
                raise PersistenceUnavailable("archive table locked")
            super().save(key, blob)

    kv = ArchiveDown()
    state = AppState(kv)
    warnings = []
    state.subscribe_warnings(warnings.append)
    order = state.orders.upsert(make_order())
    state.set_status(order.id, OrderStatus.DELIVERED)
    assert kv.load(ORDERS_KEY)[0]["status"] == "Delivered"
    assert order.id in state.archive
    assert any("completed_orders" in message for message in warnings)


def test_sqlite_closes_every_connection(tmp_path, monkeypatch):
    store = SqliteKeyValueStore(tmp_path / "desk.db")
    opened = []
    connect = store._connect

    def tracking_connect():
        opened.append(connect())
        return opened[-1]

    monkeypatch.setattr(store, "_connect", tracking_connect)
    store.bootstrap_schema()
    store.save(MENU_KEY, [{"id": "m1"}])
    assert store.load(MENU_KEY) == [{"id": "m1"}]
    assert len(opened) == 3
    for conn in opened:
        with pytest.raises(sqlite3.ProgrammingError):
            conn.execute("SELECT 1")


GOOD_ORDER = {
    "id": "o1",
    "customer": "Ana",
    "type": "Dine-in",
    "items": [{"item_id": "m1", "name": "Soup", "price": 5, "qty": 2}],
    "status": "Pending",
    "assigned": "Table 2",
    "created_at": "2026-10-18T11:00:00+00:00",
    "delivery": None,
    "payment_type": None,
}


@pytest.mark.parametrize(
    "bad",
    [
        dict(GOOD_ORDER, id="o2", items=["Soup"]),
        dict(GOOD_ORDER, id="o3", items="Soup x2"),
        dict(GOOD_ORDER, id="o4", type="Delivery", delivery="1 Main St"),
        "o5",
    ],
)
def test_open_drops_wrongly_shaped_entries(bad, caplog):
    kv = MemoryKeyValueStore()
    kv.save(ORDERS_KEY, [GOOD_ORDER, bad])
    kv.save(COMPLETED_KEY, [dict(GOOD_ORDER, completed_at="2026-10-18T11:30:00+00:00"), bad])
    state = AppState.open(kv)
    assert [o.id for o in state.orders.orders()] == ["o1"]
    assert [r.id for r in state.archive.records()] == ["o1"]
    assert "dropping corrupt orders entry #1" in caplog.text


@pytest.mark.parametrize(
    "bad",
    [
        dict(GOOD_ORDER, id="o2", created_at="yesterday"),
        dict(GOOD_ORDER, id="o3", created_at=1760785200),
        dict(GOOD_ORDER, id="o4", items=[]),
        dict(GOOD_ORDER, id="o5", items=[dict(GOOD_ORDER["items"][0], qty=0)]),
        dict(GOOD_ORDER, id="o6", type="Delivery", delivery=None),
        dict(GOOD_ORDER, id="o7", delivery={"address": "1 Main St"}),
    ],
)
def test_open_drops_orders_that_break_invariants(bad):
    kv = MemoryKeyValueStore()
    kv.save(ORDERS_KEY, [GOOD_ORDER, bad])
    state = AppState.open(kv)
    assert bad["id"] not in state.orders
    assert OrderQuery().apply(state.orders.orders()).total == 1


def test_open_drops_records_with_unreadable_completion_time(clock):
    kv = MemoryKeyValueStore()
    kv.save(
        COMPLETED_KEY,
        [
            dict(GOOD_ORDER, completed_at="2026-10-18T11:30:00+00:00"),
            dict(GOOD_ORDER, id="o2", completed_at="last week"),
            dict(GOOD_ORDER, id="o3", items=[], completed_at="2026-10-18T11:30:00+00:00"),
        ],
    )
    state = AppState.open(kv, now=clock, tz=timezone.utc)
    groups = state.completed_by_day()
    assert [[r.id for r in group.records] for group in groups] == [["o1"]]


def test_open_drops_menu_items_with_negative_price():
    kv = MemoryKeyValueStore()
    kv.save(MENU_KEY, [{"id": "m7", "name": "Dal", "price": 120}, {"id": "m8", "name": "Bad", "price": -1}])
    state = AppState.open(kv)
    assert [item.id for item in state.menu.items()] == ["m7"]


def test_missing_assigned_loads_as_unassigned():
    kv = MemoryKeyValueStore()
    raw = dict(GOOD_ORDER)
    del raw["assigned"]
    kv.save(ORDERS_KEY, [raw])
    state = AppState.open(kv)
    assert state.orders.get("o1").assigned == "Unassigned"
