import csv
import io
from datetime import timezone

from orderdesk.archive import day_key
from orderdesk.export import CSV_HEADERS, build_receipt, orders_to_csv
from orderdesk.models import OrderLine, OrderStatus, OrderType
from orderdesk.money import format_money, order_total
from orderdesk.store import new_order


def test_ana_soup_lifecycle(state, clock):
    order = state.orders.upsert(
        new_order("Ana", OrderType.DINE_IN, [OrderLine(item_id="m_soup", name="Soup", price=5, qty=2)])
    )
    assert format_money(order_total(order)) == "10.00"

    state.orders.patch(order.id, status=OrderStatus.DELIVERED)
    groups = state.completed_by_day()
    today = day_key(clock(), timezone.utc)
    assert len(groups) == 1
    assert groups[0].day == today
    assert [r.id for r in groups[0].records] == [order.id]
    assert format_money(groups[0].total) == "10.00"

    state.orders.delete(order.id)
    assert state.orders.orders() == []
    assert len(state.archive) == 1

    assert state.remove_completed_day(today, lambda _prompt: True) == 1
    assert state.completed_by_day() == []


def test_csv_excludes_archived_only_orders(state, make_order):
    live = state.orders.upsert(make_order(customer="Live"))
    gone = state.orders.upsert(make_order(customer="Gone"))
    state.set_status(gone.id, OrderStatus.DELIVERED)
    state.orders.delete(gone.id)

    rows = list(csv.reader(io.StringIO(orders_to_csv(state.orders.orders()))))
    ids = [dict(zip(CSV_HEADERS, row))["id"] for row in rows[1:]]
    assert ids == [live.id]


def test_menu_price_change_does_not_touch_existing_orders(state):
    item = state.menu.add("Biryani", 300)
    order = state.orders.upsert(new_order("Ana", OrderType.TAKEAWAY, [OrderLine.from_menu_item(item, qty=2)]))
    state.menu.update(item.id, price=350.0)
    stored = state.orders.get(order.id)
    assert stored.items[0].price == 300
    assert build_receipt(stored, state.shop.profile).grand_total == 600
