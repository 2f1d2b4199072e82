from orderdesk.ids import new_id
from orderdesk.models import OrderLine
from orderdesk.money import format_money, line_total, money, order_total


def test_order_total_is_sum_of_qty_times_price(make_order):
    order = make_order(
        items=[
            OrderLine(item_id="a", name="Soup", price=5.0, qty=2),
            OrderLine(item_id="b", name="Tea", price=1.25, qty=3),
        ]
    )
    assert order_total(order) == sum(line.qty * line.price for line in order.items) == 13.75
    assert line_total(order.items[1]) == 3.75


def test_order_total_accepts_bare_lines():
    assert order_total([OrderLine(item_id="a", name="x", price=0.1, qty=3)]) == 0.1 * 3
    assert order_total([]) == 0.0


def test_format_money_has_two_decimals_and_rounds_half_up():
    assert format_money(10) == "10.00"
    assert format_money(0.1 * 3) == "0.30"
    assert format_money(2.675) == "2.68"
    assert money(1.005) == 1.01


def test_new_id_prefix_and_uniqueness():
    first = new_id("ord")
    assert first.startswith("ord_") and len(first) == len("ord_") + 7
    assert new_id("m").startswith("m_")


def test_new_id_redraws_taken(monkeypatch):
    values = iter(["aaaaaaa000", "bbbbbbb000"])

    class FakeUUID:
        def __init__(self, hex_value):
            self.hex = hex_value

    monkeypatch.setattr("orderdesk.ids.uuid4", lambda: FakeUUID(next(values)))
    assert new_id("ord", taken={"ord_aaaaaaa"}) == "ord_bbbbbbb"
