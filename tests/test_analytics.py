from datetime import datetime, timedelta, timezone

from orderdesk.analytics import hour_label, hourly_order_counts, status_counts
from orderdesk.models import OrderStatus

UTC = timezone.utc
NOW = datetime(2026, 10, 18, 15, 30, tzinfo=UTC)


def test_hour_label_format():
    assert hour_label(datetime(2026, 1, 1, 0, 5, tzinfo=UTC), UTC) == "12AM"
    assert hour_label(datetime(2026, 1, 1, 11, 59, tzinfo=UTC), UTC) == "11AM"
    assert hour_label(datetime(2026, 1, 1, 12, 0, tzinfo=UTC), UTC) == "12PM"
    assert hour_label(datetime(2026, 1, 1, 15, 0, tzinfo=UTC), UTC) == "3PM"
    assert hour_label(datetime(2026, 1, 1, 15, 0, tzinfo=UTC), timezone(timedelta(hours=-2))) == "1PM"


def test_buckets_are_seeded_oldest_first_with_zeroes():
    counts = hourly_order_counts([], now=NOW, buckets=8, tz=UTC)
    assert [label for label, _ in counts] == ["8AM", "9AM", "10AM", "11AM", "12PM", "1PM", "2PM", "3PM"]
    assert all(value == 0 for _, value in counts)


def test_orders_counted_by_hour_label_and_outside_labels_dropped(make_order):
    orders = [
        make_order(created_at="2026-10-18T14:10:00+00:00"),
        make_order(created_at="2026-10-18T14:50:00+00:00"),
        make_order(created_at="2026-10-18T15:00:00+00:00"),
        make_order(created_at="2026-10-18T07:00:00+00:00"),
        # Same hour label a day earlier still lands in the window.
        make_order(created_at="2026-10-17T15:20:00+00:00"),
    ]
    counts = dict(hourly_order_counts(orders, now=NOW, buckets=8, tz=UTC))
    assert counts["2PM"] == 2
    assert counts["3PM"] == 2
    assert "7AM" not in counts
    assert sum(counts.values()) == 4


def test_status_counts(make_order):
    orders = [make_order(), make_order(), make_order()]
    orders[0].status = OrderStatus.PREPARING
    stats = status_counts(orders)
    assert stats["total"] == 3
    assert stats["Pending"] == 2
    assert stats["Preparing"] == 1
    assert stats["Delivered"] == 0
