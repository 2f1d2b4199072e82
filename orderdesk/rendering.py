"""Rich text rendering helpers for the dashboard."""

from __future__ import annotations

from rich.text import Text

from orderdesk.archive import DayGroup, day_label
from orderdesk.export import items_summary
from orderdesk.models import Order, OrderStatus, OrderType
from orderdesk.money import format_money, order_total

_SPARK_BLOCKS = " ▁▂▃▄▅▆▇█"


def status_style(status: OrderStatus) -> str:
    """Return a consistent badge style for each status."""
    if status is OrderStatus.PENDING:
        return "bold #0b1f0f on #f2c14e"
    if status is OrderStatus.PREPARING:
        return "bold #ffffff on #2f6db5"
    if status is OrderStatus.READY:
        return "bold #0b1f0f on #5fbf72"
    if status is OrderStatus.DELIVERED:
        return "bold #ffffff on #4a4a4a"
    return "bold #ffffff on #b23a48"


def type_tag(order_type: OrderType) -> str:
    if order_type is OrderType.DINE_IN:
        return "D"
    if order_type is OrderType.TAKEAWAY:
        return "T"
    return "V"


def format_order_row(order: Order) -> Text:
    """Render one order as ``[status] T id customer total`` plus an items line."""
    text = Text()
    text.append(f" {order.status.value} ", style=status_style(order.status))
    text.append(f" {type_tag(order.type)} ", style="bold")
    text.append(f"{order.id}  {order.customer}", style="white")
    text.append(f"  {format_money(order_total(order))}", style="bold")
    if order.assigned:
        text.append(f"  @{order.assigned}", style="dim")
    text.append(f"\n      {items_summary(order, ', ')}", style="dim")
    return text


def format_day_group(group: DayGroup, selected: bool = False, record_index: int | None = None) -> Text:
    text = Text()
    pointer = "➤ " if selected else "  "
    text.append(f"{pointer}{day_label(group.day)}", style="bold")
    text.append(f"  {len(group.records)} order(s)  {format_money(group.total)}")
    for idx, record in enumerate(group.records):
        marker = "›" if selected and idx == record_index else " "
        text.append(
            f"\n   {marker}{record.id}  {record.order.customer or 'Guest'}  {format_money(order_total(record.order))}",
            style="white" if marker != " " else "dim",
        )
    return text


def sparkline(counts: list[tuple[str, int]]) -> Text:
    """Render bucket counts as a block sparkline with first/last labels."""
    text = Text()
    if not counts:
        return text
    peak = max(value for _, value in counts) or 1
    for _, value in counts:
        level = round(value / peak * (len(_SPARK_BLOCKS) - 1))
        text.append(_SPARK_BLOCKS[level], style="#5fbf72")
    text.append(f"  {counts[0][0]}→{counts[-1][0]}  max {peak if any(v for _, v in counts) else 0}", style="dim")
    return text
