"""CSV export and receipt rendering."""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass, field
from datetime import date, tzinfo
from pathlib import Path
from typing import Iterable

from jinja2 import Environment, FileSystemLoader, select_autoescape

from orderdesk.config import CURRENCY_LABEL, DEFAULT_PAYMENT_TYPE, PRINT_DELAY_MS
from orderdesk.errors import PersistenceUnavailable
from orderdesk.models import Order, OrderType, ShopProfile, parse_timestamp
from orderdesk.money import format_money, line_total, order_total

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

CSV_HEADERS = (
    "id",
    "customer",
    "type",
    "status",
    "assigned",
    "createdAt",
    "items",
    "total",
    "delivery_name",
    "delivery_phone",
    "delivery_address",
    "delivery_note",
)

_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def items_summary(order: Order, sep: str = "; ") -> str:
    return sep.join(f"{line.name} x{line.qty}" for line in order.items)


def csv_row(order: Order) -> list[str]:
    delivery = order.delivery
    return [
        order.id,
        order.customer,
        order.type.value,
        order.status.value,
        order.assigned or "",
        order.created_at,
        items_summary(order),
        format_money(order_total(order)),
        delivery.name if delivery else "",
        delivery.phone if delivery else "",
        delivery.address if delivery else "",
        delivery.note if delivery else "",
    ]


def orders_to_csv(orders: Iterable[Order]) -> str:
    """One fully quoted row per live order under a bare header line."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    lines = [",".join(CSV_HEADERS)]
    for order in orders:
        buffer.seek(0)
        buffer.truncate()
        writer.writerow(csv_row(order))
        lines.append(buffer.getvalue().rstrip("\n"))
    return "\n".join(lines)


def csv_filename(today: date | None = None) -> str:
    return f"orders_{(today or date.today()).isoformat()}.csv"


def write_csv(orders: Iterable[Order], directory: str | Path = ".", today: date | None = None) -> Path:
    path = Path(directory) / csv_filename(today)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(orders_to_csv(orders), encoding="utf-8")
    except OSError as exc:
        raise PersistenceUnavailable(f"Cannot write {path}: {exc}") from exc
    logger.info("wrote csv export %s", path)
    return path


def format_receipt_time(timestamp: str, tz: tzinfo | None = None) -> str:
    """Render like ``Oct 18, 2026, 3:04:05 PM`` in local time."""
    local = parse_timestamp(timestamp).astimezone(tz)
    hour = local.hour % 12 or 12
    return f"{local:%b} {local.day}, {local.year}, {hour}:{local:%M:%S} {local:%p}"


@dataclass(frozen=True)
class ReceiptLine:
    name: str
    qty: int
    price: str
    total: str


@dataclass
class ReceiptData:
    """Everything a receipt shows, shared by the HTML and thermal renderings."""

    shop: ShopProfile
    order_id: str
    order_type: str
    payment_type: str
    timestamp: str
    customer: str
    customer_phone: str
    address: str
    note: str
    lines: list[ReceiptLine]
    subtotal: float
    # Reserved for tax or fee rows as (label, amount); none are applied today.
    adjustments: list[tuple[str, float]] = field(default_factory=list)

    @property
    def grand_total(self) -> float:
        return self.subtotal + sum(amount for _, amount in self.adjustments)


def build_receipt(order: Order, shop: ShopProfile, tz: tzinfo | None = None) -> ReceiptData:
    delivery = order.delivery if order.type is OrderType.DELIVERY else None
    return ReceiptData(
        shop=shop,
        order_id=order.id,
        order_type=order.type.value,
        payment_type=order.payment_type or DEFAULT_PAYMENT_TYPE,
        timestamp=format_receipt_time(order.created_at, tz),
        customer=(delivery.name if delivery else "") or order.customer,
        customer_phone=delivery.phone if delivery else "",
        address=delivery.address if delivery else "",
        note=delivery.note if delivery else "",
        lines=[
            ReceiptLine(
                name=line.name,
                qty=line.qty,
                price=format_money(line.price),
                total=format_money(line_total(line)),
            )
            for line in order.items
        ],
        subtotal=order_total(order),
    )


def render_receipt(order: Order, shop: ShopProfile, tz: tzinfo | None = None) -> str:
    """Self-contained printable HTML receipt; user text is escaped by Jinja."""
    receipt = build_receipt(order, shop, tz)
    template = _env.get_template("receipt.html")
    return template.render(
        receipt=receipt,
        format_money=format_money,
        currency=CURRENCY_LABEL,
        print_delay_ms=PRINT_DELAY_MS,
    )


def _pair(left: str, right: str, width: int) -> str:
    gap = max(1, width - len(left) - len(right))
    return f"{left}{' ' * gap}{right}"


def receipt_lines(order: Order, shop: ShopProfile, width: int = 32, tz: tzinfo | None = None) -> list[str]:
    """Plain-text receipt for fixed-width thermal output."""
    receipt = build_receipt(order, shop, tz)
    rule = "-" * width
    lines = [shop.name.center(width).rstrip()]
    if shop.address:
        lines.append(f"Add: {shop.address}")
    if shop.phone:
        lines.append(f"Phone: {shop.phone}")
    lines += [
        rule,
        f"Date: {receipt.timestamp}",
        f"Order: {receipt.order_id}",
        f"Order Type: {receipt.order_type}",
        f"Payment Type: {receipt.payment_type}",
    ]
    if receipt.address:
        lines.append(f"Address: {receipt.address}")
    customer = receipt.customer
    if receipt.customer_phone:
        customer = f"{customer} - {receipt.customer_phone}"
    lines.append(f"Customer: {customer}")
    if receipt.note:
        lines.append(f"Note: {receipt.note}")
    lines.append(rule)
    for line in receipt.lines:
        lines.append(line.name)
        lines.append(_pair(f"  {line.qty} x {line.price}", line.total, width))
    lines.append(rule)
    lines.append(_pair("Subtotal", format_money(receipt.subtotal), width))
    for label, amount in receipt.adjustments:
        lines.append(_pair(label, format_money(amount), width))
    lines.append(_pair(f"Total ({CURRENCY_LABEL})", format_money(receipt.grand_total), width))
    lines.append("")
    lines.append("Thank you for visiting!".center(width).rstrip())
    return lines
