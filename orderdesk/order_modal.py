"""Keyboard-driven modal for composing a new order."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from orderdesk.errors import InvalidOrder
from orderdesk.models import DeliveryInfo, MenuItem, Order, OrderLine, OrderType
from orderdesk.money import format_money, line_total, order_total
from orderdesk.store import new_order, validate_order

_TYPES = list(OrderType)


class OrderModal(ModalScreen[Order | None]):
    """Compose customer, type and lines; dismisses with the new order or None."""

    CSS = """
    OrderModal {
        align: center middle;
        background: $background 60%;
    }

    #order-dialog {
        width: 72;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #order-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #order-body {
        color: white;
        margin-bottom: 1;
    }

    #order-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #order-help {
        color: #dddddd;
    }
    """

    def __init__(self, menu: list[MenuItem], taken_ids: set[str]) -> None:
        super().__init__()
        self.menu = menu
        self.taken_ids = taken_ids
        self.type_index = 0
        self.fields = {"customer": "", "assigned": "", "payment": "", "phone": "", "address": "", "note": ""}
        self.focus_field = "customer"
        self.menu_index = 0
        self.lines: list[OrderLine] = []
        self.error = ""

    @property
    def order_type(self) -> OrderType:
        return _TYPES[self.type_index]

    def compose(self) -> ComposeResult:
        with Container(id="order-dialog"):
            yield Static("New Order", id="order-title")
            yield Static(id="order-body")
            yield Static(id="order-error")
            yield Static(
                "Type text. Tab next field. Ctrl+T type. ↑/↓ menu, Enter add, Ctrl+D drop line. "
                "Ctrl+S create. Esc cancel.",
                id="order-help",
            )

    def on_mount(self) -> None:
        self._refresh_content()

    def _editable_fields(self) -> list[str]:
        if self.order_type is OrderType.DELIVERY:
            return ["customer", "assigned", "payment", "phone", "address", "note"]
        return ["customer", "assigned", "payment"]

    def on_key(self, event: Key) -> None:
        key = event.key
        if key in {"escape", "ctrl+c"}:
            self.dismiss(None)
        elif key == "ctrl+s":
            self._submit()
        elif key == "ctrl+t":
            self.type_index = (self.type_index + 1) % len(_TYPES)
            if self.focus_field not in self._editable_fields():
                self.focus_field = "customer"
        elif key == "tab":
            editable = self._editable_fields()
            self.focus_field = editable[(editable.index(self.focus_field) + 1) % len(editable)]
        elif key in {"up", "down"} and self.menu:
            delta = -1 if key == "up" else 1
            self.menu_index = (self.menu_index + delta) % len(self.menu)
        elif key == "enter" and self.menu:
            self._add_line(self.menu[self.menu_index])
        elif key == "ctrl+d":
            if self.lines:
                self.lines.pop()
        elif key == "backspace":
            self.fields[self.focus_field] = self.fields[self.focus_field][:-1]
        elif event.is_printable and event.character:
            self.fields[self.focus_field] += event.character
        else:
            return
        self.error = ""
        self._refresh_content()
        event.stop()

    def _add_line(self, item: MenuItem) -> None:
        for line in self.lines:
            if line.item_id == item.id:
                line.qty += 1
                return
        self.lines.append(OrderLine.from_menu_item(item))

    def _build(self) -> Order:
        delivery = None
        if self.order_type is OrderType.DELIVERY:
            delivery = DeliveryInfo(
                name=self.fields["customer"].strip(),
                phone=self.fields["phone"].strip(),
                address=self.fields["address"].strip(),
                note=self.fields["note"].strip(),
            )
        return new_order(
            self.fields["customer"],
            self.order_type,
            self.lines,
            delivery=delivery,
            payment_type=self.fields["payment"].strip() or None,
            assigned=self.fields["assigned"],
            taken=self.taken_ids,
        )

    def _submit(self) -> None:
        order = self._build()
        try:
            validate_order(order)
        except InvalidOrder as exc:
            self.error = str(exc)
            return
        self.dismiss(order)

    def _refresh_content(self) -> None:
        body = self.query_one("#order-body", Static)
        error_widget = self.query_one("#order-error", Static)

        content = Text(style="white")
        content.append(f"Type: {self.order_type.value}\n", style="bold")
        for name in self._editable_fields():
            pointer = "➤ " if name == self.focus_field else "  "
            content.append(f"{pointer}{name.title()}: {self.fields[name]}\n")

        content.append("\nMenu\n", style="bold")
        if not self.menu:
            content.append("  (menu is empty)\n", style="dim")
        for idx, item in enumerate(self.menu):
            pointer = "➤ " if idx == self.menu_index else "  "
            content.append(f"{pointer}{item.name}  {format_money(item.price)}\n")

        content.append("\nLines\n", style="bold")
        if not self.lines:
            content.append("  (no items yet)\n", style="dim")
        for line in self.lines:
            content.append(f"  {line.name} x{line.qty}  {format_money(line_total(line))}\n")
        content.append(f"\nTotal: {format_money(order_total(self.lines))}", style="bold")

        body.update(content)
        error_widget.update(self.error or "")
