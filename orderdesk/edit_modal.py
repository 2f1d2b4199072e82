"""Keyboard-driven modal for editing an existing order."""

from __future__ import annotations

import copy
from typing import Any

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from orderdesk.errors import InvalidOrder
from orderdesk.models import DeliveryInfo, Order, OrderStatus, OrderType
from orderdesk.money import format_money, line_total, order_total
from orderdesk.store import order_changes, validate_order

_STATUSES = list(OrderStatus)
_DELIVERY_FIELDS = ("name", "phone", "address", "note")


class EditOrderModal(ModalScreen[dict[str, Any] | None]):
    """Edit quantities, status, assignment, payment and delivery details.

    Dismisses with the changed fields, ready for ``OrderStore.patch``, or None.
    """

    CSS = """
    EditOrderModal {
        align: center middle;
        background: $background 60%;
    }

    #edit-dialog {
        width: 72;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #edit-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #edit-body {
        color: white;
        margin-bottom: 1;
    }

    #edit-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #edit-help {
        color: #dddddd;
    }
    """

    def __init__(self, order: Order) -> None:
        super().__init__()
        self.original = order
        self.draft = copy.deepcopy(order)
        if self.draft.type is OrderType.DELIVERY and self.draft.delivery is None:
            self.draft.delivery = DeliveryInfo()
        self.focus_field = "assigned"
        self.line_index = 0
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(id="edit-dialog"):
            yield Static(f"Order {self.original.id}", id="edit-title")
            yield Static(id="edit-body")
            yield Static(id="edit-error")
            yield Static(
                "Type text. Tab next field. Ctrl+T status. ↑/↓ line, ←/→ qty. Ctrl+S save. Esc cancel.",
                id="edit-help",
            )

    def on_mount(self) -> None:
        self._refresh_content()

    def _editable_fields(self) -> list[str]:
        fields = ["assigned", "payment"]
        if self.draft.type is OrderType.DELIVERY:
            fields.extend(_DELIVERY_FIELDS)
        return fields

    def _get(self, name: str) -> str:
        if name == "assigned":
            return self.draft.assigned
        if name == "payment":
            return self.draft.payment_type or ""
        return getattr(self.draft.delivery, name)

    def _set(self, name: str, value: str) -> None:
        if name == "assigned":
            self.draft.assigned = value
        elif name == "payment":
            self.draft.payment_type = value or None
        else:
            setattr(self.draft.delivery, name, value)

    def on_key(self, event: Key) -> None:
        key = event.key
        if key in {"escape", "ctrl+c"}:
            self.dismiss(None)
        elif key == "ctrl+s":
            self._submit()
        elif key == "ctrl+t":
            idx = _STATUSES.index(self.draft.status)
            self.draft.status = _STATUSES[(idx + 1) % len(_STATUSES)]
        elif key == "tab":
            editable = self._editable_fields()
            self.focus_field = editable[(editable.index(self.focus_field) + 1) % len(editable)]
        elif key in {"up", "down"} and self.draft.items:
            delta = -1 if key == "up" else 1
            self.line_index = (self.line_index + delta) % len(self.draft.items)
        elif key in {"left", "right"} and self.draft.items:
            line = self.draft.items[self.line_index]
            line.qty = max(1, line.qty + (1 if key == "right" else -1))
        elif key == "backspace":
            self._set(self.focus_field, self._get(self.focus_field)[:-1])
        elif event.is_printable and event.character:
            self._set(self.focus_field, self._get(self.focus_field) + event.character)
        else:
            return
        self.error = ""
        self._refresh_content()
        event.stop()

    def _submit(self) -> None:
        draft = copy.deepcopy(self.draft)
        draft.assigned = draft.assigned.strip() or "Unassigned"
        draft.payment_type = (draft.payment_type or "").strip() or None
        try:
            validate_order(draft)
        except InvalidOrder as exc:
            self.error = str(exc)
            self._refresh_content()
            return
        self.dismiss(order_changes(self.original, draft))

    def _refresh_content(self) -> None:
        body = self.query_one("#edit-body", Static)
        error_widget = self.query_one("#edit-error", Static)

        content = Text(style="white")
        content.append(f"{self.draft.customer} • {self.draft.type.value}\n", style="bold")
        content.append(f"Status: {self.draft.status.value}\n")
        for name in self._editable_fields():
            pointer = "➤ " if name == self.focus_field else "  "
            content.append(f"{pointer}{name.title()}: {self._get(name)}\n")

        content.append("\nItems\n", style="bold")
        for idx, line in enumerate(self.draft.items):
            pointer = "➤ " if idx == self.line_index else "  "
            content.append(f"{pointer}{line.name} x{line.qty}  {format_money(line_total(line))}\n")
        content.append(f"\nTotal: {format_money(order_total(self.draft))}", style="bold")

        body.update(content)
        error_widget.update(self.error or "")
