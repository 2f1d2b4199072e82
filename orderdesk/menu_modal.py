"""Modal for adding, renaming, repricing and deleting menu items."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Container
from textual.events import Key
from textual.screen import ModalScreen
from textual.widgets import Static

from orderdesk.menu import MenuCatalog
from orderdesk.models import MenuItem
from orderdesk.money import format_money


def parse_price(raw: str) -> float:
    try:
        return float(raw.strip())
    except ValueError:
        raise ValueError(f"Price {raw!r} is not a number") from None


class MenuModal(ModalScreen[None]):
    """Edits the catalog in place; every change is saved as it is made."""

    CSS = """
    MenuModal {
        align: center middle;
        background: $background 60%;
    }

    #menu-dialog {
        width: 64;
        height: auto;
        border: round $secondary;
        background: $panel;
        padding: 1 2;
    }

    #menu-title {
        text-style: bold;
        margin-bottom: 1;
        color: white;
    }

    #menu-body {
        color: white;
        margin-bottom: 1;
    }

    #menu-error {
        color: #ffb3b3;
        margin-bottom: 1;
    }

    #menu-help {
        color: #dddddd;
    }
    """

    def __init__(self, catalog: MenuCatalog) -> None:
        super().__init__()
        self.catalog = catalog
        self.item_index = 0
        self.editing: MenuItem | None = None
        self.fields = {"name": "", "price": ""}
        self.focus_field = "name"
        self.error = ""

    def compose(self) -> ComposeResult:
        with Container(id="menu-dialog"):
            yield Static("Manage Menu", id="menu-title")
            yield Static(id="menu-body")
            yield Static(id="menu-error")
            yield Static(
                "Type text. Tab next field. ↑/↓ item, Enter edit, Ctrl+N new, Ctrl+D delete. "
                "Ctrl+S save. Esc close.",
                id="menu-help",
            )

    def on_mount(self) -> None:
        self._refresh_content()

    def _selected(self) -> MenuItem | None:
        items = self.catalog.items()
        if not items:
            return None
        return items[min(self.item_index, len(items) - 1)]

    def _reset_form(self) -> None:
        self.editing = None
        self.fields = {"name": "", "price": ""}
        self.focus_field = "name"

    def on_key(self, event: Key) -> None:
        key = event.key
        if key in {"escape", "ctrl+c"}:
            self.dismiss(None)
            event.stop()
            return
        try:
            if key == "ctrl+s":
                self._save()
            elif key == "ctrl+n":
                self._reset_form()
            elif key == "ctrl+d":
                self._delete_selected()
            elif key == "enter":
                self._edit_selected()
            elif key == "tab":
                self.focus_field = "price" if self.focus_field == "name" else "name"
            elif key in {"up", "down"} and len(self.catalog):
                delta = -1 if key == "up" else 1
                self.item_index = (self.item_index + delta) % len(self.catalog)
            elif key == "backspace":
                self.fields[self.focus_field] = self.fields[self.focus_field][:-1]
            elif event.is_printable and event.character:
                self.fields[self.focus_field] += event.character
            else:
                return
            self.error = ""
        except ValueError as exc:
            self.error = str(exc)
        self._refresh_content()
        event.stop()

    def _edit_selected(self) -> None:
        item = self._selected()
        if item is None:
            return
        self.editing = item
        self.fields = {"name": item.name, "price": f"{item.price:g}"}

    def _save(self) -> None:
        name = self.fields["name"].strip()
        price = parse_price(self.fields["price"] or "0")
        if self.editing is None:
            self.catalog.add(name, price)
            self.item_index = 0
        else:
            self.catalog.update(self.editing.id, name=name, price=price)
        self._reset_form()

    def _delete_selected(self) -> None:
        item = self._selected()
        if item is None:
            return
        self.catalog.delete(item.id)
        if self.editing is not None and self.editing.id == item.id:
            self._reset_form()
        self.item_index = max(0, min(self.item_index, len(self.catalog) - 1))

    def _refresh_content(self) -> None:
        body = self.query_one("#menu-body", Static)
        error_widget = self.query_one("#menu-error", Static)

        content = Text(style="white")
        items = self.catalog.items()
        if not items:
            content.append("  (menu is empty)\n", style="dim")
        for idx, item in enumerate(items):
            pointer = "➤ " if idx == self.item_index else "  "
            content.append(f"{pointer}{item.name}  {format_money(item.price)}\n")

        heading = f"Edit {self.editing.id}" if self.editing else "New item"
        content.append(f"\n{heading}\n", style="bold")
        for name in ("name", "price"):
            pointer = "➤ " if name == self.focus_field else "  "
            content.append(f"{pointer}{name.title()}: {self.fields[name]}\n")

        body.update(content)
        error_widget.update(self.error or "")
