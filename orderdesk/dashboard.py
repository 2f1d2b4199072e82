"""Main Textual app class."""

from __future__ import annotations

import logging
from pathlib import Path

from rich.text import Text
from textual.app import App, ComposeResult
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.events import Key
from textual.reactive import reactive
from textual.widgets import Header, Static

from orderdesk.analytics import hourly_order_counts, status_counts
from orderdesk.archive import CLEAR_PROMPT, remove_day_prompt
from orderdesk.confirm_modal import ConfirmModal
from orderdesk.edit_modal import EditOrderModal
from orderdesk.errors import InvalidOrder, OrderDeskError
from orderdesk.export import write_csv
from orderdesk.models import ALL, CompletionRecord, Order, OrderStatus, OrderType
from orderdesk.menu_modal import MenuModal
from orderdesk.money import format_money
from orderdesk.order_modal import OrderModal
from orderdesk.printer import ReceiptSurface
from orderdesk.query import OrderQuery
from orderdesk.rendering import format_day_group, format_order_row, sparkline, status_style
from orderdesk.state import AppState

logger = logging.getLogger(__name__)

_STATUS_FILTERS = [ALL] + [status.value for status in OrderStatus]
_TYPE_FILTERS = [ALL] + [order_type.value for order_type in OrderType]
_STATUS_CYCLE = list(OrderStatus)
_MODALS = (ConfirmModal, OrderModal, EditOrderModal, MenuModal)


class OrderDeskApp(App):
    """A Textual dashboard over the live orders and the completion archive."""

    TITLE = "Order Desk"
    SUB_TITLE = "Orders / Completed"

    CSS = """
    Screen {
        layout: vertical;
    }

    #main-layout {
        height: 1fr;
    }

    #orders-pane {
        width: 3fr;
        border: round $primary;
        padding: 1;
    }

    #side-pane {
        width: 2fr;
        border: round $secondary;
        padding: 1;
    }

    #search-bar {
        border: heavy $secondary;
        padding: 0 1;
        margin-bottom: 1;
        height: 4;
    }

    #orders-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    #completed-list {
        height: 1fr;
        border: tall $surface;
        padding: 0 1;
    }

    .pane-title {
        text-style: bold;
        margin-bottom: 1;
    }
    """

    input_state = reactive("normal")
    selected_index = reactive(0)
    day_index = reactive(0)
    record_index = reactive(0)

    BINDINGS = [
        ("up", "move_selection(-1)", "Previous order"),
        ("down", "move_selection(1)", "Next order"),
        ("ctrl+c", "cancel_search", "Exit search"),
        ("ctrl+q", "quit", "Quit"),
    ]

    def __init__(self, state: AppState, surface: ReceiptSurface, export_dir: str | Path = ".") -> None:
        super().__init__()
        self.state = state
        self.surface = surface
        self.export_dir = Path(export_dir)
        self.query_state = OrderQuery()
        self.page_orders: list[Order] = []
        self.system_status = ""
        self._unsubscribe = [
            state.subscribe_orders(lambda _: self._refresh_all()),
            state.subscribe_archive(lambda _: self._refresh_side()),
            state.subscribe_menu(lambda _: self._refresh_side()),
            state.subscribe_warnings(self._set_status),
        ]

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-layout"):
            with Vertical(id="orders-pane"):
                yield Static(id="search-bar")
                yield Static("(no orders yet)", id="orders-list")
            with Vertical(id="side-pane"):
                yield Static("Completed", classes="pane-title", id="completed-title")
                yield Static(id="completed-list")
                yield Static(id="stats")

    def on_mount(self) -> None:
        self._refresh_all()

    def on_unmount(self) -> None:
        for unsubscribe in self._unsubscribe:
            unsubscribe()

    def _set_status(self, message: str) -> None:
        self.system_status = message
        self._refresh_search_bar()

    def on_key(self, event: Key) -> None:
        if isinstance(self.screen, _MODALS):
            return

        if self.input_state == "search":
            self._search_key(event)
            return

        if not event.is_printable or not event.character or len(event.character) != 1:
            return

        handlers = {
            "/": self._start_search,
            "n": self._open_new_order,
            "i": self._open_edit_order,
            "m": self._open_menu,
            "j": lambda: self.action_move_selection(1),
            "k": lambda: self.action_move_selection(-1),
            "h": self._prev_page,
            "l": self._next_page,
            "s": self._advance_selected_status,
            "d": self._delete_selected_order,
            "f": self._cycle_status_filter,
            "t": self._cycle_type_filter,
            "p": self._print_selected,
            "e": self._export_csv,
            "g": self._cycle_day,
            "o": self._cycle_record,
            "r": self._remove_selected_record,
            "x": self._confirm_remove_day,
            "c": self._confirm_clear_completed,
        }
        handler = handlers.get(event.character)
        if handler is None:
            return
        handler()
        event.stop()

    def _search_key(self, event: Key) -> None:
        if event.key in {"escape", "enter"}:
            self.input_state = "normal"
        elif event.key == "backspace":
            self.query_state.set_text(self.query_state.text[:-1])
            self.selected_index = 0
        elif event.is_printable and event.character:
            self.query_state.set_text(self.query_state.text + event.character)
            self.selected_index = 0
        else:
            return
        self._refresh_orders()
        self._refresh_search_bar()
        event.stop()

    def _start_search(self) -> None:
        self.input_state = "search"
        self._refresh_search_bar()

    def action_cancel_search(self) -> None:
        if self.input_state != "search":
            return
        self.input_state = "normal"
        self.query_state.set_text("")
        self.selected_index = 0
        self._refresh_all()

    def action_move_selection(self, delta: int) -> None:
        if isinstance(self.screen, _MODALS):
            return
        if not self.page_orders:
            return
        self.selected_index = (self.selected_index + delta) % len(self.page_orders)
        self._refresh_orders()

    def _prev_page(self) -> None:
        self.query_state.prev_page()
        self.selected_index = 0
        self._refresh_orders()

    def _next_page(self) -> None:
        self.query_state.next_page()
        self.selected_index = 0
        self._refresh_orders()

    def _cycle_status_filter(self) -> None:
        idx = _STATUS_FILTERS.index(self.query_state.status)
        self.query_state.set_status(_STATUS_FILTERS[(idx + 1) % len(_STATUS_FILTERS)])
        self.selected_index = 0
        self._refresh_orders()
        self._refresh_search_bar()

    def _cycle_type_filter(self) -> None:
        idx = _TYPE_FILTERS.index(self.query_state.order_type)
        self.query_state.set_type(_TYPE_FILTERS[(idx + 1) % len(_TYPE_FILTERS)])
        self.selected_index = 0
        self._refresh_orders()
        self._refresh_search_bar()

    def _selected_order(self) -> Order | None:
        if not (0 <= self.selected_index < len(self.page_orders)):
            return None
        return self.page_orders[self.selected_index]

    def _open_new_order(self) -> None:
        def created(order: Order | None) -> None:
            if order is None:
                return
            self.state.orders.upsert(order)
            self._set_status(f"Order {order.id} saved")

        self.push_screen(OrderModal(self.state.menu.items(), self.state.orders.ids()), created)

    def _open_edit_order(self) -> None:
        order = self._selected_order()
        if order is None:
            return

        def edited(changes: dict | None) -> None:
            if not changes:
                return
            try:
                self.state.orders.patch(order.id, **changes)
            except InvalidOrder as exc:
                self._set_status(f"Edit rejected: {exc}")
                return
            self._set_status(f"Order {order.id} updated")

        self.push_screen(EditOrderModal(order), edited)

    def _open_menu(self) -> None:
        self.push_screen(MenuModal(self.state.menu))

    def _advance_selected_status(self) -> None:
        order = self._selected_order()
        if order is None:
            return
        next_status = _STATUS_CYCLE[(_STATUS_CYCLE.index(order.status) + 1) % len(_STATUS_CYCLE)]
        self.state.set_status(order.id, next_status)
        self._set_status(f"Order {order.id} → {next_status.value}")

    def _delete_selected_order(self) -> None:
        order = self._selected_order()
        if order is None:
            return
        if self.state.orders.delete(order.id):
            self._set_status(f"Order {order.id} deleted")

    def _print_selected(self) -> None:
        order = self._selected_order()
        if order is None:
            return
        try:
            self.state.print_receipt(order.id, self.surface)
        except OrderDeskError as exc:
            logger.warning("print %s failed: %s", order.id, exc)
            self._set_status(f"Print failed: {exc}")
            return
        self._set_status(f"Receipt for {order.id} sent to {self.surface.name}")

    def _export_csv(self) -> None:
        try:
            path = write_csv(self.state.orders.orders(), self.export_dir)
        except OrderDeskError as exc:
            self._set_status(f"Export failed: {exc}")
            return
        self._set_status(f"CSV written: {path}")

    def _cycle_day(self) -> None:
        groups = self.state.completed_by_day()
        if not groups:
            return
        self.day_index = (self.day_index + 1) % len(groups)
        self.record_index = 0
        self._refresh_side()

    def _selected_day_records(self) -> list[CompletionRecord]:
        groups = self.state.completed_by_day()
        if not groups:
            return []
        return groups[min(self.day_index, len(groups) - 1)].records

    def _cycle_record(self) -> None:
        records = self._selected_day_records()
        if not records:
            return
        self.record_index = (self.record_index + 1) % len(records)
        self._refresh_side()

    def _remove_selected_record(self) -> None:
        records = self._selected_day_records()
        if not records:
            return
        record = records[min(self.record_index, len(records) - 1)]
        if self.state.remove_completed(record.id):
            self.record_index = max(0, self.record_index - 1)
            self._refresh_side()
            self._set_status(f"Completed order {record.id} removed")

    def _confirm_remove_day(self) -> None:
        groups = self.state.completed_by_day()
        if not groups:
            return
        day = groups[min(self.day_index, len(groups) - 1)].day
        prompt = remove_day_prompt(day, self.state.archive.count_day(day))

        def answered(confirmed: bool | None) -> None:
            removed = self.state.remove_completed_day(day, lambda _prompt: bool(confirmed))
            if removed:
                self.day_index = 0
                self.record_index = 0
                self._set_status(f"Removed {removed} completed order(s)")

        self.push_screen(ConfirmModal(prompt), answered)

    def _confirm_clear_completed(self) -> None:
        if not len(self.state.archive):
            return

        def answered(confirmed: bool | None) -> None:
            if self.state.clear_completed(lambda _prompt: bool(confirmed)):
                self.day_index = 0
                self.record_index = 0
                self._set_status("Completed orders cleared")

        self.push_screen(ConfirmModal(CLEAR_PROMPT), answered)

    def _refresh_all(self) -> None:
        self._refresh_orders()
        self._refresh_search_bar()
        self._refresh_side()

    def _refresh_orders(self) -> None:
        try:
            orders_widget = self.query_one("#orders-list", Static)
        except NoMatches:
            return
        page = self.query_state.apply(self.state.orders.orders())
        self.page_orders = page.items
        if self.selected_index >= len(self.page_orders):
            self.selected_index = max(0, len(self.page_orders) - 1)

        lines = Text()
        lines.append(f"Showing {page.total} order(s)  Page {page.page} of {page.total_pages}\n\n", style="dim")
        if not self.page_orders:
            lines.append("(no orders)")
        for idx, order in enumerate(self.page_orders):
            if idx:
                lines.append("\n")
            lines.append("➤ " if idx == self.selected_index else "  ")
            lines.append_text(format_order_row(order))
        orders_widget.update(lines)

    def _refresh_search_bar(self) -> None:
        try:
            bar = self.query_one("#search-bar", Static)
        except NoMatches:
            return
        text = Text()
        text.append("Search: ", style="bold")
        text.append(self.query_state.text or "", style="reverse" if self.input_state == "search" else "")
        text.append(f"   Status: {self.query_state.status}   Type: {self.query_state.order_type}\n")
        text.append("/ search  n new  i edit  s status  d delete  p print  e csv  m menu  f/t filters  h/l page  g/o/r/x/c completed\n", style="dim")
        text.append(self.system_status or "Ready")
        bar.update(text)

    def _refresh_side(self) -> None:
        try:
            completed_widget = self.query_one("#completed-list", Static)
            title = self.query_one("#completed-title", Static)
            stats_widget = self.query_one("#stats", Static)
        except NoMatches:
            return
        groups = self.state.completed_by_day()
        title.update(f"Completed ({len(self.state.archive)})")
        if not groups:
            completed_widget.update("No completed orders")
        else:
            body = Text()
            for idx, group in enumerate(groups):
                if idx:
                    body.append("\n")
                body.append_text(format_day_group(group, selected=idx == self.day_index, record_index=self.record_index))
            completed_widget.update(body)

        orders = self.state.orders.orders()
        counts = status_counts(orders)
        stats = Text()
        stats.append("Quick stats\n", style="bold")
        stats.append(f"Total orders: {counts['total']}\n")
        for status in (OrderStatus.PENDING, OrderStatus.PREPARING):
            stats.append(f" {status.value} ", style=status_style(status))
            stats.append(f" {counts[status.value]}  ")
        stats.append("\n")
        stats.append_text(sparkline(hourly_order_counts(orders)))
        menu = self.state.menu.items()
        stats.append(f"\n\nMenu ({len(menu)})\n", style="bold")
        for item in menu:
            stats.append(f"  {item.name}  {format_money(item.price)}\n")
        stats_widget.update(stats)
