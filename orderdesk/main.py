"""Entry point for the order desk dashboard and its batch commands."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace

from orderdesk.config import DB_PATH, DEBUG_LOG_PATH
from orderdesk.errors import InvalidOrder, MenuItemNotFound, OrderDeskError, OrderNotFound
from orderdesk.export import write_csv
from orderdesk.logs import configure_logging
from orderdesk.models import OrderStatus
from orderdesk.persistence import SqliteKeyValueStore
from orderdesk.printer import SURFACES, check_printer_dependencies, make_surface
from orderdesk.shop import logo_data_url
from orderdesk.state import AppState

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="orderdesk", description="Restaurant order desk")
    parser.add_argument("--db", default=DB_PATH, help="SQLite file holding persisted state")
    parser.add_argument("--log", default=DEBUG_LOG_PATH, help="debug log file")
    parser.add_argument("--surface", choices=sorted(SURFACES), default="browser", help="receipt surface")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("run", help="open the dashboard (default)")

    export = sub.add_parser("export-csv", help="write orders_<date>.csv for the live orders")
    export.add_argument("--out", default=".", help="output directory")

    sub.add_parser("check-printer", help="verify the thermal printer stack loads")

    receipt = sub.add_parser("print", help="send one order's receipt to the receipt surface")
    receipt.add_argument("order_id")

    menu = sub.add_parser("menu-add", help="add a menu item")
    menu.add_argument("name")
    menu.add_argument("price", type=float)

    sub.add_parser("menu-list", help="list menu items")

    menu_update = sub.add_parser("menu-update", help="rename or reprice a menu item")
    menu_update.add_argument("item_id")
    menu_update.add_argument("--name")
    menu_update.add_argument("--price", type=float)

    menu_delete = sub.add_parser("menu-delete", help="remove a menu item")
    menu_delete.add_argument("item_id")

    order = sub.add_parser("order-update", help="change status, assignment or payment of a live order")
    order.add_argument("order_id")
    order.add_argument("--status", choices=[status.value for status in OrderStatus])
    order.add_argument("--assigned")
    order.add_argument("--payment-type")
    order.add_argument("--note", help="delivery note (delivery orders only)")

    completed = sub.add_parser("completed-remove", help="drop one record from the completed archive")
    completed.add_argument("order_id")

    shop = sub.add_parser("shop", help="update the shop profile")
    shop.add_argument("--name")
    shop.add_argument("--address")
    shop.add_argument("--phone")
    shop.add_argument("--tax-number")
    shop.add_argument("--logo", help="image file to embed as the receipt logo")
    return parser


def _update_shop(state: AppState, args: argparse.Namespace) -> None:
    changes = {
        key: value
        for key, value in {
            "name": args.name,
            "address": args.address,
            "phone": args.phone,
            "tax_number": args.tax_number,
        }.items()
        if value is not None
    }
    if args.logo:
        changes["logo"] = logo_data_url(args.logo)
    state.shop.save(replace(state.shop.profile, **changes))


def _update_order(state: AppState, args: argparse.Namespace) -> None:
    current = state.orders.get(args.order_id)
    changes = {
        key: value
        for key, value in {
            "status": args.status,
            "assigned": args.assigned,
            "payment_type": args.payment_type,
        }.items()
        if value is not None
    }
    if args.note is not None:
        if current.delivery is None:
            raise InvalidOrder(f"Order {current.id!r} is not a delivery order")
        changes["delivery"] = replace(current.delivery, note=args.note)
    if changes:
        state.orders.patch(current.id, **changes)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.log)

    if args.command == "check-printer":
        ok, message = check_printer_dependencies()
        print(message)
        return 0 if ok else 1

    store = SqliteKeyValueStore(args.db)
    try:
        store.bootstrap_schema()
    except OrderDeskError as exc:
        # Fall back to defaults; every save will surface its own warning.
        logger.warning("persistence unavailable: %s", exc)
    state = AppState.open(store)
    if args.command not in (None, "run"):
        state.subscribe_warnings(lambda message: print(f"warning: {message}", file=sys.stderr))

    try:
        if args.command in (None, "run"):
            from orderdesk.dashboard import OrderDeskApp

            OrderDeskApp(state, make_surface(args.surface)).run()
        elif args.command == "export-csv":
            print(write_csv(state.orders.orders(), args.out))
        elif args.command == "print":
            state.print_receipt(args.order_id, make_surface(args.surface))
        elif args.command == "menu-add":
            item = state.menu.add(args.name, args.price)
            print(f"{item.id} {item.name} {item.price:.2f}")
        elif args.command == "menu-list":
            for item in state.menu:
                print(f"{item.id} {item.name} {item.price:.2f}")
        elif args.command == "menu-update":
            changes = {k: v for k, v in {"name": args.name, "price": args.price}.items() if v is not None}
            item = state.menu.update(args.item_id, **changes)
            print(f"{item.id} {item.name} {item.price:.2f}")
        elif args.command == "menu-delete":
            if not state.menu.delete(args.item_id):
                raise MenuItemNotFound(args.item_id)
        elif args.command == "order-update":
            _update_order(state, args)
        elif args.command == "completed-remove":
            if not state.remove_completed(args.order_id):
                raise OrderNotFound(args.order_id)
        elif args.command == "shop":
            _update_shop(state, args)
    except (OrderDeskError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        state.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
