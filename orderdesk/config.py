"""Runtime configuration defaults for persistence, paging and printing."""

from __future__ import annotations

import os

DB_PATH = os.environ.get("ORDERDESK_DB_PATH", "data/orderdesk.db")
DEBUG_LOG_PATH = os.environ.get("ORDERDESK_DEBUG_LOG", "/tmp/orderdesk-debug.log")

# Independent logical keys in the key-value store.
ORDERS_KEY = "orders"
COMPLETED_KEY = "completed_orders"
MENU_KEY = "menu"
SHOP_KEY = "shop_info"

PAGE_SIZE = 6
ANALYTICS_BUCKETS = 8
CURRENCY_LABEL = "PKR"
DEFAULT_PAYMENT_TYPE = "CASH"

# Delay before the receipt document triggers its own print dialog.
PRINT_DELAY_MS = 500

PRINTER_USB_VENDOR_ID = 0x28E9
PRINTER_USB_PRODUCT_ID = 0x0289
PRINTER_WIDTH_PX = 384
PRINTER_FONT_SIZE = 18
PRINTER_FONT_PATH = "/System/Library/Fonts/Menlo.ttc"
PRINTER_LEFT_INDENT_PX = 8
PRINTER_CHARS_PER_LINE = 32
PRINTER_LOGO_MAX_WIDTH_PX = 240
