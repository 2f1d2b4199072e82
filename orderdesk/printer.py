"""Receipt hand-off surfaces: browser print dialog and ESC/POS thermal printer."""

from __future__ import annotations

import logging
import os
import tempfile
import webbrowser
from pathlib import Path
from typing import Protocol

from orderdesk.config import (
    PRINTER_CHARS_PER_LINE,
    PRINTER_FONT_PATH,
    PRINTER_FONT_SIZE,
    PRINTER_LEFT_INDENT_PX,
    PRINTER_LOGO_MAX_WIDTH_PX,
    PRINTER_USB_PRODUCT_ID,
    PRINTER_USB_VENDOR_ID,
    PRINTER_WIDTH_PX,
)
from orderdesk.errors import PresentationUnavailable
from orderdesk.export import receipt_lines, render_receipt
from orderdesk.models import Order, ShopProfile
from orderdesk.shop import decode_logo

logger = logging.getLogger(__name__)

_FONT_OVERRIDE_ENV = "ORDERDESK_PRINTER_FONT_PATH"
_LINUX_FONT_FALLBACKS = (
    "/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/TTF/DejaVuSansMono.ttf",
    "/usr/share/fonts/dejavu/DejaVuSansMono.ttf",
    "/usr/share/fonts/liberation/LiberationMono-Regular.ttf",
)
# Extra vertical headroom so descenders are not clipped on thermal output.
_LINE_EXTRA_PX = 8


class ReceiptSurface(Protocol):
    name: str

    def present(self, order: Order, shop: ShopProfile) -> None: ...


class BrowserReceiptSurface:
    """Writes the HTML receipt to a file and opens it in the default browser.

    The document fires its own print dialog shortly after it loads.
    """

    name = "browser"

    def __init__(self, out_dir: str | Path | None = None) -> None:
        self.out_dir = Path(out_dir) if out_dir else Path(tempfile.gettempdir()) / "orderdesk-receipts"

    def write(self, order: Order, shop: ShopProfile) -> Path:
        path = self.out_dir / f"receipt_{order.id}.html"
        try:
            self.out_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(render_receipt(order, shop), encoding="utf-8")
        except OSError as exc:
            raise PresentationUnavailable(f"Cannot write receipt {path}: {exc}") from exc
        return path

    def present(self, order: Order, shop: ShopProfile) -> None:
        path = self.write(order, shop)
        try:
            opened = webbrowser.open(path.as_uri(), new=1)
        except webbrowser.Error as exc:
            raise PresentationUnavailable(f"Cannot open browser: {exc}") from exc
        if not opened:
            raise PresentationUnavailable(f"No browser available to show {path}")
        logger.info("receipt %s opened in browser", order.id)


def resolve_printer_font_path() -> str:
    """
    Resolve a monospaced printer font path.

    Resolution order:
    1. ORDERDESK_PRINTER_FONT_PATH (if set)
    2. PRINTER_FONT_PATH
    3. Known Linux fallbacks
    """
    env_override = os.environ.get(_FONT_OVERRIDE_ENV, "").strip()
    candidates: list[str] = []
    if env_override:
        candidates.append(env_override)
    candidates.append(PRINTER_FONT_PATH)
    candidates.extend(_LINUX_FONT_FALLBACKS)

    seen: set[str] = set()
    for candidate in candidates:
        if not candidate or candidate in seen:
            continue
        seen.add(candidate)
        if Path(candidate).is_file():
            return candidate

    raise PresentationUnavailable(
        f"No usable printer font found. Set {_FONT_OVERRIDE_ENV} to a valid .ttf/.otf file. "
        f"Tried: {', '.join(seen)}"
    )


def _render_line(text: str, font: object) -> object:
    from PIL import Image, ImageDraw

    measure = Image.new("1", (1, 1), color=1)
    bbox = ImageDraw.Draw(measure).textbbox((0, 0), text or " ", font=font)
    text_height = bbox[3] - bbox[1]
    canvas_height = max(PRINTER_FONT_SIZE, text_height) + _LINE_EXTRA_PX

    img = Image.new("1", (PRINTER_WIDTH_PX, canvas_height), color=1)
    draw = ImageDraw.Draw(img)
    # Offset by bbox top so descenders (g, y, p, etc.) are not clipped.
    y = (canvas_height - text_height) // 2 - bbox[1]
    draw.text((PRINTER_LEFT_INDENT_PX, y), text, font=font, fill=0)
    return img


def _render_logo(data_url: str) -> object:
    from PIL import Image

    logo = decode_logo(data_url).convert("L")
    if logo.width > PRINTER_LOGO_MAX_WIDTH_PX:
        height = max(1, logo.height * PRINTER_LOGO_MAX_WIDTH_PX // logo.width)
        logo = logo.resize((PRINTER_LOGO_MAX_WIDTH_PX, height))
    canvas = Image.new("1", (PRINTER_WIDTH_PX, logo.height), color=1)
    canvas.paste(logo.convert("1"), ((PRINTER_WIDTH_PX - logo.width) // 2, 0))
    return canvas


class ThermalReceiptSurface:
    """Prints the plain-text receipt on a USB ESC/POS printer, one image per line."""

    name = "thermal"

    def __init__(
        self,
        vendor_id: int = PRINTER_USB_VENDOR_ID,
        product_id: int = PRINTER_USB_PRODUCT_ID,
        chars_per_line: int = PRINTER_CHARS_PER_LINE,
    ) -> None:
        self.vendor_id = vendor_id
        self.product_id = product_id
        self.chars_per_line = chars_per_line

    def _open(self) -> object:
        try:
            from escpos.printer import Usb

            return Usb(self.vendor_id, self.product_id)
        except Exception as exc:
            raise PresentationUnavailable(f"Printer unavailable: {exc}") from exc

    def present(self, order: Order, shop: ShopProfile) -> None:
        from PIL import ImageFont

        font_path = resolve_printer_font_path()
        try:
            font = ImageFont.truetype(font_path, PRINTER_FONT_SIZE)
        except OSError as exc:
            raise PresentationUnavailable(f"Cannot load printer font {font_path}: {exc}") from exc

        printer = self._open()
        try:
            if shop.logo:
                try:
                    printer.image(_render_logo(shop.logo))
                except ValueError as exc:
                    logger.warning("skipping logo on receipt %s: %s", order.id, exc)
            for line in receipt_lines(order, shop, width=self.chars_per_line):
                printer.image(_render_line(line, font))
            printer.cut()
        except Exception as exc:
            raise PresentationUnavailable(f"Printing receipt {order.id} failed: {exc}") from exc
        logger.info("receipt %s printed on thermal printer", order.id)


def check_printer_dependencies() -> tuple[bool, str]:
    """Check whether thermal printer dependencies are importable."""
    try:
        from escpos.printer import Usb  # noqa: F401
        from PIL import ImageFont

        ImageFont.truetype(resolve_printer_font_path(), PRINTER_FONT_SIZE)
    except Exception as exc:
        return (False, f"Printer deps unavailable: {exc}")
    return (True, "Printer ready")


SURFACES = {
    BrowserReceiptSurface.name: BrowserReceiptSurface,
    ThermalReceiptSurface.name: ThermalReceiptSurface,
}


def make_surface(name: str) -> ReceiptSurface:
    try:
        return SURFACES[name]()
    except KeyError:
        raise ValueError(f"Unknown receipt surface {name!r}; choose from {', '.join(SURFACES)}") from None
