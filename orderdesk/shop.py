"""Shop profile singleton and logo encoding."""

from __future__ import annotations

import base64
import io
import logging
from dataclasses import replace
from pathlib import Path
from typing import Callable

from PIL import Image, UnidentifiedImageError

from orderdesk.events import Listeners
from orderdesk.models import ShopProfile

logger = logging.getLogger(__name__)


def logo_data_url(path: str | Path) -> str:
    """Encode an image file as a PNG ``data:`` URL for embedding in receipts."""
    try:
        with Image.open(path) as img:
            buffer = io.BytesIO()
            img.save(buffer, format="PNG")
    except (OSError, UnidentifiedImageError) as exc:
        raise ValueError(f"Cannot read logo {path}: {exc}") from exc
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{encoded}"


def decode_logo(data_url: str) -> Image.Image:
    """Decode a ``data:`` URL produced by :func:`logo_data_url`."""
    _, _, payload = data_url.partition(",")
    try:
        return Image.open(io.BytesIO(base64.b64decode(payload)))
    except (ValueError, OSError, UnidentifiedImageError) as exc:
        raise ValueError(f"Invalid logo data: {exc}") from exc


class ShopSettings:
    """Holds the process-wide ShopProfile; mutated only through save()."""

    def __init__(self, profile: ShopProfile | None = None) -> None:
        self._profile = profile or ShopProfile()
        self.listeners: Listeners[ShopProfile] = Listeners()

    @property
    def profile(self) -> ShopProfile:
        return replace(self._profile)

    def subscribe(self, callback: Callable[[ShopProfile], None]) -> Callable[[], None]:
        return self.listeners.subscribe(callback)

    def save(self, profile: ShopProfile) -> ShopProfile:
        self._profile = replace(profile)
        logger.info("shop profile saved name=%r", profile.name)
        self.listeners.emit(self.profile)
        return self.profile
