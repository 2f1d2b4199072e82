"""Logging setup; records go to a file so the terminal UI stays intact."""

from __future__ import annotations

import logging
from pathlib import Path

from orderdesk.config import DEBUG_LOG_PATH

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(path: str | Path = DEBUG_LOG_PATH, level: int = logging.DEBUG) -> None:
    root = logging.getLogger("orderdesk")
    root.setLevel(level)
    try:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(path, encoding="utf-8")
    except OSError:
        # Logging must never interfere with app flow.
        handler = logging.NullHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.handlers = [handler]
    root.propagate = False
