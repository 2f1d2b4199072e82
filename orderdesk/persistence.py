"""Key-value persistence for JSON-shaped state blobs."""

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
from pathlib import Path
from typing import Any, Protocol

from orderdesk.config import DB_PATH
from orderdesk.errors import PersistenceUnavailable
from orderdesk.models import utc_now_iso

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def load(self, key: str) -> Any | None: ...

    def save(self, key: str, blob: Any) -> None: ...


class SqliteKeyValueStore:
    """Stores each key as one JSON text row in a SQLite table."""

    def __init__(self, db_path: str | Path = DB_PATH) -> None:
        self.db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(self.db_path)

    def bootstrap_schema(self) -> None:
        """Create the key-value table if it does not already exist."""
        try:
            with contextlib.closing(self._connect()) as conn, conn:
                conn.executescript(
                    """
                    CREATE TABLE IF NOT EXISTS kv (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        updated_at TEXT NOT NULL
                    );
                    """
                )
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceUnavailable(f"Cannot open {self.db_path}: {exc}") from exc

    def load(self, key: str) -> Any | None:
        """Return the decoded blob for ``key``, or None when absent."""
        try:
            with contextlib.closing(self._connect()) as conn:
                row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceUnavailable(f"Cannot load {key!r}: {exc}") from exc
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except ValueError as exc:
            raise PersistenceUnavailable(f"Corrupt value stored under {key!r}: {exc}") from exc

    def save(self, key: str, blob: Any) -> None:
        payload = json.dumps(blob, ensure_ascii=False)
        try:
            with contextlib.closing(self._connect()) as conn, conn:
                conn.execute(
                    """
                    INSERT INTO kv (key, value, updated_at) VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                    """,
                    (key, payload, utc_now_iso()),
                )
        except (sqlite3.Error, OSError) as exc:
            raise PersistenceUnavailable(f"Cannot save {key!r}: {exc}") from exc


class MemoryKeyValueStore:
    """In-process store holding JSON text, so blobs round-trip like on disk."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._data: dict[str, str] = {}
        for key, blob in (initial or {}).items():
            self._data[key] = json.dumps(blob)

    def load(self, key: str) -> Any | None:
        raw = self._data.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError as exc:
            raise PersistenceUnavailable(f"Corrupt value stored under {key!r}: {exc}") from exc

    def save(self, key: str, blob: Any) -> None:
        self._data[key] = json.dumps(blob)

    def put_raw(self, key: str, raw: str) -> None:
        """Store raw text under ``key`` without encoding it."""
        self._data[key] = raw


def load_or_default(store: KeyValueStore, key: str, default: Any) -> Any:
    """Load ``key``; absence or any storage failure yields ``default``."""
    try:
        blob = store.load(key)
    except PersistenceUnavailable as exc:
        logger.warning("load %s failed, using default: %s", key, exc)
        return default
    if blob is None:
        return default
    return blob
