"""Completion archive: append-only snapshots of orders that reached Delivered."""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass
from datetime import tzinfo
from typing import Callable, Iterable

from orderdesk.errors import ValidationSkip
from orderdesk.events import Listeners
from orderdesk.models import CompletionRecord, Order, parse_timestamp, utc_now_iso
from orderdesk.money import order_total

logger = logging.getLogger(__name__)

Confirm = Callable[[str], bool]

CLEAR_PROMPT = "Clear all completed orders?"


def day_key(timestamp: str, tz: tzinfo | None = None) -> str:
    """Return the ``yyyy-mm-dd`` local calendar day of ``timestamp``.

    ``tz`` defaults to the process local timezone, resolved at call time.
    """
    return parse_timestamp(timestamp).astimezone(tz).strftime("%Y-%m-%d")


def day_label(day: str) -> str:
    """Long form of a day key, e.g. ``October 18, 2026``."""
    year, month, dom = day.split("-")
    names = (
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    )
    return f"{names[int(month) - 1]} {int(dom)}, {year}"


def remove_day_prompt(day: str, count: int) -> str:
    return f"Delete {count} completed order(s) from {day_label(day)}?"


@dataclass(frozen=True)
class DayGroup:
    day: str
    records: list[CompletionRecord]
    total: float


class CompletionArchive:
    """Holds one CompletionRecord per order id, newest completion first."""

    def __init__(
        self,
        records: Iterable[CompletionRecord] = (),
        now: Callable[[], str] = utc_now_iso,
        tz: tzinfo | None = None,
    ) -> None:
        self._records: list[CompletionRecord] = list(records)
        self._now = now
        self._tz = tz
        self._lock = threading.RLock()
        self.listeners: Listeners[list[CompletionRecord]] = Listeners()

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, order_id: object) -> bool:
        return any(record.id == order_id for record in self._records)

    def records(self) -> list[CompletionRecord]:
        with self._lock:
            return copy.deepcopy(self._records)

    def subscribe(self, callback: Callable[[list[CompletionRecord]], None]) -> Callable[[], None]:
        return self.listeners.subscribe(callback)

    def _changed(self) -> None:
        self.listeners.emit(self.records())

    def _insert(self, order: Order) -> CompletionRecord:
        if order.id in self:
            raise ValidationSkip(f"Order {order.id!r} already archived")
        record = CompletionRecord(order=copy.deepcopy(order), completed_at=self._now())
        self._records.insert(0, record)
        return record

    def record(self, order: Order) -> bool:
        """Snapshot ``order``; returns False if its id is already archived."""
        with self._lock:
            try:
                record = self._insert(order)
            except ValidationSkip as exc:
                logger.debug("archive skip: %s", exc)
                return False
        logger.info("archived order %s at %s", record.id, record.completed_at)
        self._changed()
        return True

    def remove(self, order_id: str) -> bool:
        with self._lock:
            kept = [record for record in self._records if record.id != order_id]
            if len(kept) == len(self._records):
                logger.warning("archive remove: order %s not archived", order_id)
                return False
            self._records = kept
        self._changed()
        return True

    def day_of(self, record: CompletionRecord) -> str:
        return day_key(record.completed_at, self._tz)

    def count_day(self, day: str) -> int:
        with self._lock:
            return sum(1 for record in self._records if self.day_of(record) == day)

    def remove_day(self, day: str, confirm: Confirm) -> int:
        """Delete every record completed on ``day`` once ``confirm`` agrees.

        Returns the number of removed records; 0 when confirmation is refused.
        """
        with self._lock:
            doomed = [record for record in self._records if self.day_of(record) == day]
            if not doomed:
                return 0
            if not confirm(remove_day_prompt(day, len(doomed))):
                logger.info("remove_day %s aborted by caller", day)
                return 0
            self._records = [record for record in self._records if self.day_of(record) != day]
        logger.info("removed %d archived order(s) for %s", len(doomed), day)
        self._changed()
        return len(doomed)

    def clear(self, confirm: Confirm) -> bool:
        with self._lock:
            if not confirm(CLEAR_PROMPT):
                logger.info("archive clear aborted by caller")
                return False
            self._records = []
        self._changed()
        return True

    def grouped_by_day(self) -> list[DayGroup]:
        """Records grouped by local completion day, newest day first."""
        with self._lock:
            by_day: dict[str, list[CompletionRecord]] = {}
            for record in self._records:
                by_day.setdefault(self.day_of(record), []).append(copy.deepcopy(record))
        return [
            DayGroup(
                day=day,
                records=by_day[day],
                total=sum((order_total(record.order) for record in by_day[day]), 0.0),
            )
            for day in sorted(by_day, reverse=True)
        ]
