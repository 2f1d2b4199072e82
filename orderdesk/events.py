"""Listener registration for snapshot change notifications."""

from __future__ import annotations

from typing import Callable, Generic, TypeVar

T = TypeVar("T")


class Listeners(Generic[T]):
    """Ordered set of callbacks that receive a new snapshot after each mutation."""

    def __init__(self) -> None:
        self._callbacks: list[Callable[[T], None]] = []

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register ``callback`` and return a function that unregisters it."""
        self._callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return unsubscribe

    def emit(self, snapshot: T) -> None:
        for callback in list(self._callbacks):
            callback(snapshot)

    def __len__(self) -> int:
        return len(self._callbacks)
