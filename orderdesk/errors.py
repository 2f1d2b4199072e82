"""Error taxonomy for the order desk core."""

from __future__ import annotations


class OrderDeskError(Exception):
    """Base class for all recoverable order desk failures."""


class NotFound(OrderDeskError, LookupError):
    """An operation referenced an id that is not held."""

    def __init__(self, kind: str, ident: str) -> None:
        super().__init__(f"{kind} {ident!r} not found")
        self.kind = kind
        self.ident = ident


class OrderNotFound(NotFound):
    def __init__(self, order_id: str) -> None:
        super().__init__("Order", order_id)


class MenuItemNotFound(NotFound):
    def __init__(self, item_id: str) -> None:
        super().__init__("Menu item", item_id)


class ValidationSkip(OrderDeskError):
    """Archival was attempted for an id that is already archived."""


class InvalidOrder(OrderDeskError, ValueError):
    """An order violates a structural invariant."""


class PersistenceUnavailable(OrderDeskError):
    """The key-value store could not be read or written."""


class PresentationUnavailable(OrderDeskError):
    """The receipt display or print surface could not be opened."""
