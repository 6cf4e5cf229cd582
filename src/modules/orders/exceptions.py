"""Order domain exceptions.

Raised by the Service Layer when business rules are violated.  Each one
subclasses a category from ``modules.core.exceptions`` so the API layer
can map it to an HTTP status without knowing the concrete class.

Product and customer failures raised during placement are re-exported
here for callers that only import from the orders module.
"""

from __future__ import annotations

from modules.core.exceptions import ConflictError, DownstreamError, NotFoundError
from modules.customers.exceptions import CustomerNotFound, InactiveCustomer
from modules.products.exceptions import (
    InsufficientStock,
    InvalidQuantity,
    ProductInactive,
    ProductNotFound,
)
from modules.vendors.exceptions import VendorNotFound

__all__ = [
    "CustomerNotFound",
    "InactiveCustomer",
    "InsufficientStock",
    "InvalidQuantity",
    "IdempotencyKeyConflict",
    "InvalidTransition",
    "NotificationFailed",
    "OrderNotCancellable",
    "OrderNotFound",
    "OrderNumberUnavailable",
    "ProductInactive",
    "ProductNotFound",
    "VendorNotFound",
    "VendorOrderAccessDenied",
]


class OrderNotFound(NotFoundError):
    """The requested order does not exist or has been archived."""

    code = "order_not_found"
    default_message = "Order not found."


class InvalidTransition(ConflictError):
    """A status change outside the lifecycle table was attempted."""

    code = "invalid_transition"

    def __init__(self, current: str, requested: str) -> None:
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot transition from {current} to {requested}.")


class OrderNotCancellable(ConflictError):
    """Cancellation requested once the order left pending/processing."""

    code = "order_not_cancellable"

    def __init__(self, current: str) -> None:
        self.current = current
        super().__init__(f"Cannot cancel an order in status {current}.")


class VendorOrderAccessDenied(ConflictError):
    """The acting vendor has no sub-order on this order, or it is closed."""

    code = "vendor_order_access_denied"
    default_message = "This vendor cannot update the requested order."


class IdempotencyKeyConflict(ConflictError):
    """The idempotency key already belongs to another customer's order."""

    code = "idempotency_key_conflict"
    default_message = "This idempotency key was already used by another customer."


class OrderNumberUnavailable(DownstreamError):
    """The per-day order counter could not be read or advanced."""

    code = "order_number_unavailable"
    default_message = "Order number could not be allocated. Please retry."


class NotificationFailed(DownstreamError):
    """The order notification could not be dispatched."""

    code = "notification_failed"
    default_message = "Order notification could not be dispatched."
