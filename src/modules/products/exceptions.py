"""Product and inventory exceptions.

Raised by inventory reservation while validating or reserving stock.
All of them are detected before the order is persisted.
"""

from __future__ import annotations

from uuid import UUID

from modules.core.exceptions import ConflictError, NotFoundError, RequestValidationError


class ProductNotFound(NotFoundError):
    """A product referenced by an order line does not exist."""

    code = "product_not_found"

    def __init__(self, product_id: UUID) -> None:
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found.")


class ProductInactive(ConflictError):
    """A product referenced by an order line is disabled."""

    code = "product_inactive"

    def __init__(self, product_id: UUID, name: str = "") -> None:
        self.product_id = product_id
        super().__init__(f"Product {name or product_id} is not available.")


class InsufficientStock(ConflictError):
    """Requested quantity exceeds the stock currently on hand."""

    code = "insufficient_stock"

    def __init__(self, product_id: UUID, requested: int, available: int, name: str = "") -> None:
        self.product_id = product_id
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient stock for {name or product_id}: "
            f"requested {requested}, available {available}."
        )


class InvalidQuantity(RequestValidationError):
    """An order line asks for fewer than one unit."""

    code = "invalid_quantity"

    def __init__(self, product_id: UUID, quantity: int) -> None:
        self.product_id = product_id
        self.quantity = quantity
        super().__init__(f"Quantity for product {product_id} must be at least 1.")
