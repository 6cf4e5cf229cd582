"""Customer domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import ConflictError, NotFoundError


class CustomerNotFound(NotFoundError):
    """The customer referenced by an order does not exist or was archived."""

    code = "customer_not_found"
    default_message = "Customer not found."


class InactiveCustomer(ConflictError):
    """The customer is inactive and cannot place orders."""

    code = "customer_inactive"
    default_message = "Customer is inactive."
