"""Order DTOs for the Service Layer.

Framework-agnostic data transfer objects using Pydantic v2.
These are the contracts between the API layer (DRF Serializers)
and the Service layer.  DTOs are immutable (``frozen=True``).

- ``CreateOrderItemDTO``: one cart line (product + quantity).
- ``ShippingAddressDTO``: delivery address captured at checkout.
- ``PaymentInfoDTO``: payment descriptor returned by the gateway.
- ``CreateOrderDTO``: input for order placement.
- ``UpdateStatusDTO`` / ``UpdateVendorOrderStatusDTO``: lifecycle input.
"""

from __future__ import annotations

from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

from modules.orders.constants import (
    OrderStatus,
    PaymentMethod,
    VendorOrderStatus,
)

# ---------------------------------------------------------------------------
# Input DTOs
# ---------------------------------------------------------------------------


class CreateOrderItemDTO(BaseModel):
    """Immutable DTO for a single order item in a creation request.

    The client sends ``product_id`` and ``quantity``.  Price, vendor,
    name and image are resolved by the Service Layer from the catalog.
    """

    model_config = ConfigDict(frozen=True)

    product_id: UUID
    quantity: int

    @field_validator("quantity")
    @classmethod
    def quantity_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Quantity must be at least 1.")
        return v


class ShippingAddressDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    phone: str
    street: str
    city: str
    state: str
    zip_code: str
    country: str


class PaymentInfoDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    payment_id: str
    payment_method: PaymentMethod


class CreateOrderDTO(BaseModel):
    """Immutable DTO for order creation requests.

    Validates:
    - ``items`` must contain at least one item.
    - Each item quantity must be positive.

    A product may appear on several lines; stock is checked against
    the summed quantity.
    """

    model_config = ConfigDict(frozen=True)

    customer_id: UUID
    items: List[CreateOrderItemDTO]
    shipping_address: ShippingAddressDTO
    payment: PaymentInfoDTO
    notes: Optional[str] = ""
    idempotency_key: Optional[str] = None

    @field_validator("items")
    @classmethod
    def items_must_not_be_empty(
        cls, v: List[CreateOrderItemDTO]
    ) -> List[CreateOrderItemDTO]:
        if not v:
            raise ValueError("Order must have at least one item.")
        return v


class UpdateStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: OrderStatus
    notes: str = ""
    return_reason: str = ""


class UpdateVendorOrderStatusDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: VendorOrderStatus
    tracking_number: str = ""
