"""Product DTOs shared with the ordering core.

``ProductSnapshot`` is what the catalog hands to order placement: an
immutable copy of the product fields an order line captures, taken at
submission time.  Later catalog edits never reach an existing order.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from modules.products.models import Product


class ProductSnapshot(BaseModel):
    """Immutable read model of a product at a point in time."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    vendor_id: UUID
    sku: str
    name: str
    price: Decimal
    discount: Decimal = Decimal("0.00")
    stock_quantity: int
    is_active: bool
    image_url: str = ""

    @classmethod
    def from_entity(cls, product: Product) -> ProductSnapshot:
        return cls(
            id=product.id,
            vendor_id=product.vendor_id,
            sku=product.sku,
            name=product.name,
            price=product.price,
            discount=product.discount,
            stock_quantity=product.stock_quantity,
            is_active=product.is_active,
            image_url=product.primary_image_url,
        )
