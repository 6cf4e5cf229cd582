"""Django ORM implementation of the Product repository.

Look-ups follow the Null Object pattern: ``None`` instead of raising.
Stock changes are issued as ``UPDATE ... SET stock_quantity =
stock_quantity +/- n`` through ``F()`` expressions so the database
applies them atomically per row.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db.models import F
from django.utils import timezone

from modules.products.dtos import ProductSnapshot
from modules.products.models import Product
from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class ProductDjangoRepository(IProductRepository):
    """Concrete Product repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Product]:
        try:
            return Product.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_snapshot(self, id: UUID) -> Optional[ProductSnapshot]:
        product = self.get_by_id(str(id))
        if product is None:
            return None
        return ProductSnapshot.from_entity(product)

    def try_decrement_stock(self, id: UUID, quantity: int) -> bool:
        updated = (
            Product.objects.alive()
            .filter(id=id, stock_quantity__gte=quantity)
            .update(
                stock_quantity=F("stock_quantity") - quantity,
                updated_at=timezone.now(),
            )
        )
        return updated == 1

    def increment_stock(self, id: UUID, quantity: int) -> bool:
        updated = Product.objects.filter(id=id).update(
            stock_quantity=F("stock_quantity") + quantity,
            updated_at=timezone.now(),
        )
        return updated == 1

    def save(self, entity: Product) -> Product:
        entity.save()
        logger.info("product.saved", product_id=str(entity.id), sku=entity.sku)
        return entity
