"""Product repository interface.

Besides plain look-ups this is the stock mutator used by inventory
reservation.  Both stock operations are single atomic statements; no
caller ever reads stock, computes a new value and writes it back.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional
from uuid import UUID

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.products.dtos import ProductSnapshot
    from modules.products.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_snapshot(self, id: UUID) -> Optional[ProductSnapshot]:
        """Return an immutable copy of the live product, or ``None``."""

    @abstractmethod
    def try_decrement_stock(self, id: UUID, quantity: int) -> bool:
        """Compare-and-decrement: subtract only while ``stock >= quantity``.

        Returns ``False`` when the product vanished or stock no longer
        covers ``quantity``; nothing is changed in that case.
        """

    @abstractmethod
    def increment_stock(self, id: UUID, quantity: int) -> bool:
        """Add ``quantity`` back to stock.  ``False`` if the product is gone."""
