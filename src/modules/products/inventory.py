"""Inventory reservation for order placement.

Reservation runs in two phases:

1. **Check**: every line is resolved against the catalog and validated
   (exists, active, enough stock).  A product repeated across lines is
   checked against its summed quantity.  Nothing is mutated; the first
   failing line aborts the whole request.
2. **Commit**: stock is decremented line by line with an atomic
   compare-and-decrement.  A concurrent purchase can still win the last
   units between the phases; when a decrement is refused, every decrement
   already applied for this request is added back before the failure is
   reported.

Decrements are issued in product-id order so two transactions touching
the same products always lock their rows in the same sequence.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Protocol, Sequence
from uuid import UUID

import structlog

from modules.products.exceptions import (
    InsufficientStock,
    InvalidQuantity,
    ProductInactive,
    ProductNotFound,
)

if TYPE_CHECKING:
    from modules.products.dtos import ProductSnapshot
    from modules.products.repositories.interfaces import IProductRepository

logger = structlog.get_logger(__name__)


class StockLine(Protocol):
    """Anything carrying a product id and a quantity (DTO or order item)."""

    product_id: UUID
    quantity: int


class InventoryReservation:
    """Validate, reserve and release product stock for order lines."""

    def __init__(self, product_repository: IProductRepository) -> None:
        self._product_repo = product_repository

    # ------------------------------------------------------------------
    # Reservation
    # ------------------------------------------------------------------

    def check(self, lines: Sequence[StockLine]) -> List[ProductSnapshot]:
        """Validate every line without touching stock.

        Returns one snapshot per line, in caller order.

        Raises:
            InvalidQuantity: a line asks for fewer than one unit.
            ProductNotFound: a product id does not resolve.
            ProductInactive: a product is disabled.
            InsufficientStock: a product's lines ask for more than is on hand.
        """
        snapshots: List[ProductSnapshot] = []
        requested: Dict[UUID, int] = {}
        for line in lines:
            if line.quantity < 1:
                raise InvalidQuantity(line.product_id, line.quantity)
            snapshot = self._product_repo.get_snapshot(line.product_id)
            if snapshot is None:
                raise ProductNotFound(line.product_id)
            if not snapshot.is_active:
                raise ProductInactive(snapshot.id, snapshot.name)
            total = requested.get(snapshot.id, 0) + line.quantity
            if total > snapshot.stock_quantity:
                logger.info(
                    "inventory.check_failed",
                    product_id=str(snapshot.id),
                    requested=total,
                    available=snapshot.stock_quantity,
                )
                raise InsufficientStock(
                    snapshot.id, total, snapshot.stock_quantity, snapshot.name
                )
            requested[snapshot.id] = total
            snapshots.append(snapshot)
        return snapshots

    def commit(self, lines: Sequence[StockLine]) -> None:
        """Decrement stock for lines that already passed :meth:`check`.

        All-or-nothing: on a refused decrement the lines reserved so far
        are released and ``InsufficientStock`` is raised.
        """
        reserved: List[StockLine] = []
        for line in sorted(lines, key=lambda item: str(item.product_id)):
            if not self._product_repo.try_decrement_stock(line.product_id, line.quantity):
                self._compensate(reserved)
                current = self._product_repo.get_snapshot(line.product_id)
                if current is None:
                    raise ProductNotFound(line.product_id)
                logger.warning(
                    "inventory.reservation_lost_race",
                    product_id=str(line.product_id),
                    requested=line.quantity,
                    available=current.stock_quantity,
                    rolled_back=len(reserved),
                )
                raise InsufficientStock(
                    line.product_id, line.quantity, current.stock_quantity, current.name
                )
            reserved.append(line)
            logger.info(
                "inventory.stock_reserved",
                product_id=str(line.product_id),
                quantity=line.quantity,
            )

    def reserve(self, lines: Sequence[StockLine]) -> List[ProductSnapshot]:
        """Check then commit; returns the snapshots taken during the check."""
        snapshots = self.check(lines)
        self.commit(lines)
        return snapshots

    # ------------------------------------------------------------------
    # Release
    # ------------------------------------------------------------------

    def release(self, lines: Sequence[StockLine]) -> None:
        """Put each line's quantity back on the shelf.

        Not idempotent: callers must invoke it once per cancellation.
        """
        for line in sorted(lines, key=lambda item: str(item.product_id)):
            if self._product_repo.increment_stock(line.product_id, line.quantity):
                logger.info(
                    "inventory.stock_released",
                    product_id=str(line.product_id),
                    quantity=line.quantity,
                )
            else:
                logger.warning(
                    "inventory.release_skipped",
                    product_id=str(line.product_id),
                    quantity=line.quantity,
                )

    def _compensate(self, reserved: Sequence[StockLine]) -> None:
        for line in reserved:
            self._product_repo.increment_stock(line.product_id, line.quantity)
            logger.info(
                "inventory.stock_rollback",
                product_id=str(line.product_id),
                quantity=line.quantity,
            )
