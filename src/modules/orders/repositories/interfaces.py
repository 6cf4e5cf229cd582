"""Order repository interface.

Extends ``IRepository[Order]`` with the methods the Order aggregate
needs: atomic creation from a priced and split draft, row-locked
reads for lifecycle changes, status history, idempotency look-up and
the per-day counter used for order numbers.

The Service Layer depends exclusively on this contract (DIP).
"""

from __future__ import annotations

from abc import abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from django.db.models import QuerySet

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.orders.dtos import PaymentInfoDTO
    from modules.orders.models import Order, OrderStatusHistory, VendorOrder
    from modules.orders.pricing import PriceQuote
    from modules.orders.splitting import VendorGroup


@dataclass(frozen=True)
class OrderDraft:
    """Everything needed to persist a new order in one write."""

    order_number: str
    customer_id: UUID
    shipping_address: Dict[str, Any]
    payment: PaymentInfoDTO
    payment_status: str
    paid_at: Optional[datetime]
    quote: PriceQuote
    groups: List[VendorGroup]
    notes: str = ""
    idempotency_key: Optional[str] = None


class IOrderRepository(IRepository["Order"]):
    """Repository contract for the Order aggregate root.

    The aggregate includes VendorOrder and OrderItem children and
    OrderStatusHistory records.  Mutations must be atomic.
    """

    @abstractmethod
    def create(self, draft: OrderDraft) -> Order:
        """Persist the order, its vendor sub-orders and its lines."""

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with prefetched children and history."""

    @abstractmethod
    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order holding a row lock until the transaction ends."""

    @abstractmethod
    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        """List orders with optional filters."""

    @abstractmethod
    def list_for_vendor(self, vendor_id: UUID) -> QuerySet:
        """Orders holding a sub-order for ``vendor_id``."""

    @abstractmethod
    def save_vendor_order(self, vendor_order: VendorOrder) -> VendorOrder:
        """Persist a sub-order status change."""

    @abstractmethod
    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user: Any = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""

    @abstractmethod
    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Retrieve an order by its idempotency key."""

    @abstractmethod
    def count_created_on(self, day: date) -> int:
        """Number of orders created on the local calendar ``day``."""

    @abstractmethod
    def next_sequence(self, day: date) -> int:
        """Advance and return the order counter for ``day``."""
