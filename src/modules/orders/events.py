"""Domain events for the Orders bounded context."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional, Tuple
from uuid import UUID

from shared.domain.events import DomainEvent


@dataclass(frozen=True)
class OrderCreated(DomainEvent):
    """Raised when an order is placed."""

    order_number: str = ""
    customer_id: Optional[UUID] = None
    total_price: Decimal = Decimal("0.00")
    vendor_ids: Tuple[UUID, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class OrderStatusChanged(DomainEvent):
    """Raised when the overall order status changes."""

    old_status: str = ""
    new_status: str = ""


@dataclass(frozen=True)
class OrderCancelled(DomainEvent):
    """Raised when an order is cancelled and its stock released."""

    old_status: str = ""


@dataclass(frozen=True)
class VendorOrderStatusChanged(DomainEvent):
    """Raised when a vendor moves its sub-order to a new status."""

    vendor_id: Optional[UUID] = None
    old_status: str = ""
    new_status: str = ""
