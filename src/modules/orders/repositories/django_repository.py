"""Django ORM implementation of the Order repository.

Satisfies ``IOrderRepository`` using Django's QuerySet API.
All write operations are wrapped in ``transaction.atomic()`` so the
Order aggregate (Order + VendorOrders + OrderItems) is persisted as one
unit, and domain events reach the outbox in the same transaction.

Concurrency control on lifecycle changes uses ``select_for_update()``
on the order row (no ``version`` field exists on the model).
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional
from uuid import UUID

import structlog
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, QuerySet

from modules.core.models import OutboxEvent
from modules.orders.models import (
    Order,
    OrderItem,
    OrderSequence,
    OrderStatusHistory,
    VendorOrder,
)
from modules.orders.repositories.interfaces import IOrderRepository, OrderDraft

logger = structlog.get_logger(__name__)

OUTBOX_TOPIC = "orders"

PREFETCH = (
    "items",
    "vendor_orders__vendor",
    "vendor_orders__items",
    "status_history",
)


class OrderDjangoRepository(IOrderRepository):
    """Concrete Order repository backed by Django ORM."""

    def _base_queryset(self) -> QuerySet:
        return (
            Order.objects.alive()
            .select_related("customer")
            .prefetch_related(*PREFETCH)
        )

    # ------------------------------------------------------------------
    # Create (aggregate root + children)
    # ------------------------------------------------------------------

    @transaction.atomic
    def create(self, draft: OrderDraft) -> Order:
        """Create an order with its vendor sub-orders and lines atomically.

        Every line is written under the sub-order of its vendor, so the
        sub-orders partition the order's lines by construction.
        """
        order = Order(
            order_number=draft.order_number,
            customer_id=draft.customer_id,
            shipping_address=draft.shipping_address,
            payment_id=draft.payment.payment_id,
            payment_method=draft.payment.payment_method,
            payment_result_status=draft.payment_status,
            payment_status=draft.payment_status,
            paid_at=draft.paid_at,
            notes=draft.notes,
            idempotency_key=draft.idempotency_key,
        )
        order.apply_quote(draft.quote)
        order.save()

        item_count = 0
        for group in draft.groups:
            vendor_order = VendorOrder.objects.create(
                order=order,
                vendor_id=group.vendor_id,
                position=group.position,
            )
            for position, line in group.lines:
                OrderItem(
                    order=order,
                    vendor_order=vendor_order,
                    product_id=line.product_id,
                    vendor_id=line.vendor_id,
                    position=position,
                    name=line.product.name,
                    image_url=line.product.image_url,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    discount=line.product.discount,
                ).save()
                item_count += 1

        logger.info(
            "order.persisted",
            order_id=str(order.id),
            order_number=order.order_number,
            item_count=item_count,
            vendor_count=len(draft.groups),
        )
        return order

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_by_id(self, id: str) -> Optional[Order]:
        """Retrieve an order with eager-loaded relations.

        Uses ``select_related`` for the customer FK and
        ``prefetch_related`` for lines, sub-orders and status history
        (separate batched queries).  Prevents N+1.

        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return self._base_queryset().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_for_update(self, id: str) -> Optional[Order]:
        """Retrieve an order with a row-level lock (SELECT FOR UPDATE).

        Only the order row is locked; children are prefetched so the
        caller can walk lines and sub-orders while holding the lock.
        Returns ``None`` for non-existent or invalid IDs.
        """
        try:
            return (
                Order.objects.alive()
                .select_for_update()
                .prefetch_related(*PREFETCH)
                .filter(id=id)
                .first()
            )
        except (ValueError, ValidationError):
            return None

    def list(self, filters: Optional[Dict[str, Any]] = None) -> QuerySet:
        """List orders with optional ORM filters and eager-loaded relations."""
        queryset = self._base_queryset()
        if filters:
            queryset = queryset.filter(**filters)
        return queryset

    def list_for_vendor(self, vendor_id: UUID) -> QuerySet:
        return self._base_queryset().filter(vendor_orders__vendor_id=vendor_id).distinct()

    def get_by_idempotency_key(self, key: str) -> Optional[Order]:
        """Retrieve an order by its idempotency key."""
        return self._base_queryset().filter(idempotency_key=key).first()

    # ------------------------------------------------------------------
    # Save (IRepository contract)
    # ------------------------------------------------------------------

    @transaction.atomic
    def save(self, entity: Order) -> Order:
        """Persist an order and flush its pending domain events to the outbox."""
        entity.save()

        events = entity.domain_events
        for event in events:
            OutboxEvent.record(event, OUTBOX_TOPIC)
        entity.clear_domain_events()

        logger.info("order.saved", order_id=str(entity.id), event_count=len(events))
        return entity

    def save_vendor_order(self, vendor_order: VendorOrder) -> VendorOrder:
        vendor_order.save(
            update_fields=["status", "tracking_number", "shipped_at", "delivered_at"]
        )
        return vendor_order

    # ------------------------------------------------------------------
    # Order-specific queries
    # ------------------------------------------------------------------

    def add_history(
        self,
        order_id: UUID,
        status: str,
        notes: str = "",
        old_status: Optional[str] = None,
        user: Any = None,
    ) -> OrderStatusHistory:
        """Record a status change in the order's audit trail."""
        history = OrderStatusHistory.objects.create(
            order_id=order_id,
            old_status=old_status,
            new_status=status,
            notes=notes,
            user=user if user is not None and user.is_authenticated else None,
        )
        logger.info(
            "order.history_added",
            order_id=str(order_id),
            old_status=old_status,
            new_status=status,
        )
        return history

    def count_created_on(self, day: date) -> int:
        return Order.objects.filter(created_at__date=day).count()

    @transaction.atomic
    def next_sequence(self, day: date) -> int:
        """Advance the counter row for ``day`` under a row lock.

        The row is seeded from the orders already created that day, so
        numbering continues from existing data on first use.
        """
        counter = OrderSequence.objects.select_for_update().filter(day=day).first()
        if counter is None:
            counter, _ = OrderSequence.objects.select_for_update().get_or_create(
                day=day,
                defaults={"last_value": self.count_created_on(day)},
            )
        OrderSequence.objects.filter(day=day).update(last_value=F("last_value") + 1)
        counter.refresh_from_db(fields=["last_value"])
        return counter.last_value
