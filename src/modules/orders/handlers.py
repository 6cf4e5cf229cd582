"""Event handlers for Orders domain events."""

from __future__ import annotations

import structlog

from modules.orders.events import (
    OrderCancelled,
    OrderCreated,
    OrderStatusChanged,
    VendorOrderStatusChanged,
)
from shared.domain.bus import IEventHandler

logger = structlog.get_logger(__name__)


class OrderCreatedHandler(IEventHandler[OrderCreated]):
    def handle(self, event: OrderCreated) -> None:
        logger.info(
            "order.created_notified",
            order_id=str(event.aggregate_id),
            order_number=event.order_number,
            vendor_count=len(event.vendor_ids),
        )


class OrderCancelledHandler(IEventHandler[OrderCancelled]):
    def handle(self, event: OrderCancelled) -> None:
        logger.info(
            "order.cancelled_notified",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
        )


class OrderStatusChangedHandler(IEventHandler[OrderStatusChanged]):
    def handle(self, event: OrderStatusChanged) -> None:
        logger.info(
            "order.status_changed_notified",
            order_id=str(event.aggregate_id),
            old_status=event.old_status,
            new_status=event.new_status,
        )


class VendorOrderStatusChangedHandler(IEventHandler[VendorOrderStatusChanged]):
    def handle(self, event: VendorOrderStatusChanged) -> None:
        logger.info(
            "vendor_order.status_changed_notified",
            order_id=str(event.aggregate_id),
            vendor_id=str(event.vendor_id),
            new_status=event.new_status,
        )


order_created_handler = OrderCreatedHandler()
order_cancelled_handler = OrderCancelledHandler()
order_status_changed_handler = OrderStatusChangedHandler()
vendor_order_status_changed_handler = VendorOrderStatusChangedHandler()
