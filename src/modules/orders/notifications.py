"""Order notifications.

The notifier is invoked once the placing transaction has committed.
Notification is fire-and-forget: a failure here never undoes an order.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import structlog

from modules.orders.exceptions import NotificationFailed

if TYPE_CHECKING:
    from modules.orders.models import Order

logger = structlog.get_logger(__name__)


class OrderNotifier(ABC):
    @abstractmethod
    def notify_order_created(self, order: Order) -> None:
        """Announce a freshly placed order."""


class CeleryOrderNotifier(OrderNotifier):
    """Enqueues ``orders.notify_order_created`` on the Celery broker."""

    def notify_order_created(self, order: Order) -> None:
        from modules.orders.tasks import notify_order_created

        try:
            notify_order_created.delay(str(order.id))
        except Exception as exc:
            raise NotificationFailed() from exc
        logger.info("order.notification_enqueued", order_id=str(order.id))
