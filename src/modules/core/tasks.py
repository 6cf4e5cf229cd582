"""Background tasks of the core module."""

import structlog
from celery import shared_task
from django.db import transaction

from modules.core.models import EventStatus, OutboxEvent
from shared.infrastructure.bus import event_bus

logger = structlog.get_logger(__name__)

OUTBOX_BATCH_SIZE = 100


def publish_outbox_event(event: OutboxEvent) -> None:
    """Hand a stored event to the delivery transport.

    Delivery is a structured log record per topic, which brokers read
    from the log stream, followed by dispatch to the in-process handlers
    subscribed to the event.  A handler error fails the delivery.
    """
    logger.info(
        "outbox.event_published",
        topic=event.topic,
        event_type=event.event_type,
        aggregate_id=event.aggregate_id,
        payload=event.payload,
    )
    event_class = event_bus.event_class(event.event_type)
    if event_class is not None:
        event_bus.publish(event_class.from_payload(event.payload))


@shared_task(name="core.relay_outbox_events")
def relay_outbox_events(batch_size: int = OUTBOX_BATCH_SIZE) -> dict:
    """Publish pending outbox rows in creation order.

    Rows are locked with ``SKIP LOCKED`` so concurrent relays never
    publish the same event twice.
    """
    published = failed = 0
    with transaction.atomic():
        pending = list(
            OutboxEvent.objects.select_for_update(skip_locked=True)
            .filter(status=EventStatus.PENDING)
            .order_by("created_at")[:batch_size]
        )
        for event in pending:
            try:
                publish_outbox_event(event)
            except Exception as exc:
                logger.warning(
                    "outbox.event_failed",
                    event_id=str(event.id),
                    error=str(exc),
                )
                event.mark_as_failed(str(exc))
                failed += 1
                continue
            event.mark_as_published()
            published += 1

    logger.info("outbox.relay_completed", published=published, failed=failed)
    return {"published": published, "failed": failed}
