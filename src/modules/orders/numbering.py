"""Order number allocation.

Numbers look like ``ORD2404150007``: prefix, local date as ``YYMMDD`` and
the day's sequence zero-padded to four digits (a day past 9999 orders
simply grows a fifth digit).  The sequence comes from the per-day
``OrderSequence`` counter, so two concurrent placements can never be
handed the same number.
"""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Optional

import structlog
from django.db import DatabaseError
from django.utils import timezone

from modules.orders.constants import ORDER_NUMBER_PREFIX, ORDER_NUMBER_SEQUENCE_DIGITS
from modules.orders.exceptions import OrderNumberUnavailable

if TYPE_CHECKING:
    from modules.orders.repositories.interfaces import IOrderRepository

logger = structlog.get_logger(__name__)


def format_order_number(day: date, sequence: int) -> str:
    return f"{ORDER_NUMBER_PREFIX}{day:%y%m%d}{sequence:0{ORDER_NUMBER_SEQUENCE_DIGITS}d}"


class OrderNumberGenerator:
    """Hands out order numbers from the repository's per-day counter.

    Fails closed: when the counter cannot be advanced no number is
    produced and ``OrderNumberUnavailable`` is raised.
    """

    def __init__(self, order_repository: IOrderRepository) -> None:
        self._order_repo = order_repository

    def next_number(self, day: Optional[date] = None) -> str:
        day = day or timezone.localdate()
        try:
            sequence = self._order_repo.next_sequence(day)
        except DatabaseError as exc:
            logger.error("order.number_unavailable", day=day.isoformat(), error=str(exc))
            raise OrderNumberUnavailable() from exc
        number = format_order_number(day, sequence)
        logger.debug("order.number_allocated", order_number=number)
        return number
