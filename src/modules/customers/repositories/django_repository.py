"""Django ORM implementation of the Customer repository.

Look-ups return ``None`` instead of raising; the Service Layer decides
how a missing customer is reported.
"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from django.core.exceptions import ValidationError

from modules.customers.models import Customer
from modules.customers.repositories.interfaces import ICustomerRepository

logger = structlog.get_logger(__name__)


class CustomerDjangoRepository(ICustomerRepository):
    """Concrete Customer repository backed by Django ORM."""

    def get_by_id(self, id: str) -> Optional[Customer]:
        """Return the live customer, or ``None`` for unknown/malformed IDs."""
        try:
            return Customer.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_email(self, email: str) -> Optional[Customer]:
        return Customer.objects.alive().filter(email=email.strip().lower()).first()

    def get_by_user(self, user: Any) -> Optional[Customer]:
        if user is None or not getattr(user, "is_authenticated", False):
            return None
        return Customer.objects.alive().filter(user_id=user.pk).first()

    def save(self, entity: Customer) -> Customer:
        entity.save()
        logger.info("customer.saved", customer_id=str(entity.id))
        return entity
