"""Django ORM implementation of the Vendor repository."""

from __future__ import annotations

from typing import Any, Optional

import structlog
from django.core.exceptions import ValidationError

from modules.vendors.models import Vendor
from modules.vendors.repositories.interfaces import IVendorRepository

logger = structlog.get_logger(__name__)


class VendorDjangoRepository(IVendorRepository):
    def get_by_id(self, id: str) -> Optional[Vendor]:
        try:
            return Vendor.objects.alive().filter(id=id).first()
        except (ValueError, ValidationError):
            return None

    def get_by_user(self, user: Any) -> Optional[Vendor]:
        if user is None or not getattr(user, "is_authenticated", False):
            return None
        return Vendor.objects.alive().filter(user_id=user.pk, is_active=True).first()

    def save(self, entity: Vendor) -> Vendor:
        entity.save()
        logger.info("vendor.saved", vendor_id=str(entity.id))
        return entity
