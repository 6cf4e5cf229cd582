"""Vendor model.

A vendor owns products and fulfils the vendor sub-orders an order is
split into.  ``user`` links the vendor to the Django account it acts
through; it is optional so vendors can be imported before they log in.
"""

from __future__ import annotations

import structlog
from django.conf import settings
from django.db import models

from modules.core.models import SoftDeleteModel

logger = structlog.get_logger(__name__)


class Vendor(SoftDeleteModel):
    name = models.CharField(max_length=255)
    email = models.EmailField(max_length=254, unique=True)
    is_active = models.BooleanField(default=True)
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="vendor_profile",
    )

    class Meta:
        db_table = "vendors"
        ordering = ["name"]

    def save(self, *args, **kwargs) -> None:
        if self.email:
            self.email = self.email.strip().lower()
        is_new = self._state.adding
        super().save(*args, **kwargs)
        if is_new:
            logger.info("vendor_created", vendor_id=str(self.id))

    def __str__(self) -> str:
        return self.name
