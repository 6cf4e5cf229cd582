"""Vendor repository interface."""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.vendors.models import Vendor


class IVendorRepository(IRepository["Vendor"]):
    @abstractmethod
    def get_by_user(self, user: Any) -> Optional[Vendor]:
        """Return the live vendor profile linked to a Django user."""
