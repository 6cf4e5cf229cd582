"""Generic repository interface (Dependency Inversion Principle).

``IRepository[T]`` is the base every module-specific repository
contract extends.  Services depend on these abstractions and never
touch the Django ORM directly.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class IRepository(ABC, Generic[T]):
    """Base generic repository contract.

    ``T`` is the entity managed by the repository (``Order``,
    ``Product``, ...).  ``get_by_id`` returns ``None`` for unknown or
    malformed identifiers instead of raising.
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by its primary key."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Persist (create or update) an entity."""
