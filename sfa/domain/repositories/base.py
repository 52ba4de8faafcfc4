"""
Base Repository Interface.
Defines the standard contract for data access operations inside a unit of work.
"""

from typing import TypeVar, List, Optional, Any, Protocol, Iterable

T = TypeVar("T")


class BaseRepository(Protocol[T]):
    """Interface for generic create/update operations."""

    def get_by_id(self, id: int) -> Optional[T]:
        """Get a single entity by ID."""
        ...

    def get_by_ids(self, ids: Iterable[int]) -> List[T]:
        """Get entities by ID, ordered by ID."""
        ...

    def create(self, obj_in: Any) -> T:
        """Create a new entity."""
        ...

    def update(self, db_obj: T, obj_in: Any) -> T:
        """Update an existing entity."""
        ...


class UniqueKeyRepository(BaseRepository[T], Protocol[T]):
    """Entities carrying a business key that is unique across the dataset."""

    def get_by_unique_key(self, key: str) -> Optional[T]:
        """Get a single entity by its business key."""
        ...
