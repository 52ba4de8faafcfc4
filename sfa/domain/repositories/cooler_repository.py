"""
Cooler Repository Interface.
"""

from typing import Any, Optional

from sfa.domain.models.cooler import Cooler
from sfa.domain.repositories.base import UniqueKeyRepository


class CoolerRepository(UniqueKeyRepository[Cooler]):
    """Interface for Cooler-specific operations."""

    def try_create(self, obj_in: Any) -> Optional[Cooler]:
        """Insert inside a savepoint; None when the cooler code is already taken."""
        ...
