"""
Payment Repository Interface.
"""

from typing import Any, Optional

from sfa.domain.models.payment import Payment
from sfa.domain.repositories.base import UniqueKeyRepository


class PaymentRepository(UniqueKeyRepository[Payment]):
    """Interface for Payment-specific operations."""

    def max_sequence_for_prefix(self, prefix: str) -> int:
        """Highest numeric sequence among payment numbers starting with ``prefix``."""
        ...

    def try_create(self, obj_in: Any) -> Optional[Payment]:
        """Insert inside a savepoint; None when the payment number is already taken."""
        ...
