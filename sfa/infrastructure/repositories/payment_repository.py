"""
SQLAlchemy Implementation of Payment Repository.
"""

from sqlalchemy.orm import Session

from sfa.domain.models.payment import Payment
from sfa.domain.repositories.payment_repository import PaymentRepository
from sfa.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyPaymentRepository(SQLAlchemyRepository[Payment], PaymentRepository):
    """Payment repository implementation using SQLAlchemy."""

    unique_key = "payment_number"

    def __init__(self, db: Session):
        super().__init__(db, Payment)

    def max_sequence_for_prefix(self, prefix: str) -> int:
        """Scan ``PAY-YYYYMMDD-NNN[-suffix]`` numbers of one day for the highest NNN."""
        rows = (
            self.db.query(Payment.payment_number)
            .filter(Payment.payment_number.like(f"{prefix}%"))
            .all()
        )
        highest = 0
        for (number,) in rows:
            sequence = number[len(prefix):].split("-", 1)[0]
            if sequence.isdigit():
                highest = max(highest, int(sequence))
        return highest
