"""Payment domain model: maps to the 'payments' table."""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text

from sfa.domain.models.audit import AuditMixin
from sfa.infrastructure.database import Base


class Payment(AuditMixin, Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    payment_number = Column(String(50), unique=True, nullable=False, index=True)
    customer_id = Column(Integer, nullable=False, index=True)
    payment_date = Column(DateTime(timezone=True), nullable=False)
    collected_by = Column(Integer, nullable=False)
    method = Column(String(50), nullable=False)
    reference_number = Column(String(100), nullable=True)
    total_amount = Column(Numeric(18, 2), nullable=False)
    notes = Column(Text, nullable=True)
    is_active = Column(String(1), nullable=False, default="Y")
    currency_id = Column(Integer, nullable=True)

    def __repr__(self):
        return f"<Payment {self.payment_number} - {self.total_amount}>"
