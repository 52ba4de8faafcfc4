"""Visit domain model: maps to the 'visits' table (aggregate root)."""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text

from sfa.domain.models.audit import AuditMixin
from sfa.infrastructure.database import Base

# Visit column -> upload slot feeding it
MEDIA_FIELDS = {
    "self_image": "self_images",
    "customer_image": "customer_images",
    "cooler_image": "cooler_images",
}


class Visit(AuditMixin, Base):
    __tablename__ = "visits"

    id = Column(Integer, primary_key=True, autoincrement=True)

    customer_id = Column(Integer, nullable=False, index=True)
    sales_person_id = Column(Integer, nullable=False, index=True)
    route_id = Column(Integer, nullable=True)
    zones_id = Column(Integer, nullable=True)

    visit_date = Column(DateTime(timezone=True), nullable=True, index=True)
    visit_time = Column(String(20), nullable=True)
    purpose = Column(String(255), nullable=True)
    status = Column(String(50), nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    duration = Column(Integer, nullable=True)
    start_latitude = Column(Numeric(10, 7), nullable=True)
    start_longitude = Column(Numeric(10, 7), nullable=True)
    end_latitude = Column(Numeric(10, 7), nullable=True)
    end_longitude = Column(Numeric(10, 7), nullable=True)
    check_in_time = Column(DateTime(timezone=True), nullable=True)
    check_out_time = Column(DateTime(timezone=True), nullable=True)
    orders_created = Column(Integer, nullable=True)
    amount_collected = Column(Numeric(18, 2), nullable=True)
    visit_notes = Column(Text, nullable=True)
    customer_feedback = Column(Text, nullable=True)
    next_visit_date = Column(DateTime(timezone=True), nullable=True)

    # Comma-joined storage URLs, or NULL
    self_image = Column(Text, nullable=True)
    customer_image = Column(Text, nullable=True)
    cooler_image = Column(Text, nullable=True)

    is_active = Column(String(1), nullable=False, default="Y")

    def media_urls(self) -> dict[str, str | None]:
        return {field: getattr(self, field) for field in MEDIA_FIELDS}

    def __repr__(self):
        return f"<Visit {self.id} - customer {self.customer_id}>"
