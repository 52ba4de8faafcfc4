"""Cooler asset and CoolerInspection models: 'coolers' and 'cooler_inspections'."""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from sfa.domain.models.audit import AuditMixin
from sfa.infrastructure.database import Base


class Cooler(AuditMixin, Base):
    __tablename__ = "coolers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(50), unique=True, nullable=False, index=True)
    brand = Column(String(100), nullable=True)
    model = Column(String(100), nullable=True)
    serial_number = Column(String(100), nullable=True)
    customer_id = Column(Integer, nullable=True, index=True)
    capacity = Column(Integer, nullable=True)
    install_date = Column(DateTime(timezone=True), nullable=True)
    last_service_date = Column(DateTime(timezone=True), nullable=True)
    next_service_due = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(50), nullable=False, default="working")
    temperature = Column(Numeric(6, 2), nullable=True)
    energy_rating = Column(String(20), nullable=True)
    warranty_expiry = Column(DateTime(timezone=True), nullable=True)
    maintenance_contract = Column(String(255), nullable=True)
    technician_id = Column(Integer, nullable=True)
    last_scanned_date = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(String(1), nullable=False, default="Y")

    def __repr__(self):
        return f"<Cooler {self.code}>"


class CoolerInspection(AuditMixin, Base):
    __tablename__ = "cooler_inspections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    cooler_id = Column(Integer, ForeignKey("coolers.id"), nullable=False, index=True)
    visit_id = Column(Integer, ForeignKey("visits.id"), nullable=False, index=True)
    inspected_by = Column(Integer, nullable=False)
    inspection_date = Column(DateTime(timezone=True), nullable=False)
    temperature = Column(Numeric(6, 2), nullable=True)
    is_working = Column(String(1), nullable=False, default="Y")
    issues = Column(Text, nullable=True)
    images = Column(Text, nullable=True)
    latitude = Column(Numeric(10, 7), nullable=True)
    longitude = Column(Numeric(10, 7), nullable=True)
    action_required = Column(String(1), nullable=False, default="N")
    action_taken = Column(Text, nullable=True)
    next_inspection_due = Column(DateTime(timezone=True), nullable=True)

    cooler = relationship("Cooler", lazy="joined")

    def __repr__(self):
        return f"<CoolerInspection {self.id} - cooler {self.cooler_id}>"
