"""Order and OrderItem domain models: map to 'orders' and 'order_items'."""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from sfa.domain.models.audit import AuditMixin
from sfa.infrastructure.database import Base


class Order(AuditMixin, Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(50), unique=True, nullable=False, index=True)

    # Customer / sales-person context stamped from the owning visit
    parent_id = Column(Integer, nullable=False, index=True)
    salesperson_id = Column(Integer, nullable=False, index=True)

    order_type = Column(String(50), nullable=False, default="regular")
    order_date = Column(DateTime(timezone=True), nullable=False)
    delivery_date = Column(DateTime(timezone=True), nullable=True)
    status = Column(String(50), nullable=False, default="draft")
    priority = Column(String(20), nullable=False, default="medium")
    payment_method = Column(String(50), nullable=False, default="credit")
    payment_terms = Column(String(50), nullable=True, default="Net 30")
    subtotal = Column(Numeric(18, 2), nullable=False, default=0)
    discount_amount = Column(Numeric(18, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(18, 2), nullable=False, default=0)
    shipping_amount = Column(Numeric(18, 2), nullable=False, default=0)
    total_amount = Column(Numeric(18, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    shipping_address = Column(Text, nullable=True)
    approval_status = Column(String(50), nullable=False, default="pending")
    approved_by = Column(Integer, nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(String(1), nullable=False, default="Y")

    items = relationship(
        "OrderItem",
        back_populates="order",
        order_by="OrderItem.id",
        lazy="selectin",
    )

    def __repr__(self):
        return f"<Order {self.order_number}>"


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, autoincrement=True)
    parent_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False, index=True)
    product_name = Column(String(255), nullable=True)
    unit = Column(String(50), nullable=True)
    quantity = Column(Numeric(18, 3), nullable=False)
    unit_price = Column(Numeric(18, 2), nullable=False)
    discount_amount = Column(Numeric(18, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(18, 2), nullable=False, default=0)
    total_amount = Column(Numeric(18, 2), nullable=False)
    notes = Column(Text, nullable=True)

    order = relationship("Order", back_populates="items")

    def __repr__(self):
        return f"<OrderItem {self.id} - product {self.product_id}>"
