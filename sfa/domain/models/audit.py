"""Audit columns shared by every table the visit pipeline writes."""

from sqlalchemy import Column, Integer, DateTime
from sqlalchemy.sql import func


class AuditMixin:
    createdate = Column(DateTime(timezone=True), server_default=func.now())
    createdby = Column(Integer, nullable=True)
    updatedate = Column(DateTime(timezone=True), nullable=True)
    updatedby = Column(Integer, nullable=True)
