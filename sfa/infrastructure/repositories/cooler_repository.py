"""
SQLAlchemy Implementation of Cooler Repository.
"""

from sqlalchemy.orm import Session

from sfa.domain.models.cooler import Cooler
from sfa.domain.repositories.cooler_repository import CoolerRepository
from sfa.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyCoolerRepository(SQLAlchemyRepository[Cooler], CoolerRepository):
    """Cooler repository implementation using SQLAlchemy."""

    unique_key = "code"

    def __init__(self, db: Session):
        super().__init__(db, Cooler)
