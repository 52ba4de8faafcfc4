"""
SQLAlchemy implementation of the Base Repository.

Repositories never commit: writes are flushed into the session owned by the
surrounding unit of work, which commits or rolls back the whole visit.
"""

from typing import Any, Generic, Iterable, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from sfa.domain.repositories.base import BaseRepository
from sfa.infrastructure.database import Base

ModelType = TypeVar("ModelType", bound=Base)


def _as_dict(obj_in: Any) -> dict:
    if hasattr(obj_in, "model_dump"):
        return obj_in.model_dump(exclude_unset=True)
    return dict(obj_in)


class SQLAlchemyRepository(BaseRepository[ModelType], Generic[ModelType]):
    """Generic repository implementation for SQLAlchemy models."""

    # Column holding the business key, for repositories that have one
    unique_key: Optional[str] = None

    def __init__(self, db: Session, model: Type[ModelType], unique_key: Optional[str] = None):
        self.db = db
        self.model = model
        if unique_key:
            self.unique_key = unique_key

    def get_by_id(self, id: int) -> Optional[ModelType]:
        return self.db.query(self.model).filter(self.model.id == id).first()

    def get_by_ids(self, ids: Iterable[int]) -> List[ModelType]:
        ids = list(ids)
        if not ids:
            return []
        return self.db.query(self.model).filter(self.model.id.in_(ids)).order_by(self.model.id).all()

    def get_by_unique_key(self, key: str) -> Optional[ModelType]:
        column = getattr(self.model, self.unique_key)
        return self.db.query(self.model).filter(column == key).first()

    def create(self, obj_in: Any) -> ModelType:
        db_obj = self.model(**_as_dict(obj_in))
        self.db.add(db_obj)
        self.db.flush()
        self.db.refresh(db_obj)
        return db_obj

    def create_many(self, objs_in: Iterable[Any]) -> List[ModelType]:
        db_objs = [self.model(**_as_dict(obj_in)) for obj_in in objs_in]
        self.db.add_all(db_objs)
        self.db.flush()
        return db_objs

    def update(self, db_obj: ModelType, obj_in: Any) -> ModelType:
        update_data = _as_dict(obj_in)

        for field in update_data:
            if hasattr(db_obj, field):
                setattr(db_obj, field, update_data[field])

        self.db.add(db_obj)
        self.db.flush()
        self.db.refresh(db_obj)
        return db_obj

    def try_create(self, obj_in: Any) -> Optional[ModelType]:
        """Insert inside a savepoint.

        Returns None when the business key is already taken, letting the caller
        pick another key without losing the rest of the transaction. Any other
        integrity failure propagates.
        """
        data = _as_dict(obj_in)
        savepoint = self.db.begin_nested()
        try:
            db_obj = self.model(**data)
            self.db.add(db_obj)
            self.db.flush()
        except IntegrityError:
            savepoint.rollback()
            if self.get_by_unique_key(data[self.unique_key]) is not None:
                return None
            raise
        savepoint.commit()
        self.db.refresh(db_obj)
        return db_obj
