import os

# Settings are read at import time; point them at throwaway backends first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"
os.environ["S3_BUCKET"] = ""
os.environ["SECRET_KEY"] = "test-secret"

import pytest
from sqlalchemy.orm import sessionmaker

from sfa.application.services.visit_bulk_service import BulkVisitService
from sfa.core.exceptions import CompensationError, UploadError
from sfa.domain.models.cooler import Cooler, CoolerInspection
from sfa.domain.models.order import Order, OrderItem
from sfa.domain.models.payment import Payment
from sfa.domain.models.survey import SurveyAnswer, SurveyResponse
from sfa.domain.models.visit import Visit
from sfa.infrastructure.database import Base, create_db_engine
from sfa.infrastructure.unit_of_work import SqlAlchemyUnitOfWork

ALL_MODELS = (Visit, Order, OrderItem, Payment, Cooler, CoolerInspection, SurveyResponse, SurveyAnswer)


class FakeBlobStorage:
    """In-memory BlobStorage. ``fail_after`` makes the N+1th upload fail."""

    def __init__(self, fail_after=None, fail_deletes=False):
        self.fail_after = fail_after
        self.fail_deletes = fail_deletes
        self.objects = {}
        self.uploaded = []
        self.deleted = []

    def upload(self, data, key, content_type):
        if self.fail_after is not None and len(self.uploaded) >= self.fail_after:
            raise UploadError("Image upload failed: storage unavailable")
        url = f"https://cdn.test/sfa/{key}"
        self.objects[url] = data
        self.uploaded.append(url)
        return url

    def delete(self, url):
        self.deleted.append(url)
        if self.fail_deletes:
            raise CompensationError(f"Failed to delete {url}")
        self.objects.pop(url, None)


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def storage():
    return FakeBlobStorage()


@pytest.fixture
def service(session_factory, storage):
    return BulkVisitService(uow_factory=lambda: SqlAlchemyUnitOfWork(session_factory), storage=storage)


@pytest.fixture
def count_rows(session_factory):
    def _count():
        with session_factory() as db:
            return {model.__tablename__: db.query(model).count() for model in ALL_MODELS}

    return _count


@pytest.fixture
def visit_payload():
    def _build(**overrides):
        visit = {
            "customer_id": 11,
            "sales_person_id": 7,
            "visit_date": "2024-05-02",
            "purpose": "routine",
            "start_latitude": "12.9716",
            "start_longitude": "77.5946",
            "end_latitude": "",
            "amount_collected": "",
        }
        visit.update(overrides)
        return visit

    return _build
