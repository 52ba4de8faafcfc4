"""
API Dependencies.
"""

from sfa.application.services.visit_bulk_service import BulkVisitService
from sfa.infrastructure.storage import get_blob_storage
from sfa.infrastructure.unit_of_work import SqlAlchemyUnitOfWork


def get_bulk_visit_service() -> BulkVisitService:
    """Get bulk visit service instance."""
    return BulkVisitService(uow_factory=SqlAlchemyUnitOfWork, storage=get_blob_storage())
