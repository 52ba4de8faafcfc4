"""
Unit of work for one visit aggregate.

Opens a session, exposes the repositories the visit pipeline writes through,
and commits or rolls back every write of the aggregate together. Database
failures are translated into application errors on the way out.
"""

import time
from typing import Callable, Optional

import structlog
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from sfa.config import get_settings
from sfa.core.exceptions import ConstraintError, TransactionTimeoutError
from sfa.domain.models.cooler import CoolerInspection
from sfa.domain.models.order import Order, OrderItem
from sfa.domain.models.survey import SurveyAnswer, SurveyResponse
from sfa.domain.models.visit import Visit
from sfa.infrastructure.database import SessionLocal
from sfa.infrastructure.repositories.base_repository import SQLAlchemyRepository
from sfa.infrastructure.repositories.cooler_repository import SQLAlchemyCoolerRepository
from sfa.infrastructure.repositories.payment_repository import SQLAlchemyPaymentRepository

logger = structlog.get_logger(__name__)
settings = get_settings()

# PostgreSQL "query_canceled", raised when statement_timeout fires
QUERY_CANCELED = "57014"


class SqlAlchemyUnitOfWork:
    """Context manager wrapping one database transaction."""

    def __init__(
        self,
        session_factory: Callable[[], Session] = SessionLocal,
        timeout_seconds: Optional[float] = None,
    ):
        self.session_factory = session_factory
        self.timeout_seconds = timeout_seconds or settings.DB_TRANSACTION_TIMEOUT_SECONDS
        self.deadline = 0.0
        self.session: Optional[Session] = None

    def __enter__(self) -> "SqlAlchemyUnitOfWork":
        self.session = self.session_factory()
        self.deadline = time.monotonic() + self.timeout_seconds

        self.visits = SQLAlchemyRepository(self.session, Visit)
        self.orders = SQLAlchemyRepository(self.session, Order, unique_key="order_number")
        self.order_items = SQLAlchemyRepository(self.session, OrderItem)
        self.payments = SQLAlchemyPaymentRepository(self.session)
        self.coolers = SQLAlchemyCoolerRepository(self.session)
        self.cooler_inspections = SQLAlchemyRepository(self.session, CoolerInspection)
        self.survey_responses = SQLAlchemyRepository(self.session, SurveyResponse)
        self.survey_answers = SQLAlchemyRepository(self.session, SurveyAnswer)

        try:
            # First statement checks out the pooled connection
            if self.session.get_bind().dialect.name == "postgresql":
                timeout_ms = int(self.timeout_seconds * 1000)
                self.session.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))
        except Exception as e:
            # __exit__ does not run when __enter__ raises
            self.session.close()
            self._raise_translated(e)
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is not None:
                self.rollback()
        finally:
            self.session.close()

        if exc is not None:
            self._raise_translated(exc)

    def _raise_translated(self, exc: BaseException) -> None:
        """Re-raise database failures as application errors; others pass through."""
        if isinstance(exc, IntegrityError):
            raise ConstraintError(
                "Constraint violation",
                details={"constraint": _constraint_name(exc), "error": str(exc.orig)},
            ) from exc
        if isinstance(exc, PoolTimeoutError):
            raise TransactionTimeoutError(
                "Timed out waiting for a database connection",
                details={"pool_timeout_seconds": settings.DB_POOL_TIMEOUT_SECONDS},
            ) from exc
        if isinstance(exc, OperationalError) and getattr(exc.orig, "pgcode", None) == QUERY_CANCELED:
            raise TransactionTimeoutError(
                details={"timeout_seconds": self.timeout_seconds},
            ) from exc

    def check_deadline(self) -> None:
        """Abort once the transaction has run past its execution budget."""
        if time.monotonic() > self.deadline:
            raise TransactionTimeoutError(details={"timeout_seconds": self.timeout_seconds})

    def commit(self) -> None:
        self.check_deadline()
        self.session.commit()

    def rollback(self) -> None:
        try:
            self.session.rollback()
        except Exception:
            logger.exception("Rollback failed")


def _constraint_name(exc: IntegrityError) -> Optional[str]:
    diag = getattr(exc.orig, "diag", None)
    return getattr(diag, "constraint_name", None)
