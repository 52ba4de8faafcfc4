"""Aggregate upsert: writes one visit and its child tree inside a unit of work.

The caller owns the transaction: every function here only flushes through the
unit of work's repositories, so any exception leaves nothing behind once the
unit of work rolls back.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

import pytz
import structlog

from sfa.application.services.identifiers import (
    generate_cooler_code,
    generate_order_number,
    next_payment_number,
)
from sfa.config import get_settings
from sfa.core.exceptions import ConstraintError, NotFoundError, ValidationError
from sfa.domain.models.cooler import Cooler
from sfa.domain.models.order import Order
from sfa.domain.models.payment import Payment
from sfa.domain.models.visit import Visit
from sfa.domain.schemas.visit_batch import (
    BulkVisitItem,
    CoolerInput,
    CoolerInspectionInput,
    OrderInput,
    PaymentInput,
    SurveyResponseInput,
    is_positive_id,
)
from sfa.domain.schemas.visit_result import (
    CoolerInspectionRead,
    OrderRead,
    PaymentRead,
    SurveyResponseRead,
    VisitAggregateRead,
    VisitImages,
    VisitRead,
)
from sfa.infrastructure.unit_of_work import SqlAlchemyUnitOfWork

logger = structlog.get_logger(__name__)
settings = get_settings()
tz = pytz.timezone(settings.TIMEZONE)

ORDER_NUMBER_MAX_ATTEMPTS = 5
COOLER_CODE_MAX_ATTEMPTS = 5


@dataclass
class TouchedRows:
    order_ids: list[int] = field(default_factory=list)
    payment_ids: list[int] = field(default_factory=list)
    inspection_ids: list[int] = field(default_factory=list)
    response_ids: list[int] = field(default_factory=list)


@dataclass
class UpsertOutcome:
    visit_id: int
    is_update: bool
    aggregate: VisitAggregateRead
    # Visit column -> media URLs superseded by this write
    replaced_media: dict[str, str]


def split_urls(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [url.strip() for url in value.split(",") if url.strip()]


def _without_nulls(values: dict[str, Any], *names: str) -> dict[str, Any]:
    """Drop NOT NULL columns a caller explicitly sent as null on update."""
    return {key: value for key, value in values.items() if not (key in names and value is None)}


def _created(actor_id: int) -> dict[str, Any]:
    return {"createdby": actor_id}


def _updated(actor_id: int, now: datetime) -> dict[str, Any]:
    return {"updatedby": actor_id, "updatedate": now}


# ---- Visit ------------------------------------------------------------------


def upsert_visit_row(
    uow: SqlAlchemyUnitOfWork,
    item: BulkVisitItem,
    media: dict[str, str],
    actor_id: int,
    now: datetime,
) -> tuple[Visit, dict[str, str]]:
    """Create or update the visit root; returns it with the media it replaced."""
    visit_in = item.visit

    if not visit_in.is_update:
        values = visit_in.changes(partial=False) | media | _created(actor_id)
        return uow.visits.create(values), {}

    visit = uow.visits.get_by_id(visit_in.visit_id)
    if visit is None:
        raise NotFoundError(f"Visit {visit_in.visit_id} not found", details={"visit_id": visit_in.visit_id})

    previous = visit.media_urls()
    replaced = {
        column: previous[column]
        for column, urls in media.items()
        if previous.get(column) and previous[column] != urls
    }

    visit = uow.visits.update(visit, visit_in.changes(partial=True) | media | _updated(actor_id, now))
    return visit, replaced


# ---- Orders -----------------------------------------------------------------


def _new_order_number(uow: SqlAlchemyUnitOfWork, now: datetime) -> str:
    for _ in range(ORDER_NUMBER_MAX_ATTEMPTS):
        number = generate_order_number(now)
        if uow.orders.get_by_unique_key(number) is None:
            return number
    raise ConstraintError("Could not allocate a unique order number")


def upsert_order(
    uow: SqlAlchemyUnitOfWork,
    order_in: OrderInput,
    visit: Visit,
    actor_id: int,
    now: datetime,
) -> Order:
    # Orders always follow the visit's customer and sales person
    context = {"parent_id": visit.customer_id, "salesperson_id": visit.sales_person_id}

    if is_positive_id(order_in.order_id):
        order = uow.orders.get_by_id(order_in.order_id)
        if order is None:
            raise NotFoundError(f"Order {order_in.order_id} not found", details={"order_id": order_in.order_id})

        values = _without_nulls(order_in.changes(partial=True), "order_number", "order_date")
        order = uow.orders.update(order, values | context | _updated(actor_id, now))

        for item_in in order_in.items:
            if is_positive_id(item_in.item_id):
                row = uow.order_items.get_by_id(item_in.item_id)
                if row is None or row.parent_id != order.id:
                    raise NotFoundError(
                        f"Order item {item_in.item_id} not found",
                        details={"order_id": order.id, "item_id": item_in.item_id},
                    )
                uow.order_items.update(row, item_in.changes(partial=True))
            else:
                uow.order_items.create(item_in.changes(partial=False) | {"parent_id": order.id})
        return order

    values = order_in.changes(partial=False) | context | _created(actor_id)
    values["order_number"] = values.get("order_number") or _new_order_number(uow, now)
    values["order_date"] = values.get("order_date") or now
    order = uow.orders.create(values)

    uow.order_items.create_many(
        item_in.changes(partial=False) | {"parent_id": order.id} for item_in in order_in.items
    )
    return order


# ---- Payments ---------------------------------------------------------------


def create_payment_with_generated_number(
    uow: SqlAlchemyUnitOfWork,
    values: dict[str, Any],
    now: datetime,
) -> Payment:
    """Insert a payment under a freshly generated number, retrying on collision."""
    attempts = settings.PAYMENT_NUMBER_MAX_ATTEMPTS
    for attempt in range(1, attempts + 1):
        number = next_payment_number(uow.payments, now)
        payment = uow.payments.try_create(values | {"payment_number": number})
        if payment is not None:
            return payment
        logger.warning("Payment number taken, regenerating", payment_number=number, attempt=attempt)
    raise ConstraintError(
        "Could not allocate a unique payment number",
        details={"constraint": "payments_payment_number_key", "attempts": attempts},
    )


def upsert_payment(
    uow: SqlAlchemyUnitOfWork,
    payment_in: PaymentInput,
    visit: Visit,
    actor_id: int,
    now: datetime,
) -> Payment:
    if is_positive_id(payment_in.payment_id):
        payment = uow.payments.get_by_id(payment_in.payment_id)
        if payment is None:
            raise NotFoundError(
                f"Payment {payment_in.payment_id} not found",
                details={"payment_id": payment_in.payment_id},
            )
        values = _without_nulls(payment_in.changes(partial=True), "payment_number", "customer_id", "payment_date")
        return uow.payments.update(payment, values | _updated(actor_id, now))

    if payment_in.payment_number:
        existing = uow.payments.get_by_unique_key(payment_in.payment_number)
        if existing is not None:
            values = _without_nulls(payment_in.changes(partial=True), "customer_id", "payment_date")
            return uow.payments.update(existing, values | _updated(actor_id, now))

    values = payment_in.changes(partial=False) | _created(actor_id)
    values["customer_id"] = values.get("customer_id") or visit.customer_id
    values["payment_date"] = values.get("payment_date") or now

    if payment_in.payment_number:
        return uow.payments.create(values)
    return create_payment_with_generated_number(uow, values, now)


# ---- Cooler inspections -----------------------------------------------------


def resolve_cooler(
    uow: SqlAlchemyUnitOfWork,
    cooler_in: CoolerInput,
    visit: Visit,
    actor_id: int,
    now: datetime,
) -> Cooler:
    """Update the inline cooler by id or code, or register a new one."""
    if is_positive_id(cooler_in.id):
        cooler = uow.coolers.get_by_id(cooler_in.id)
        if cooler is None:
            raise NotFoundError(f"Cooler {cooler_in.id} not found", details={"cooler_id": cooler_in.id})
        values = _without_nulls(cooler_in.changes(partial=True), "code")
        return uow.coolers.update(cooler, values | _updated(actor_id, now))

    if cooler_in.code:
        existing = uow.coolers.get_by_unique_key(cooler_in.code)
        if existing is not None:
            return uow.coolers.update(existing, cooler_in.changes(partial=True) | _updated(actor_id, now))

    values = cooler_in.changes(partial=False) | _created(actor_id)
    values["customer_id"] = values.get("customer_id") or visit.customer_id

    if cooler_in.code:
        return uow.coolers.create(values)

    for _ in range(COOLER_CODE_MAX_ATTEMPTS):
        cooler = uow.coolers.try_create(values | {"code": generate_cooler_code()})
        if cooler is not None:
            return cooler
    raise ConstraintError("Could not allocate a unique cooler code", details={"constraint": "coolers_code_key"})


def upsert_cooler_inspection(
    uow: SqlAlchemyUnitOfWork,
    inspection_in: CoolerInspectionInput,
    visit: Visit,
    actor_id: int,
    now: datetime,
):
    cooler_id = inspection_in.cooler_id
    if inspection_in.cooler is not None:
        cooler_id = resolve_cooler(uow, inspection_in.cooler, visit, actor_id, now).id
    if not is_positive_id(cooler_id):
        raise ValidationError("Cooler ID is required for inspection")

    links = {"cooler_id": cooler_id, "visit_id": visit.id}

    if is_positive_id(inspection_in.id):
        inspection = uow.cooler_inspections.get_by_id(inspection_in.id)
        if inspection is None:
            raise NotFoundError(
                f"Cooler inspection {inspection_in.id} not found",
                details={"inspection_id": inspection_in.id},
            )
        values = _without_nulls(inspection_in.changes(partial=True), "inspection_date")
        return uow.cooler_inspections.update(inspection, values | links | _updated(actor_id, now))

    values = inspection_in.changes(partial=False) | links | _created(actor_id)
    values["inspection_date"] = values.get("inspection_date") or now
    return uow.cooler_inspections.create(values)


# ---- Surveys ----------------------------------------------------------------


def upsert_survey_response(
    uow: SqlAlchemyUnitOfWork,
    response_in: SurveyResponseInput,
    visit: Visit,
    actor_id: int,
    now: datetime,
):
    if is_positive_id(response_in.id):
        response = uow.survey_responses.get_by_id(response_in.id)
        if response is None:
            raise NotFoundError(
                f"Survey response {response_in.id} not found",
                details={"survey_response_id": response_in.id},
            )
        values = _without_nulls(response_in.changes(partial=True), "submitted_at")
        response = uow.survey_responses.update(
            response, values | {"visit_id": visit.id} | _updated(actor_id, now)
        )
    else:
        values = response_in.changes(partial=False) | {"visit_id": visit.id} | _created(actor_id)
        values["customer_id"] = values.get("customer_id") or visit.customer_id
        values["submitted_at"] = values.get("submitted_at") or now
        response = uow.survey_responses.create(values)

    for answer_in in response_in.survey_answers:
        if is_positive_id(answer_in.id):
            answer = uow.survey_answers.get_by_id(answer_in.id)
            if answer is None or answer.parent_id != response.id:
                raise NotFoundError(
                    f"Survey answer {answer_in.id} not found",
                    details={"survey_response_id": response.id, "survey_answer_id": answer_in.id},
                )
            uow.survey_answers.update(answer, answer_in.changes(partial=True))
        else:
            uow.survey_answers.create(answer_in.changes(partial=False) | {"parent_id": response.id})
    return response


# ---- Aggregate --------------------------------------------------------------


def load_aggregate(uow: SqlAlchemyUnitOfWork, visit_id: int, touched: TouchedRows) -> VisitAggregateRead:
    """Re-read the visit and the child rows this write touched."""
    uow.session.expire_all()
    visit = uow.visits.get_by_id(visit_id)

    return VisitAggregateRead(
        **VisitRead.model_validate(visit).model_dump(),
        orders=[OrderRead.model_validate(o) for o in uow.orders.get_by_ids(touched.order_ids)],
        payments=[PaymentRead.model_validate(p) for p in uow.payments.get_by_ids(touched.payment_ids)],
        cooler_inspections=[
            CoolerInspectionRead.model_validate(i)
            for i in uow.cooler_inspections.get_by_ids(touched.inspection_ids)
        ],
        survey_responses=[
            SurveyResponseRead.model_validate(r)
            for r in uow.survey_responses.get_by_ids(touched.response_ids)
        ],
        images=VisitImages(
            self=split_urls(visit.self_image),
            customer=split_urls(visit.customer_image),
            cooler=split_urls(visit.cooler_image),
        ),
    )


def upsert_visit_aggregate(
    uow: SqlAlchemyUnitOfWork,
    item: BulkVisitItem,
    media: dict[str, str],
    actor_id: int,
) -> UpsertOutcome:
    """Write the whole tree of one item. Raises on the first failing step."""
    now = datetime.now(tz)
    touched = TouchedRows()

    visit, replaced = upsert_visit_row(uow, item, media, actor_id, now)
    uow.check_deadline()

    for order_in in item.orders:
        touched.order_ids.append(upsert_order(uow, order_in, visit, actor_id, now).id)
    uow.check_deadline()

    for payment_in in item.payments:
        touched.payment_ids.append(upsert_payment(uow, payment_in, visit, actor_id, now).id)
    uow.check_deadline()

    for inspection_in in item.cooler_inspections:
        touched.inspection_ids.append(upsert_cooler_inspection(uow, inspection_in, visit, actor_id, now).id)
    uow.check_deadline()

    for block in item.survey:
        touched.response_ids.append(
            upsert_survey_response(uow, block.survey_response, visit, actor_id, now).id
        )
    uow.check_deadline()

    return UpsertOutcome(
        visit_id=visit.id,
        is_update=item.visit.is_update,
        aggregate=load_aggregate(uow, visit.id, touched),
        replaced_media=replaced,
    )
