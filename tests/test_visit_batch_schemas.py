from datetime import datetime, timezone
from decimal import Decimal

from sfa.domain.schemas.visit_batch import (
    BulkVisitItem,
    CoolerInput,
    OrderInput,
    OrderItemInput,
    VisitInput,
    is_positive_id,
)


def test_is_positive_id():
    assert is_positive_id(5)
    assert not is_positive_id(0)
    assert not is_positive_id(-3)
    assert not is_positive_id(None)
    assert not is_positive_id(True)


def test_visit_blank_coordinates_become_null_and_dates_parse():
    visit = VisitInput.model_validate(
        {
            "customer_id": 1,
            "sales_person_id": 2,
            "start_latitude": "",
            "amount_collected": "  ",
            "visit_date": "2024-05-02",
            "check_in_time": "2024-05-02T09:30:00Z",
        }
    )
    assert visit.start_latitude is None
    assert visit.amount_collected is None
    assert visit.visit_date == datetime(2024, 5, 2)
    assert visit.check_in_time == datetime(2024, 5, 2, 9, 30, tzinfo=timezone.utc)


def test_visit_partial_changes_only_carry_supplied_fields():
    visit = VisitInput.model_validate(
        {"visit_id": 9, "customer_id": 1, "sales_person_id": 2, "purpose": "restock"}
    )
    assert visit.is_update
    assert visit.changes(partial=True) == {"customer_id": 1, "sales_person_id": 2, "purpose": "restock"}
    full = visit.changes(partial=False)
    assert full["is_active"] == "Y"
    assert full["visit_notes"] is None
    assert "visit_id" not in full


def test_order_defaults_fill_blank_values():
    order = OrderInput.model_validate({"status": "", "priority": None, "items": None})
    assert order.status == "draft"
    assert order.priority == "medium"
    assert order.order_type == "regular"
    assert order.payment_method == "credit"
    assert order.payment_terms == "Net 30"
    assert order.approval_status == "pending"
    assert order.items == []


def test_order_item_total_is_computed_when_missing():
    item = OrderItemInput.model_validate(
        {"product_id": 3, "quantity": "2", "unit_price": "10.50", "discount_amount": "1", "tax_amount": "0.5"}
    )
    assert item.changes(partial=False)["total_amount"] == Decimal("20.50")


def test_order_item_supplied_total_wins():
    item = OrderItemInput.model_validate({"product_id": 3, "quantity": 2, "unit_price": 10, "total_amount": 15})
    assert item.changes(partial=False)["total_amount"] == Decimal("15")


def test_cooler_capacity_keeps_digits_only():
    assert CoolerInput.model_validate({"capacity": "300 L"}).capacity == 300
    assert CoolerInput.model_validate({"capacity": "large"}).capacity is None
    assert CoolerInput.model_validate({"capacity": 250}).capacity == 250


def test_single_survey_block_is_wrapped():
    item = BulkVisitItem.model_validate(
        {
            "visit": {"customer_id": 1, "sales_person_id": 2},
            "survey": {
                "survey_response": {
                    "parent_id": 4,
                    "submitted_by": 2,
                    "survey_answers": [{"field_id": 1, "answer": 5}],
                }
            },
        }
    )
    assert len(item.survey) == 1
    assert item.survey[0].survey_response.survey_answers[0].answer == "5"
