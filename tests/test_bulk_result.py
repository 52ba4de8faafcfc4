from sfa.application.services.bulk_result import BulkResultAggregator
from sfa.domain.schemas.visit_result import VisitAggregateRead


def _aggregate(visit_id):
    return VisitAggregateRead(id=visit_id, customer_id=1, sales_person_id=2, is_active="Y")


def test_all_failed_is_400():
    results = BulkResultAggregator(total=2)
    results.add_failure(0, {}, "boom", "validation")
    results.add_failure(1, {}, "boom", "transaction")
    assert results.status_code == 400
    assert results.to_response().success is False


def test_partial_failure_is_207():
    results = BulkResultAggregator(total=2)
    results.add_success(_aggregate(1), is_update=False)
    results.add_failure(1, {"visit": {}}, "boom", "media", {"key": "x"})
    assert results.status_code == 207
    response = results.to_response()
    assert response.summary.total == 2
    assert response.summary.failed == 1
    assert response.results.failed[0].details == {"key": "x"}


def test_any_created_without_failures_is_201():
    results = BulkResultAggregator(total=2)
    results.add_success(_aggregate(1), is_update=True)
    results.add_success(_aggregate(2), is_update=False)
    assert results.status_code == 201
    response = results.to_response()
    assert response.success is True
    assert response.message == "Bulk upsert completed"
    assert response.results.created[0].message == "Visit created successfully"
    assert response.results.updated[0].message == "Visit updated successfully"


def test_only_updates_is_200():
    results = BulkResultAggregator(total=1)
    results.add_success(_aggregate(1), is_update=True)
    assert results.status_code == 200
    assert results.to_response().summary.updated == 1
