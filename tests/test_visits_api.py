import json
import re

import pytest
from fastapi.testclient import TestClient

from sfa.application.services.auth_service import create_access_token
from sfa.interfaces.deps import get_bulk_visit_service
from sfa.main import app


@pytest.fixture
def client(service):
    app.dependency_overrides[get_bulk_visit_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}


def test_json_bulk_create(client):
    response = client.post(
        "/api/visits/bulk-upsert",
        json={"visits": [{"visit": {"customer_id": 1, "sales_person_id": 2, "amount_collected": "12.5"}}]},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["message"] == "Bulk upsert completed"
    assert body["summary"] == {"total": 1, "created": 1, "updated": 0, "failed": 0}
    created = body["results"]["created"][0]
    assert created["visit_id"] > 0
    assert created["visit"]["amount_collected"] == "12.50"
    assert created["visit"]["images"] == {"self": [], "customer": [], "cooler": []}
    assert "X-Request-ID" in response.headers


def test_resubmission_with_payment_is_update(client):
    first = client.post("/api/visits/bulk-upsert", json={"visits": [{"visit": {"customer_id": 1, "sales_person_id": 2}}]})
    visit_id = first.json()["results"]["created"][0]["visit_id"]

    response = client.post(
        "/api/visits/bulk-upsert",
        json={
            "visits": [
                {
                    "visit": {"visit_id": visit_id, "customer_id": 1, "sales_person_id": 2},
                    "payments": [{"collected_by": 2, "method": "cash", "total_amount": 100}],
                }
            ]
        },
    )

    assert response.status_code == 200
    updated = response.json()["results"]["updated"]
    assert len(updated) == 1
    assert re.fullmatch(r"PAY-\d{8}-\d{3}", updated[0]["visit"]["payments"][0]["payment_number"])


def test_partial_failure_returns_207(client):
    response = client.post(
        "/api/visits/bulk-upsert",
        json=[
            {"visit": {"customer_id": 1, "sales_person_id": 2}},
            {"visit": {"customer_id": 1}},
        ],
    )

    assert response.status_code == 207
    body = response.json()
    assert body["success"] is False
    failed = body["results"]["failed"][0]
    assert failed["index"] == 1
    assert failed["stage"] == "validation"
    assert failed["error"] == "Customer ID and Sales Person ID are required"


def test_every_item_failing_returns_400(client):
    response = client.post("/api/visits/bulk-upsert", json={"visit": {"visit_id": 500, "customer_id": 1, "sales_person_id": 2}})
    assert response.status_code == 400
    assert response.json()["results"]["failed"][0]["error"] == "Visit 500 not found"


def test_ambiguous_payload_is_rejected(client):
    response = client.post(
        "/api/visits/bulk-upsert",
        json={"visits": [], "visit": {"customer_id": 1, "sales_person_id": 2}},
    )

    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "AmbiguousBatchShapeError"
    assert error["path"] == "/api/visits/bulk-upsert"


def test_malformed_json_is_rejected(client):
    response = client.post(
        "/api/visits/bulk-upsert",
        content=b"{oops",
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid JSON body"


def test_multipart_with_images(client, storage):
    visits = [
        {"visit": {"customer_id": 1, "sales_person_id": 2}},
        {"visit": {"customer_id": 3, "sales_person_id": 2}},
    ]
    response = client.post(
        "/api/visits/bulk-upsert",
        data={"visits": json.dumps(visits)},
        files=[
            ("visit_0_self_images", ("me.jpg", b"jpeg-bytes", "image/jpeg")),
            ("visit_1_cooler_images", ("c1.png", b"png-1", "image/png")),
            ("visit_1_cooler_images", ("c2.png", b"png-2", "image/png")),
        ],
    )

    assert response.status_code == 201
    created = response.json()["results"]["created"]
    assert len(created[0]["visit"]["images"]["self"]) == 1
    assert created[0]["visit"]["images"]["self"][0].endswith("-me.jpg")
    assert len(created[1]["visit"]["images"]["cooler"]) == 2
    assert created[1]["visit"]["cooler_image"] == ",".join(created[1]["visit"]["images"]["cooler"])
    assert len(storage.uploaded) == 3


def test_multipart_single_visit_keeps_child_fields(client, storage, count_rows):
    response = client.post(
        "/api/visits/bulk-upsert",
        data={
            "visit": json.dumps({"customer_id": 1, "sales_person_id": 2}),
            "payments": json.dumps([{"collected_by": 2, "method": "cash", "total_amount": 100}]),
        },
        files=[("visit_0_self_images", ("me.jpg", b"jpeg-bytes", "image/jpeg"))],
    )

    assert response.status_code == 201
    created = response.json()["results"]["created"][0]["visit"]
    assert len(created["payments"]) == 1
    assert re.fullmatch(r"PAY-\d{8}-\d{3}", created["payments"][0]["payment_number"])
    assert len(created["images"]["self"]) == 1
    assert count_rows()["payments"] == 1


def test_multipart_invalid_child_json_is_rejected(client, count_rows):
    response = client.post(
        "/api/visits/bulk-upsert",
        data={
            "visit": json.dumps({"customer_id": 1, "sales_person_id": 2}),
            "payments": "[{not json",
        },
    )

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Invalid payments JSON string"
    assert count_rows()["visits"] == 0


def test_flattened_multipart_visit_field(client):
    response = client.post(
        "/api/visits/bulk-upsert",
        data={"visit": json.dumps([{"customer_id": 4, "sales_person_id": 2, "orders": []}])},
    )
    assert response.status_code == 201
    assert response.json()["results"]["created"][0]["visit"]["customer_id"] == 4


def test_bearer_token_stamps_actor(client):
    token = create_access_token(user_id=31)
    response = client.post(
        "/api/visits/bulk-upsert",
        json={"visit": {"customer_id": 1, "sales_person_id": 2}},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 201
    assert response.json()["results"]["created"][0]["visit"]["createdby"] == 31


def test_invalid_token_is_rejected(client):
    response = client.post(
        "/api/visits/bulk-upsert",
        json={"visit": {"customer_id": 1, "sales_person_id": 2}},
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 401
