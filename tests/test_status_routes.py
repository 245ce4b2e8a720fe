import pytest
from fastapi.testclient import TestClient

from atelier.main import create_app


@pytest.fixture
def client():
    return TestClient(create_app())


def test_list_internal_statuses(client):
    response = client.get("/statuses/internal")

    assert response.status_code == 200
    body = response.json()
    assert len(body) == 34
    assert body[0]["status"] == "pending"
    assert body[0]["client_status"] == "pending-review"
    assert body[0]["phase"] == "Initial Review"
    assert body[0]["info"]["requires_action"] is True


def test_list_client_statuses(client):
    response = client.get("/statuses/client")

    assert response.status_code == 200
    statuses = [item["status"] for item in response.json()]
    assert len(statuses) == 11
    assert "awaiting-your-response" in statuses


def test_get_single_status(client):
    response = client.get("/statuses/casting")

    assert response.status_code == 200
    body = response.json()
    assert body["client_status"] == "in-production"
    assert body["phase"] == "Production"
    assert body["info"]["label"] == "Casting"
    assert body["info"]["category"] == "production"


def test_unknown_status_returns_not_found(client):
    response = client.get("/statuses/teleported")

    assert response.status_code == 404


def test_client_status_lookup(client):
    response = client.get("/statuses/client/pending-review")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "pending-review"
    assert body["info"]["label"] == "Pending Review"


def test_client_status_is_not_an_internal_status(client):
    response = client.get("/statuses/pending-review")

    assert response.status_code == 404
    assert "/statuses/client" in response.json()["detail"]
    assert client.get("/statuses/client/casting").status_code == 404


def test_next_statuses_for_terminal_and_unknown(client):
    assert client.get("/statuses/completed/next").json() == []
    assert client.get("/statuses/teleported/next").json() == []


def test_next_statuses_for_pending(client):
    response = client.get("/statuses/pending/next")

    assert response.status_code == 200
    assert [item["status"] for item in response.json()] == [
        "awaiting-client-info",
        "in-consultation",
        "reviewing-request",
        "sketching",
        "preparing-quote",
        "cancelled",
        "on-hold",
    ]


@pytest.mark.parametrize(
    ("from_status", "to_status", "valid"),
    [
        ("quality-check", "polishing", True),
        ("pending", "completed", False),
        ("pending", "pending", False),
        ("bogus", "pending", False),
    ],
)
def test_validate_transition(client, from_status, to_status, valid):
    response = client.get(
        "/statuses/transitions/validate",
        params={"from_status": from_status, "to_status": to_status},
    )

    assert response.status_code == 200
    assert response.json() == {"from_status": from_status, "to_status": to_status, "valid": valid}


def test_phases_follow_workflow_order(client):
    response = client.get("/statuses/phases")

    assert response.status_code == 200
    body = response.json()
    assert [phase["category"] for phase in body] == [
        "initial",
        "design",
        "quote",
        "payment",
        "preparation",
        "production",
        "completion",
        "special",
    ]
    assert body[2]["name"] == "Quote & Approval"
    assert sum(len(phase["statuses"]) for phase in body) == 34


def test_category_listing(client):
    response = client.get("/statuses/categories/payment")

    assert response.status_code == 200
    assert response.json() == ["deposit-invoice-sent", "deposit-received"]
    assert client.get("/statuses/categories/archive").status_code == 422


def test_action_required(client):
    response = client.get("/statuses/action-required")

    assert response.status_code == 200
    assert "quality-check" in response.json()
    assert "completed" not in response.json()


def test_invalid_token_is_rejected(client):
    response = client.get("/statuses/internal", headers={"Authorization": "Bearer nope"})

    assert response.status_code == 401
