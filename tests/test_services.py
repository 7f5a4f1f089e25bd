"""Tests for the service catalog endpoints."""
from __future__ import annotations

from app.extensions import db
from app.models import Service


def test_list_services(client, catalog) -> None:
    response = client.get("/services")

    assert response.status_code == 200
    services = response.get_json()["services"]
    assert len(services) == 13

    haircut = next(s for s in services if s["name"] == "Haircut")
    assert haircut["base_price"] == 150000
    assert haircut["formatted_price"] == "Rp 150.000"
    assert haircut["formatted_duration"] == "45 minutes"


def test_list_services_by_category_and_query(client, catalog) -> None:
    combos = client.get("/services?category=combo").get_json()["services"]
    assert len(combos) == 6
    assert all(s["category"] == "combo" for s in combos)

    perms = client.get("/services?query=perm&category=treatment").get_json()["services"]
    assert sorted(s["name"] for s in perms) == ["Design Perm", "Down Perm"]


def test_list_services_rejects_unknown_category(client) -> None:
    response = client.get("/services?category=massage")

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_category"


def test_popular_services(client, catalog) -> None:
    response = client.get("/services/popular")

    assert response.status_code == 200
    assert [s["name"] for s in response.get_json()["services"]] == [
        "Haircut",
        "Haircut + Root Lift",
        "Root Lift",
        "Haircut + Down Perm",
        "Design Perm",
    ]


def test_create_service(client) -> None:
    response = client.post(
        "/services",
        json={
            "name": "Beard Trim",
            "category": "Beard",
            "base_price": 75000,
            "duration_minutes": 20,
            "description": "Shape and trim",
        },
    )

    assert response.status_code == 201
    service = response.get_json()["service"]
    assert service["name"] == "Beard Trim"
    assert service["category"] == "beard"
    assert service["is_active"] is True


def test_create_service_invalid_data(client) -> None:
    response = client.post("/services", json={"name": "X", "category": "beard"})

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_payload"

    response = client.post(
        "/services",
        json={"name": "Scalp Spa", "category": "spa", "base_price": 1, "duration_minutes": 1},
    )
    assert response.status_code == 400


def test_create_service_duplicate_name(client, catalog) -> None:
    response = client.post(
        "/services",
        json={"name": "Haircut", "category": "haircut", "base_price": 1, "duration_minutes": 10},
    )

    assert response.status_code == 409
    assert response.get_json()["error"] == "duplicate_service"


def test_update_service(app, client, catalog) -> None:
    service_id = catalog["Haircut"]

    response = client.put(f"/services/{service_id}", json={"base_price": 175000})

    assert response.status_code == 200
    assert response.get_json()["service"]["base_price"] == 175000
    with app.app_context():
        assert db.session.get(Service, service_id).duration_minutes == 45


def test_update_service_not_found(client) -> None:
    response = client.put("/services/999", json={"base_price": 1})

    assert response.status_code == 404
    assert response.get_json()["error"] == "not_found"


def test_delete_service_deactivates(app, client, catalog) -> None:
    service_id = catalog["Root Lift"]

    response = client.delete(f"/services/{service_id}")

    assert response.status_code == 200
    names = [s["name"] for s in client.get("/services").get_json()["services"]]
    assert "Root Lift" not in names
    with app.app_context():
        assert db.session.get(Service, service_id).is_active is False


def test_validate_conflicting_selection(client, catalog) -> None:
    response = client.post(
        "/services/validate",
        json={"service_ids": [catalog["Haircut"], catalog["Haircut + Root Lift"]]},
    )

    assert response.status_code == 200
    data = response.get_json()
    assert data["is_valid"] is False
    assert data["conflicts"] == ["Haircut + Root Lift already includes: Haircut"]
    assert data["total_duration"] == 150
    assert data["formatted_duration"] == "2h 30m"


def test_validate_empty_selection(client, catalog) -> None:
    response = client.post("/services/validate", json={"service_ids": []})

    assert response.status_code == 200
    assert response.get_json()["conflicts"] == ["Please select at least one service"]


def test_validate_rejects_duplicates(client, catalog) -> None:
    haircut = catalog["Haircut"]

    response = client.post("/services/validate", json={"service_ids": [haircut, haircut]})

    assert response.status_code == 400
    assert response.get_json()["message"] == "Service already added"


def test_validate_rejects_malformed_ids(client) -> None:
    response = client.post("/services/validate", json={"service_ids": "1,2"})

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_payload"


def test_estimate_stacks_discounts(client, catalog) -> None:
    response = client.post(
        "/services/estimate",
        json={
            "service_ids": [catalog["Haircut"], catalog["Root Lift"]],
            "discount_percentage": 10,
            "membership_tier": "gold",
        },
    )

    assert response.status_code == 200
    assert response.get_json() == {
        "total_price": 283500,
        "formatted_price": "Rp 283.500",
        "total_duration": 105,
        "formatted_duration": "1h 45m",
    }


def test_estimate_rejects_bad_discount(client) -> None:
    response = client.post("/services/estimate", json={"service_ids": [], "discount_percentage": 150})

    assert response.status_code == 400


def test_recommendations_from_service_ids(client, catalog) -> None:
    response = client.post(
        "/services/recommendations",
        json={"service_ids": [catalog["Down Perm"]]},
    )

    assert response.status_code == 200
    assert [s["name"] for s in response.get_json()["services"]] == ["Hair Repair"]


def test_recommendations_for_member_without_history(client, catalog, member_id) -> None:
    response = client.post("/services/recommendations", json={"member_id": member_id})

    assert response.status_code == 200
    assert [s["name"] for s in response.get_json()["services"]] == [
        "Root Lift",
        "Haircut + Root Lift",
    ]


def test_recommendations_unknown_member(client) -> None:
    response = client.post("/services/recommendations", json={"member_id": 404})

    assert response.status_code == 404


def test_create_service_rejects_non_text_name(client) -> None:
    response = client.post(
        "/services",
        json={"name": 42, "category": "beard", "base_price": 1, "duration_minutes": 10},
    )

    assert response.status_code == 400
    assert response.get_json()["message"] == "name must be a string"
