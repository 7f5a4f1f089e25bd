"""Tests for the member, hairstylist and membership endpoints."""
from __future__ import annotations

import pytest

from app.extensions import db
from app.models import MembershipLevelHistory


@pytest.fixture
def member_payload() -> dict[str, object]:
    return {
        "full_name": "Budi Santoso",
        "whatsapp_number": "+62 812-3456-7890",
        "instagram_handle": "@budi.cuts",
        "email": "Budi@Example.com",
        "birthday": "1995-04-12",
        "preferred_services": ["Haircut", "Root Lift"],
    }


def test_create_member(client, member_payload) -> None:
    response = client.post("/members", json=member_payload)

    assert response.status_code == 201
    member = response.get_json()["member"]
    assert member["membership_tier"] == "bronze"
    assert member["total_visits"] == 0
    assert member["profile"]["email"] == "budi@example.com"
    assert member["profile"]["role"] == "member"
    assert member["birthday"] == "1995-04-12"
    assert member["preferred_services"] == ["Haircut", "Root Lift"]


def test_create_member_with_imported_counters(client, member_payload) -> None:
    member_payload.update({"total_visits": 22, "total_spent": 2600000})

    response = client.post("/members", json=member_payload)

    assert response.status_code == 201
    assert response.get_json()["member"]["membership_tier"] == "gold"


@pytest.mark.parametrize(
    "overrides",
    [
        {"full_name": "B"},
        {"whatsapp_number": ""},
        {"whatsapp_number": "12345"},
        {"whatsapp_number": "0812-ABC-7890"},
        {"instagram_handle": "budi"},
        {"email": "not-an-email"},
        {"birthday": "12/04/1995"},
        {"total_visits": -1},
        {"notes": "x" * 501},
    ],
)
def test_create_member_invalid_payload(client, member_payload, overrides) -> None:
    member_payload.update(overrides)

    response = client.post("/members", json=member_payload)

    assert response.status_code == 400
    assert response.get_json()["error"] == "invalid_payload"


def test_create_member_duplicate_email(client, member_payload) -> None:
    assert client.post("/members", json=member_payload).status_code == 201

    member_payload["full_name"] = "Budi Kedua"
    response = client.post("/members", json=member_payload)

    assert response.status_code == 409
    assert response.get_json()["error"] == "duplicate_email"


def test_list_members_filters_and_paginates(client, make_member) -> None:
    make_member("Andi Gold", total_visits=25, total_spent=3000000, membership_tier="gold")
    make_member("Citra Bronze")
    make_member("Dewi Bronze")

    response = client.get("/members?tier=bronze&limit=1")

    assert response.status_code == 200
    data = response.get_json()
    assert len(data["members"]) == 1
    assert data["pagination"] == {"page": 1, "limit": 1, "total": 2, "total_pages": 2}

    found = client.get("/members?query=andi").get_json()["members"]
    assert [m["profile"]["full_name"] for m in found] == ["Andi Gold"]


def test_list_members_bad_page(client) -> None:
    response = client.get("/members?page=abc")

    assert response.status_code == 400


def test_get_member(client, member_id) -> None:
    response = client.get(f"/members/{member_id}")

    assert response.status_code == 200
    member = response.get_json()["member"]
    assert member["id"] == member_id
    assert member["recent_visits"] == []
    assert member["assigned_hairstylists"] == []


def test_get_member_not_found(client) -> None:
    response = client.get("/members/999")

    assert response.status_code == 404
    assert response.get_json()["error"] == "not_found"


def test_update_member(client, member_id) -> None:
    response = client.put(
        f"/members/{member_id}",
        json={"full_name": "Budi S.", "notes": "Prefers short sides", "total_visits": 99},
    )

    assert response.status_code == 200
    member = response.get_json()["member"]
    assert member["profile"]["full_name"] == "Budi S."
    assert member["notes"] == "Prefers short sides"
    assert member["total_visits"] == 0


def test_update_member_invalid_birthday(client, member_id) -> None:
    response = client.put(f"/members/{member_id}", json={"birthday": "soon"})

    assert response.status_code == 400


def test_membership_tiers(client) -> None:
    response = client.get("/membership/tiers")

    assert response.status_code == 200
    tiers = response.get_json()["tiers"]
    assert [t["tier"] for t in tiers] == ["bronze", "silver", "gold", "platinum", "diamond"]
    assert tiers[2]["discount_percentage"] == 10


def test_member_membership_summary(client, make_member) -> None:
    member_id = make_member(total_visits=15, total_spent=1750000, membership_tier="silver")

    response = client.get(f"/members/{member_id}/membership")

    assert response.status_code == 200
    data = response.get_json()
    assert data["level"]["tier"] == "silver"
    assert data["rank"] == 1
    assert data["progress"]["overall_progress"] == pytest.approx(50)
    assert data["next_tier"]["tier"] == "gold"
    assert data["requirements_to_next"] == {"visits_needed": 10, "spending_needed": 1500000}
    # 5 visits at 2/month
    assert data["estimate"]["estimated_months"] == 3
    assert data["upgrade_check"] == {"should_upgrade": False}


def test_member_membership_at_top_tier(client, make_member) -> None:
    member_id = make_member(total_visits=60, total_spent=12000000, membership_tier="diamond")

    data = client.get(f"/members/{member_id}/membership").get_json()

    assert data["next_tier"] is None
    assert data["requirements_to_next"] is None
    assert data["progress"]["is_max_tier"] is True


def test_member_membership_rejects_negative_estimate_inputs(client, member_id) -> None:
    response = client.get(f"/members/{member_id}/membership?monthly_visits=-1")

    assert response.status_code == 400


def test_membership_history(app, client, member_id) -> None:
    with app.app_context():
        db.session.add(
            MembershipLevelHistory(
                member_id=member_id, previous_tier="bronze", new_tier="silver", points_earned=100
            )
        )
        db.session.commit()

    response = client.get(f"/members/{member_id}/membership/history")

    assert response.status_code == 200
    history = response.get_json()["history"]
    assert len(history) == 1
    assert history[0]["new_tier"] == "silver"


def test_membership_stats(client, make_member) -> None:
    make_member("Andi", total_visits=25, total_spent=3000000, membership_tier="gold")
    make_member("Citra", total_visits=1, total_spent=100000)

    response = client.get("/membership/stats")

    assert response.status_code == 200
    stats = response.get_json()
    assert stats["total_members"] == 2
    assert stats["tier_distribution"]["gold"] == 1
    assert stats["top_tier_percentage"] == pytest.approx(50)


def test_create_and_list_hairstylists(client) -> None:
    response = client.post(
        "/hairstylists",
        json={
            "full_name": "Rina Wijaya",
            "email": "rina@example.com",
            "specialties": "Perm, Coloring",
            "experience_years": 7,
        },
    )

    assert response.status_code == 201
    hairstylist = response.get_json()["hairstylist"]
    assert hairstylist["specialties"] == ["Perm", "Coloring"]
    assert hairstylist["profile"]["role"] == "hairstylist"

    listed = client.get("/hairstylists").get_json()["hairstylists"]
    assert [h["profile"]["full_name"] for h in listed] == ["Rina Wijaya"]


@pytest.mark.parametrize(
    "payload",
    [
        {"full_name": "Rina", "email": "rina@example.com"},
        {"full_name": "Rina", "email": "rina@example.com", "specialties": ["Perm"], "experience_years": 60},
        {"full_name": "Rina", "specialties": ["Perm"]},
    ],
)
def test_create_hairstylist_invalid(client, payload) -> None:
    response = client.post("/hairstylists", json=payload)

    assert response.status_code == 400


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"full_name": 5}, "full_name"),
        ({"whatsapp_number": 81234567890}, "whatsapp_number"),
        ({"email": ["budi@example.com"]}, "email"),
        ({"notes": {"text": "hi"}}, "notes"),
    ],
)
def test_create_member_rejects_non_text_fields(client, member_payload, overrides, field) -> None:
    member_payload.update(overrides)

    response = client.post("/members", json=member_payload)

    assert response.status_code == 400
    assert response.get_json() == {"error": "invalid_payload", "message": f"{field} must be a string"}


def test_update_member_rejects_non_text_fields(client, member_id) -> None:
    assert client.put(f"/members/{member_id}", json={"full_name": 7}).status_code == 400
    assert client.put(f"/members/{member_id}", json={"instagram_handle": True}).status_code == 400


def test_create_hairstylist_rejects_non_text_fields(client) -> None:
    response = client.post(
        "/hairstylists",
        json={"full_name": "Rina Wijaya", "email": "rina@example.com", "specialties": ["Perm"], "bio": 3},
    )

    assert response.status_code == 400
    assert response.get_json()["message"] == "bio must be a string"


def test_recommendations_with_bad_member_id(client) -> None:
    response = client.post("/services/recommendations", json={"member_id": "abc"})

    assert response.status_code == 404


def test_member_payload_fields(client, member_id) -> None:
    member = client.get(f"/members/{member_id}").get_json()["member"]

    assert set(member) == {
        "id", "profile", "membership_tier", "membership_points", "total_visits",
        "total_spent", "join_date", "last_visit_date", "preferred_services",
        "notes", "birthday", "assigned_hairstylists", "recent_visits",
    }
