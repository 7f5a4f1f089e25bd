"""Tests for visit photo metadata."""
from __future__ import annotations

import pytest


@pytest.fixture
def visit_id(client, catalog, member_id, hairstylist_id) -> int:
    response = client.post(
        "/visits",
        json={
            "member_id": member_id,
            "hairstylist_id": hairstylist_id,
            "services": [{"service_id": catalog["Haircut"]}],
        },
    )
    return response.get_json()["visit"]["id"]


def _photo(photo_type: str, **extra) -> dict[str, object]:
    payload = {
        "photo_type": photo_type,
        "file_path": f"visits/1/{photo_type}.jpg",
        "file_url": f"https://cdn.example.com/visits/1/{photo_type}.jpg",
    }
    payload.update(extra)
    return payload


def test_add_and_list_photos(client, visit_id) -> None:
    before = client.post(f"/visits/{visit_id}/photos", json=_photo("before", description="Long fringe"))
    client.post(f"/visits/{visit_id}/photos", json=_photo("after", is_public=True))

    assert before.status_code == 201
    assert before.get_json()["photo"]["description"] == "Long fringe"

    grouped = client.get(f"/visits/{visit_id}/photos").get_json()
    assert len(grouped["before"]) == 1
    assert grouped["after"][0]["is_public"] is True
    assert grouped["profile"] == []

    visit = client.get(f"/visits/{visit_id}").get_json()["visit"]
    assert len(visit["photos"]) == 2


@pytest.mark.parametrize(
    "payload",
    [
        _photo("sideways"),
        _photo("before", file_url=""),
        _photo("after", description="x" * 201),
    ],
)
def test_add_photo_validation(client, visit_id, payload) -> None:
    response = client.post(f"/visits/{visit_id}/photos", json=payload)

    assert response.status_code == 400


def test_add_photo_to_unknown_visit(client) -> None:
    assert client.post("/visits/999/photos", json=_photo("before")).status_code == 404


def test_delete_photo(client, visit_id) -> None:
    photo_id = client.post(f"/visits/{visit_id}/photos", json=_photo("before")).get_json()["photo"]["id"]

    assert client.delete(f"/photos/{photo_id}").status_code == 200
    assert client.delete(f"/photos/{photo_id}").status_code == 404
    assert client.get(f"/visits/{visit_id}/photos").get_json()["before"] == []


def test_add_photo_rejects_non_text_fields(client, visit_id) -> None:
    response = client.post(f"/visits/{visit_id}/photos", json=_photo("before", file_url=123))

    assert response.status_code == 400
    assert response.get_json()["message"] == "file_url must be a string"
