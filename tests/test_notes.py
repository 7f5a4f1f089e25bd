"""Tests for hairstylist personal notes."""
from __future__ import annotations


def _create_note(client, hairstylist_id: int, member_id: int, note: str = "Sensitive scalp"):
    return client.post(
        f"/hairstylists/{hairstylist_id}/notes",
        json={"member_id": member_id, "note": note},
    )


def test_create_and_list_notes(client, hairstylist_id, make_member) -> None:
    budi = make_member()
    sari = make_member("Sari Dewi")
    _create_note(client, hairstylist_id, budi)
    response = _create_note(client, hairstylist_id, sari, "Likes a low fade")

    assert response.status_code == 201
    note = response.get_json()["note"]
    assert note["member_name"] == "Sari Dewi"
    assert note["is_private"] is True

    all_notes = client.get(f"/hairstylists/{hairstylist_id}/notes").get_json()["notes"]
    assert len(all_notes) == 2

    filtered = client.get(f"/hairstylists/{hairstylist_id}/notes?member_id={budi}").get_json()["notes"]
    assert [n["note"] for n in filtered] == ["Sensitive scalp"]


def test_create_note_validation(client, hairstylist_id, member_id) -> None:
    assert _create_note(client, hairstylist_id, member_id, "   ").status_code == 400
    assert _create_note(client, hairstylist_id, member_id, "x" * 1001).status_code == 400
    assert _create_note(client, hairstylist_id, 999).status_code == 404
    assert _create_note(client, 999, member_id).status_code == 404


def test_update_and_delete_note(client, hairstylist_id, member_id) -> None:
    note_id = _create_note(client, hairstylist_id, member_id).get_json()["note"]["id"]

    response = client.put(f"/notes/{note_id}", json={"note": "Use mild shampoo", "is_private": False})

    assert response.status_code == 200
    note = response.get_json()["note"]
    assert note["note"] == "Use mild shampoo"
    assert note["is_private"] is False

    assert client.put(f"/notes/{note_id}", json={"note": ""}).status_code == 400

    assert client.delete(f"/notes/{note_id}").status_code == 200
    assert client.delete(f"/notes/{note_id}").status_code == 404
    assert client.get(f"/hairstylists/{hairstylist_id}/notes").get_json()["notes"] == []


def test_notes_reject_non_text_note(client, hairstylist_id, member_id) -> None:
    response = client.post(
        f"/hairstylists/{hairstylist_id}/notes",
        json={"member_id": member_id, "note": 12},
    )
    assert response.status_code == 400
    assert response.get_json()["message"] == "note must be a string"

    note_id = _create_note(client, hairstylist_id, member_id).get_json()["note"]["id"]
    assert client.put(f"/notes/{note_id}", json={"note": ["a"]}).status_code == 400


def test_assignment_rejects_non_text_notes(client, member_id, hairstylist_id) -> None:
    response = client.put(
        f"/members/{member_id}/hairstylists",
        json={"hairstylist_ids": [hairstylist_id], "notes": 1},
    )

    assert response.status_code == 400
