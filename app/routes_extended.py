"""Extended routes: assignments, visits, photos, personal notes and reviews."""
from __future__ import annotations

from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from .calculators import pricing_engine, service_validator, tier_calculator
from .extensions import db
from .models import (Hairstylist, Member, MemberHairstylistAssignment,
                     MembershipLevelHistory, PersonalNote, Review, Visit,
                     VisitPhoto, VisitService)
from .services import SelectedServiceLine

bp_ext = Blueprint("api_ext", __name__)

PHOTO_TYPES = ("before", "after", "profile")
REVIEW_TYPES = ("service", "hairstylist", "barbershop")
MAX_NOTE_LENGTH = 1000


def _as_int(value: object) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_text(value: object) -> str | None:
    """Return ``value`` stripped, ``""`` when missing, None when it is not a string."""
    if value is None:
        return ""
    if not isinstance(value, str):
        return None
    return value.strip()


def _non_text_field(payload: dict[str, object], *fields: str) -> str | None:
    """Return the first of ``fields`` whose value in ``payload`` is not a string."""
    for field in fields:
        if _as_text(payload.get(field)) is None:
            return field
    return None


def _text_error(field: str) -> tuple[dict[str, object], int]:
    return jsonify({"error": "invalid_payload", "message": f"{field} must be a string"}), 400


def _json_body() -> dict[str, object]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def _read_service_lines(raw: object, validator) -> tuple[list[SelectedServiceLine], str | None]:
    """Resolve ``[{"service_id", "custom_price", "notes"}]`` against the active catalog."""
    if not isinstance(raw, list):
        return [], "services must be a list of {service_id, custom_price, notes}"

    lines: list[SelectedServiceLine] = []
    seen: set[int] = set()
    for item in raw:
        if not isinstance(item, dict):
            return [], "services must be a list of {service_id, custom_price, notes}"

        service_id = _as_int(item.get("service_id"))
        if service_id is None:
            return [], "service_id must be an integer"
        if service_id in seen:
            return [], "Service already added"
        seen.add(service_id)

        entry = validator.get_service_by_id(service_id)
        if entry is None or not entry.is_active:
            return [], f"Service {service_id} is not available"

        custom_price = item.get("custom_price")
        if custom_price is not None:
            custom_price = _as_int(custom_price)
            if custom_price is None or custom_price < 0:
                return [], "custom_price must be a non-negative integer"

        notes = _as_text(item.get("notes"))
        if notes is None:
            return [], "notes must be a string"
        lines.append(SelectedServiceLine(service=entry, custom_price=custom_price, notes=notes or None))

    return lines, None


def _read_discount(payload: dict[str, object]) -> int | None:
    discount = _as_int(payload.get("discount_percentage", 0))
    if discount is None or not 0 <= discount <= 100:
        return None
    return discount


# --- START: Member assignments ---


@bp_ext.put("/members/<int:member_id>/hairstylists")
def assign_member_hairstylists(member_id: int) -> tuple[dict[str, object], int]:
    """Replace a member's hairstylist assignments.
    ---
    tags:
      - Assignments
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            hairstylist_ids:
              type: array
              items:
                type: integer
            primary_hairstylist_id:
              type: integer
            assigned_by:
              type: integer
            notes:
              type: string
    responses:
      200:
        description: Assignments replaced
      400:
        description: Invalid input
      404:
        description: Member or hairstylist not found
      500:
        description: Database error
    """
    payload = _json_body()
    if _non_text_field(payload, "notes"):
        return _text_error("notes")
    raw_ids = payload.get("hairstylist_ids")
    hairstylist_ids = [_as_int(value) for value in raw_ids] if isinstance(raw_ids, list) else []

    if not hairstylist_ids or None in hairstylist_ids:
        return (
            jsonify({"error": "invalid_payload", "message": "Please select at least one hairstylist"}),
            400,
        )
    hairstylist_ids = list(dict.fromkeys(hairstylist_ids))

    primary_id = payload.get("primary_hairstylist_id")
    if primary_id is not None:
        primary_id = _as_int(primary_id)
        if primary_id not in hairstylist_ids:
            return (
                jsonify({
                    "error": "invalid_payload",
                    "message": "primary_hairstylist_id must be one of hairstylist_ids",
                }),
                400,
            )

    try:
        member = Member.query.get(member_id)
        if not member:
            return jsonify({"error": "not_found", "message": "Member not found"}), 404

        found = Hairstylist.query.filter(Hairstylist.hairstylist_id.in_(hairstylist_ids)).count()
        if found != len(hairstylist_ids):
            return jsonify({"error": "not_found", "message": "Hairstylist not found"}), 404

        # (member_id, hairstylist_id) is unique: clear old rows before inserting.
        MemberHairstylistAssignment.query.filter_by(member_id=member_id).delete()
        assignments = [
            MemberHairstylistAssignment(
                member_id=member_id,
                hairstylist_id=hairstylist_id,
                is_primary=hairstylist_id == primary_id,
                assigned_by=_as_int(payload.get("assigned_by")),
                notes=(payload.get("notes") or "").strip() or None,
            )
            for hairstylist_id in hairstylist_ids
        ]
        db.session.add_all(assignments)
        db.session.commit()

        return jsonify({
            "member_id": member_id,
            "assignments": [assignment.to_dict() for assignment in assignments],
        }), 200

    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to assign hairstylists", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_ext.get("/hairstylists/<int:hairstylist_id>/members")
def get_hairstylist_members(hairstylist_id: int) -> tuple[dict[str, object], int]:
    try:
        hairstylist = Hairstylist.query.get(hairstylist_id)
        if not hairstylist:
            return jsonify({"error": "not_found", "message": "Hairstylist not found"}), 404

        members = (
            Member.query.join(MemberHairstylistAssignment)
            .filter(MemberHairstylistAssignment.hairstylist_id == hairstylist_id)
            .order_by(Member.member_id)
            .all()
        )
        return jsonify({
            "hairstylist_id": hairstylist_id,
            "members": [member.to_dict() for member in members],
            "total_members": len(members),
        }), 200

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch assigned members", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


# --- END: Member assignments ---

# --- START: Visits ---


@bp_ext.post("/visits/quote")
def quote_visit() -> tuple[dict[str, object], int]:
    """Validate a selection and price it without recording anything.
    ---
    tags:
      - Visits
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            member_id:
              type: integer
            membership_tier:
              type: string
              description: Used when no member_id is given
            services:
              type: array
              items:
                type: object
                properties:
                  service_id:
                    type: integer
                  custom_price:
                    type: integer
                  notes:
                    type: string
            discount_percentage:
              type: integer
    responses:
      200:
        description: Validation and totals
      400:
        description: Invalid input
      404:
        description: Member not found
      500:
        description: Database error
    """
    payload = _json_body()

    discount = _read_discount(payload)
    if discount is None:
        return (
            jsonify({"error": "invalid_payload", "message": "discount_percentage must be between 0 and 100"}),
            400,
        )

    try:
        tier = payload.get("membership_tier") or "bronze"
        if payload.get("member_id") is not None:
            member_id = _as_int(payload.get("member_id"))
            member = Member.query.get(member_id) if member_id is not None else None
            if not member:
                return jsonify({"error": "not_found", "message": "Member not found"}), 404
            tier = member.membership_tier

        tiers = tier_calculator()
        validator = service_validator(tiers)
        lines, error = _read_service_lines(payload.get("services", []), validator)
        if error:
            return jsonify({"error": "invalid_payload", "message": error}), 400

        validation = validator.validate_combination([line.service.id for line in lines])
        totals = pricing_engine(tiers).calculate(lines, discount, tier)

        return jsonify({
            "membership_tier": tiers.get_level_info(tier).tier,
            "validation": validation.to_dict(),
            "totals": totals.to_dict(),
        }), 200

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to quote visit", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_ext.post("/visits")
def record_visit() -> tuple[dict[str, object], int]:
    """Record a completed visit, update the member's counters and apply any tier upgrade.
    ---
    tags:
      - Visits
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            member_id:
              type: integer
            hairstylist_id:
              type: integer
            services:
              type: array
              items:
                type: object
            discount_percentage:
              type: integer
            hairstylist_notes:
              type: string
            visit_date:
              type: string
              format: date-time
    responses:
      201:
        description: Visit recorded
      400:
        description: Invalid input or conflicting services
      404:
        description: Member or hairstylist not found
      500:
        description: Database error
    """
    payload = _json_body()

    member_id = _as_int(payload.get("member_id"))
    hairstylist_id = _as_int(payload.get("hairstylist_id"))
    if member_id is None or hairstylist_id is None:
        return (
            jsonify({"error": "invalid_payload", "message": "member_id and hairstylist_id are required"}),
            400,
        )

    discount = _read_discount(payload)
    if discount is None:
        return (
            jsonify({"error": "invalid_payload", "message": "discount_percentage must be between 0 and 100"}),
            400,
        )

    notes = _as_text(payload.get("hairstylist_notes"))
    if notes is None:
        return _text_error("hairstylist_notes")
    notes = notes or None
    if notes and len(notes) > 500:
        return (
            jsonify({"error": "invalid_payload", "message": "hairstylist_notes must not exceed 500 characters"}),
            400,
        )

    if payload.get("visit_date"):
        try:
            visit_date = datetime.fromisoformat(payload["visit_date"])
        except (TypeError, ValueError):
            return jsonify({"error": "invalid_payload", "message": "visit_date must be ISO 8601"}), 400
        if visit_date.tzinfo is None:
            visit_date = visit_date.replace(tzinfo=timezone.utc)
        if visit_date > datetime.now(timezone.utc):
            return jsonify({"error": "invalid_payload", "message": "Visit date cannot be in the future"}), 400
    else:
        visit_date = datetime.now(timezone.utc)

    try:
        member = Member.query.get(member_id)
        if not member:
            return jsonify({"error": "not_found", "message": "Member not found"}), 404

        hairstylist = Hairstylist.query.get(hairstylist_id)
        if not hairstylist:
            return jsonify({"error": "not_found", "message": "Hairstylist not found"}), 404

        tiers = tier_calculator()
        validator = service_validator(tiers)
        lines, error = _read_service_lines(payload.get("services", []), validator)
        if error:
            return jsonify({"error": "invalid_payload", "message": error}), 400

        validation = validator.validate_combination([line.service.id for line in lines])
        if not validation.is_valid:
            return (
                jsonify({
                    "error": "invalid_combination",
                    "message": validation.conflicts[0],
                    "validation": validation.to_dict(),
                }),
                400,
            )

        totals = pricing_engine(tiers).calculate(lines, discount, member.membership_tier)

        visit = Visit(
            member_id=member.member_id,
            hairstylist_id=hairstylist.hairstylist_id,
            visit_date=visit_date,
            status="completed",
            total_duration=totals.total_duration,
            total_price=totals.base_total,
            discount_percentage=totals.total_discount,
            final_price=totals.final_price,
            points_earned=totals.points_earned,
            hairstylist_notes=notes,
            services=[
                VisitService(
                    service_id=line.service.id,
                    price=line.price,
                    duration_minutes=line.service.duration_minutes,
                    notes=line.notes,
                )
                for line in lines
            ],
        )
        db.session.add(visit)

        member.total_visits = (member.total_visits or 0) + 1
        member.total_spent = (member.total_spent or 0) + totals.final_price
        member.membership_points = (member.membership_points or 0) + totals.points_earned
        member.last_visit_date = visit_date

        upgrade = tiers.should_upgrade(member.counters())
        if upgrade.should_upgrade:
            db.session.add(
                MembershipLevelHistory(
                    member_id=member.member_id,
                    previous_tier=member.membership_tier,
                    new_tier=upgrade.new_tier,
                    points_earned=upgrade.points_earned or 0,
                    reason="Tier recalculated after visit",
                )
            )
            member.membership_points += upgrade.points_earned or 0
            current_app.logger.info(
                "Member %s moved from %s to %s", member.member_id, member.membership_tier, upgrade.new_tier
            )
            member.membership_tier = upgrade.new_tier

        db.session.commit()

        return jsonify({
            "message": "Visit recorded successfully",
            "visit": visit.to_dict(),
            "totals": totals.to_dict(),
            "validation": validation.to_dict(),
            "upgrade": upgrade.to_dict(),
            "member": member.to_dict(),
        }), 201

    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to record visit", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_ext.get("/visits/<int:visit_id>")
def get_visit(visit_id: int) -> tuple[dict[str, object], int]:
    try:
        visit = Visit.query.get(visit_id)
        if not visit:
            return jsonify({"error": "not_found", "message": "Visit not found"}), 404

        payload = visit.to_dict()
        payload["reviews"] = [
            review.to_dict() for review in Review.query.filter_by(visit_id=visit_id).all()
        ]
        return jsonify({"visit": payload}), 200

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch visit", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


def _list_visits(filter_column, owner_id: int) -> tuple[dict[str, object], int]:
    try:
        limit = min(100, max(1, int(request.args.get("limit", 20))))
    except ValueError:
        return jsonify({"error": "invalid_request", "message": "limit must be an integer"}), 400

    visits = (
        Visit.query.filter(filter_column == owner_id)
        .order_by(Visit.visit_date.desc(), Visit.visit_id.desc())
        .limit(limit)
        .all()
    )
    return jsonify({"visits": [visit.to_dict() for visit in visits], "total": len(visits)}), 200


@bp_ext.get("/members/<int:member_id>/visits")
def get_member_visits(member_id: int) -> tuple[dict[str, object], int]:
    try:
        if not Member.query.get(member_id):
            return jsonify({"error": "not_found", "message": "Member not found"}), 404
        return _list_visits(Visit.member_id, member_id)

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch member visits", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_ext.get("/hairstylists/<int:hairstylist_id>/visits")
def get_hairstylist_visits(hairstylist_id: int) -> tuple[dict[str, object], int]:
    try:
        if not Hairstylist.query.get(hairstylist_id):
            return jsonify({"error": "not_found", "message": "Hairstylist not found"}), 404
        return _list_visits(Visit.hairstylist_id, hairstylist_id)

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch hairstylist visits", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


# --- END: Visits ---

# --- START: Visit photos ---


@bp_ext.post("/visits/<int:visit_id>/photos")
def add_visit_photo(visit_id: int) -> tuple[dict[str, object], int]:
    """Attach photo metadata to a visit. Upload to storage happens client side."""
    payload = _json_body()
    bad_field = _non_text_field(payload, "photo_type", "file_path", "file_url", "description")
    if bad_field:
        return _text_error(bad_field)

    photo_type = (payload.get("photo_type") or "").strip().lower()
    file_path = (payload.get("file_path") or "").strip()
    file_url = (payload.get("file_url") or "").strip()
    description = (payload.get("description") or "").strip() or None

    if photo_type not in PHOTO_TYPES or not file_path or not file_url:
        return (
            jsonify({
                "error": "invalid_payload",
                "message": f"photo_type ({', '.join(PHOTO_TYPES)}), file_path and file_url are required",
            }),
            400,
        )
    if description and len(description) > 200:
        return (
            jsonify({"error": "invalid_payload", "message": "Description must not exceed 200 characters"}),
            400,
        )

    try:
        visit = Visit.query.get(visit_id)
        if not visit:
            return jsonify({"error": "not_found", "message": "Visit not found"}), 404

        photo = VisitPhoto(
            visit_id=visit_id,
            photo_type=photo_type,
            file_path=file_path,
            file_url=file_url,
            description=description,
            uploaded_by=_as_int(payload.get("uploaded_by")),
            is_public=bool(payload.get("is_public", False)),
        )
        db.session.add(photo)
        db.session.commit()
        return jsonify({"photo": photo.to_dict()}), 201

    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to add visit photo", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_ext.get("/visits/<int:visit_id>/photos")
def list_visit_photos(visit_id: int) -> tuple[dict[str, object], int]:
    try:
        if not Visit.query.get(visit_id):
            return jsonify({"error": "not_found", "message": "Visit not found"}), 404

        photos = VisitPhoto.query.filter_by(visit_id=visit_id).order_by(VisitPhoto.photo_id).all()
        return jsonify({
            "before": [photo.to_dict() for photo in photos if photo.photo_type == "before"],
            "after": [photo.to_dict() for photo in photos if photo.photo_type == "after"],
            "profile": [photo.to_dict() for photo in photos if photo.photo_type == "profile"],
        }), 200

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch visit photos", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_ext.delete("/photos/<int:photo_id>")
def delete_visit_photo(photo_id: int) -> tuple[dict[str, str], int]:
    try:
        photo = VisitPhoto.query.get(photo_id)
        if not photo:
            return jsonify({"error": "not_found", "message": "Photo not found"}), 404

        db.session.delete(photo)
        db.session.commit()
        return jsonify({"message": "Photo deleted successfully"}), 200

    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete photo", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


# --- END: Visit photos ---

# --- START: Personal notes ---


@bp_ext.post("/hairstylists/<int:hairstylist_id>/notes")
def create_personal_note(hairstylist_id: int) -> tuple[dict[str, object], int]:
    payload = _json_body()
    member_id = _as_int(payload.get("member_id"))
    note_text = _as_text(payload.get("note"))
    if note_text is None:
        return _text_error("note")

    if member_id is None or not note_text:
        return jsonify({"error": "invalid_payload", "message": "member_id and note are required"}), 400
    if len(note_text) > MAX_NOTE_LENGTH:
        return (
            jsonify({"error": "invalid_payload", "message": f"note must not exceed {MAX_NOTE_LENGTH} characters"}),
            400,
        )

    try:
        if not Hairstylist.query.get(hairstylist_id):
            return jsonify({"error": "not_found", "message": "Hairstylist not found"}), 404
        if not Member.query.get(member_id):
            return jsonify({"error": "not_found", "message": "Member not found"}), 404

        note = PersonalNote(
            hairstylist_id=hairstylist_id,
            member_id=member_id,
            note=note_text,
            is_private=bool(payload.get("is_private", True)),
        )
        db.session.add(note)
        db.session.commit()
        return jsonify({"note": note.to_dict()}), 201

    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create personal note", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_ext.get("/hairstylists/<int:hairstylist_id>/notes")
def list_personal_notes(hairstylist_id: int) -> tuple[dict[str, object], int]:
    try:
        if not Hairstylist.query.get(hairstylist_id):
            return jsonify({"error": "not_found", "message": "Hairstylist not found"}), 404

        query = PersonalNote.query.filter_by(hairstylist_id=hairstylist_id)
        member_id = request.args.get("member_id", type=int)
        if member_id is not None:
            query = query.filter_by(member_id=member_id)

        notes = query.order_by(PersonalNote.updated_at.desc(), PersonalNote.note_id.desc()).all()
        return jsonify({"notes": [note.to_dict() for note in notes]}), 200

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch personal notes", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_ext.put("/notes/<int:note_id>")
def update_personal_note(note_id: int) -> tuple[dict[str, object], int]:
    payload = _json_body()

    try:
        note = PersonalNote.query.get(note_id)
        if not note:
            return jsonify({"error": "not_found", "message": "Note not found"}), 404

        if "note" in payload:
            note_text = _as_text(payload.get("note"))
            if not note_text or len(note_text) > MAX_NOTE_LENGTH:
                return (
                    jsonify({
                        "error": "invalid_payload",
                        "message": f"note must be 1-{MAX_NOTE_LENGTH} characters",
                    }),
                    400,
                )
            note.note = note_text
        if "is_private" in payload:
            note.is_private = bool(payload.get("is_private"))

        db.session.commit()
        return jsonify({"note": note.to_dict()}), 200

    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update personal note", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_ext.delete("/notes/<int:note_id>")
def delete_personal_note(note_id: int) -> tuple[dict[str, str], int]:
    try:
        note = PersonalNote.query.get(note_id)
        if not note:
            return jsonify({"error": "not_found", "message": "Note not found"}), 404

        db.session.delete(note)
        db.session.commit()
        return jsonify({"message": "Note deleted successfully"}), 200

    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete personal note", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


# --- END: Personal notes ---

# --- START: Reviews ---


@bp_ext.post("/visits/<int:visit_id>/reviews")
def create_review(visit_id: int) -> tuple[dict[str, object], int]:
    """Review a service, the hairstylist or the barbershop after a visit.
    ---
    tags:
      - Reviews
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            member_id:
              type: integer
            review_type:
              type: string
              enum: [service, hairstylist, barbershop]
            target_id:
              type: integer
            rating:
              type: integer
              minimum: 1
              maximum: 5
            comment:
              type: string
            is_anonymous:
              type: boolean
    responses:
      201:
        description: Review created
      400:
        description: Invalid input
      403:
        description: Visit belongs to another member
      404:
        description: Visit not found
      409:
        description: Already reviewed
      500:
        description: Database error
    """
    payload = _json_body()
    bad_field = _non_text_field(payload, "review_type", "comment")
    if bad_field:
        return _text_error(bad_field)

    member_id = _as_int(payload.get("member_id"))
    review_type = (payload.get("review_type") or "").strip().lower()
    rating = payload.get("rating")
    comment = (payload.get("comment") or "").strip() or None

    if member_id is None or review_type not in REVIEW_TYPES:
        return (
            jsonify({
                "error": "invalid_payload",
                "message": f"member_id and review_type ({', '.join(REVIEW_TYPES)}) are required",
            }),
            400,
        )
    if not isinstance(rating, int) or isinstance(rating, bool) or not 1 <= rating <= 5:
        return (
            jsonify({"error": "invalid_rating", "message": "Rating must be an integer between 1 and 5"}),
            400,
        )

    try:
        visit = Visit.query.get(visit_id)
        if not visit:
            return jsonify({"error": "not_found", "message": "Visit not found"}), 404
        if visit.member_id != member_id:
            return jsonify({"error": "forbidden", "message": "Visit belongs to another member"}), 403

        target_id = _as_int(payload.get("target_id"))
        if review_type == "barbershop":
            target_id = None
        elif review_type == "hairstylist":
            target_id = visit.hairstylist_id if target_id is None else target_id
            if target_id != visit.hairstylist_id:
                return (
                    jsonify({"error": "invalid_target", "message": "Hairstylist did not serve this visit"}),
                    400,
                )
        elif target_id not in {line.service_id for line in visit.services}:
            return (
                jsonify({"error": "invalid_target", "message": "Service was not part of this visit"}),
                400,
            )

        existing = Review.query.filter_by(
            visit_id=visit_id, review_type=review_type, target_id=target_id
        ).first()
        if existing:
            return jsonify({"error": "already_reviewed", "message": "Review already submitted"}), 409

        review = Review(
            visit_id=visit_id,
            member_id=member_id,
            review_type=review_type,
            target_id=target_id,
            rating=rating,
            comment=comment,
            is_anonymous=bool(payload.get("is_anonymous", False)),
        )
        db.session.add(review)
        db.session.commit()
        return jsonify({"review": review.to_dict()}), 201

    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create review", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_ext.get("/reviews")
def list_reviews() -> tuple[dict[str, object], int]:
    review_type = request.args.get("review_type", "").strip().lower()
    if review_type and review_type not in REVIEW_TYPES:
        return (
            jsonify({"error": "invalid_request", "message": f"review_type must be one of: {', '.join(REVIEW_TYPES)}"}),
            400,
        )

    try:
        query = Review.query
        if review_type:
            query = query.filter(Review.review_type == review_type)
        target_id = request.args.get("target_id", type=int)
        if target_id is not None:
            query = query.filter(Review.target_id == target_id)
        member_id = request.args.get("member_id", type=int)
        if member_id is not None:
            # Anonymous reviews never match a member filter.
            query = query.filter(Review.member_id == member_id, Review.is_anonymous.is_(False))

        reviews = query.order_by(Review.created_at.desc(), Review.review_id.desc()).all()
        average = query.with_entities(func.avg(Review.rating)).scalar()

        return jsonify({
            "reviews": [review.to_dict() for review in reviews],
            "total_reviews": len(reviews),
            "average_rating": round(float(average), 2) if average is not None else None,
        }), 200

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch reviews", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp_ext.delete("/reviews/<int:review_id>")
def delete_review(review_id: int) -> tuple[dict[str, str], int]:
    try:
        review = Review.query.get(review_id)
        if not review:
            return jsonify({"error": "not_found", "message": "Review not found"}), 404

        db.session.delete(review)
        db.session.commit()
        return jsonify({"message": "Review deleted successfully"}), 200

    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to delete review", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


# --- END: Reviews ---
