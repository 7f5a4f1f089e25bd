"""HTTP routes for the salon membership backend: catalog, members and tiers."""
from __future__ import annotations

import re
from datetime import date

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import joinedload

from .calculators import service_validator, tier_calculator
from .extensions import db
from .models import (Hairstylist, Member, MembershipLevelHistory, Service,
                     UserProfile, Visit, VisitService)
from .routes_extended import (_as_int, _json_body, _non_text_field, _text_error,
                              bp_ext)
from .services.catalog import SERVICE_CATEGORIES, format_duration, format_price

bp = Blueprint("api", __name__)

PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")
INSTAGRAM_PATTERN = re.compile(r"^@[a-zA-Z0-9._]+$")
EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def register_routes(app) -> None:
    app.register_blueprint(bp)
    app.register_blueprint(bp_ext)


def parse_service_ids(raw: object) -> list[int] | None:
    """Return the ids as ints, or None when the payload is not a list of ints."""
    if not isinstance(raw, list):
        return None
    try:
        return [int(value) for value in raw]
    except (TypeError, ValueError):
        return None


def _catalog_payload(entry) -> dict[str, object]:
    payload = entry.to_dict()
    payload["formatted_price"] = format_price(entry.base_price)
    payload["formatted_duration"] = format_duration(entry.duration_minutes)
    return payload


def _validate_contact(payload: dict[str, object]) -> str | None:
    """Return an error message for bad contact fields, None when they are fine."""
    bad_field = _non_text_field(payload, "whatsapp_number", "phone", "instagram_handle", "email")
    if bad_field:
        return f"{bad_field} must be a string"

    whatsapp = (payload.get("whatsapp_number") or "").strip()
    if whatsapp and (not PHONE_PATTERN.match(whatsapp) or not 10 <= len(whatsapp) <= 20):
        return "whatsapp_number must be 10-20 characters of digits, spaces, dashes or brackets"

    phone = (payload.get("phone") or "").strip()
    if phone and not PHONE_PATTERN.match(phone):
        return "phone must contain only digits, spaces, dashes or brackets"

    instagram = (payload.get("instagram_handle") or "").strip()
    if instagram and not INSTAGRAM_PATTERN.match(instagram):
        return "instagram_handle must start with @ and contain letters, numbers, dots or underscores"

    email = (payload.get("email") or "").strip()
    if email and not EMAIL_PATTERN.match(email):
        return "email must be a valid email address"

    return None


@bp.get("/health")
def health_check() -> tuple[dict[str, str], int]:
    """
    Expose a simple uptime check endpoint.
    ---
    tags:
      - Health
    responses:
      200:
        description: Service is healthy and running.
    """
    return jsonify({"status": "ok"}), 200


@bp.get("/db-health")
def database_health() -> tuple[dict[str, str], int]:
    """Check connectivity to the configured database.
    ---
    tags:
      - Health
    responses:
      200:
        description: Database connection is ok.
      500:
        description: Database connection failed.
    """
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        current_app.logger.exception("Database connectivity check failed", exc_info=exc)
        return jsonify({"database": "unavailable"}), 500

    return jsonify({"database": "ok"}), 200


# --- START: Service catalog ---


@bp.get("/services")
def list_services() -> tuple[dict[str, object], int]:
    """List active catalog services.
    ---
    tags:
      - Services
    parameters:
      - name: category
        in: query
        type: string
      - name: query
        in: query
        type: string
        description: Case-insensitive match on name, description or category
    responses:
      200:
        description: List of services
      400:
        description: Unknown category
      500:
        description: Database error
    """
    category = request.args.get("category", "").strip().lower()
    query = request.args.get("query", "").strip()

    if category and category not in SERVICE_CATEGORIES:
        return (
            jsonify({
                "error": "invalid_category",
                "message": f"category must be one of: {', '.join(SERVICE_CATEGORIES)}",
            }),
            400,
        )

    try:
        validator = service_validator()
        entries = validator.search_services(query) if query else validator.get_all_services()
        if category:
            entries = [entry for entry in entries if entry.category == category]

        return jsonify({"services": [_catalog_payload(entry) for entry in entries]}), 200

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch services", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.get("/services/popular")
def list_popular_services() -> tuple[dict[str, object], int]:
    try:
        popular = service_validator().get_popular_services()
        return jsonify({"services": [_catalog_payload(entry) for entry in popular]}), 200
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch popular services", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


def _read_service_fields(payload: dict[str, object], partial: bool) -> tuple[dict[str, object], str | None]:
    fields: dict[str, object] = {}
    bad_field = _non_text_field(payload, "name", "category", "description")
    if bad_field:
        return fields, f"{bad_field} must be a string"

    if "name" in payload or not partial:
        name = (payload.get("name") or "").strip()
        if not 2 <= len(name) <= 100:
            return fields, "name must be between 2 and 100 characters"
        fields["name"] = name

    if "category" in payload or not partial:
        category = (payload.get("category") or "").strip().lower()
        if category not in SERVICE_CATEGORIES:
            return fields, f"category must be one of: {', '.join(SERVICE_CATEGORIES)}"
        fields["category"] = category

    if "base_price" in payload or not partial:
        try:
            base_price = int(payload.get("base_price"))
            if base_price < 0:
                raise ValueError("base_price must be >= 0")
        except (TypeError, ValueError):
            return fields, "base_price must be a non-negative integer"
        fields["base_price"] = base_price

    if "duration_minutes" in payload or not partial:
        try:
            duration = int(payload.get("duration_minutes"))
            if duration <= 0:
                raise ValueError("duration_minutes must be > 0")
        except (TypeError, ValueError):
            return fields, "duration_minutes must be a positive integer"
        fields["duration_minutes"] = duration

    if "description" in payload:
        description = (payload.get("description") or "").strip() or None
        if description and len(description) > 300:
            return fields, "description must not exceed 300 characters"
        fields["description"] = description

    for flag in ("is_active", "requires_consultation"):
        if flag in payload:
            fields[flag] = bool(payload.get(flag))

    return fields, None


@bp.post("/services")
def create_service() -> tuple[dict[str, object], int]:
    """Add a service to the catalog (admin).
    ---
    tags:
      - Services
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            name:
              type: string
            category:
              type: string
            base_price:
              type: integer
            duration_minutes:
              type: integer
            description:
              type: string
            requires_consultation:
              type: boolean
    responses:
      201:
        description: Service created successfully
      400:
        description: Invalid input
      409:
        description: A service with that name already exists
      500:
        description: Database error
    """
    payload = _json_body()
    fields, error = _read_service_fields(payload, partial=False)
    if error:
        return jsonify({"error": "invalid_payload", "message": error}), 400

    try:
        service = Service(**fields)
        db.session.add(service)
        db.session.commit()
        return jsonify({"message": "Service created successfully", "service": service.to_dict()}), 201

    except IntegrityError:
        db.session.rollback()
        return (
            jsonify({"error": "duplicate_service", "message": "A service with this name already exists"}),
            409,
        )
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create service", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.put("/services/<int:service_id>")
def update_service(service_id: int) -> tuple[dict[str, object], int]:
    payload = _json_body()

    try:
        service = Service.query.get(service_id)
        if not service:
            return jsonify({"error": "not_found", "message": "Service not found"}), 404

        fields, error = _read_service_fields(payload, partial=True)
        if error:
            return jsonify({"error": "invalid_payload", "message": error}), 400

        for key, value in fields.items():
            setattr(service, key, value)

        db.session.commit()
        return jsonify({"message": "Service updated successfully", "service": service.to_dict()}), 200

    except IntegrityError:
        db.session.rollback()
        return (
            jsonify({"error": "duplicate_service", "message": "A service with this name already exists"}),
            409,
        )
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update service", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.delete("/services/<int:service_id>")
def delete_service(service_id: int) -> tuple[dict[str, str], int]:
    """Deactivate a service. Past visits keep pointing at it.
    ---
    tags:
      - Services
    responses:
      200:
        description: Service deactivated
      404:
        description: Not found
      500:
        description: Database error
    """
    try:
        service = Service.query.get(service_id)
        if not service:
            return jsonify({"error": "not_found", "message": "Service not found"}), 404

        service.is_active = False
        db.session.commit()
        return jsonify({"message": "Service deactivated successfully"}), 200

    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to deactivate service", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.post("/services/validate")
def validate_services() -> tuple[dict[str, object], int]:
    """Check a service selection for conflicts, warnings and combo suggestions.
    ---
    tags:
      - Services
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            service_ids:
              type: array
              items:
                type: integer
    responses:
      200:
        description: Validation result (is_valid may be false)
      400:
        description: Malformed or duplicate ids
    """
    payload = _json_body()
    service_ids = parse_service_ids(payload.get("service_ids", []))
    if service_ids is None:
        return jsonify({"error": "invalid_payload", "message": "service_ids must be a list of integers"}), 400
    if len(set(service_ids)) != len(service_ids):
        return jsonify({"error": "duplicate_services", "message": "Service already added"}), 400

    try:
        validator = service_validator()
        result = validator.validate_combination(service_ids)
        response = result.to_dict()
        total_duration = validator.calculate_total_duration(service_ids)
        response["total_duration"] = total_duration
        response["formatted_duration"] = format_duration(total_duration)
        return jsonify(response), 200

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to validate services", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.post("/services/estimate")
def estimate_services() -> tuple[dict[str, object], int]:
    """Catalog price estimate with the flat and tier discounts stacked.

    Recorded visits are priced by ``/visits`` instead, where the larger
    discount wins.
    """
    payload = _json_body()
    service_ids = parse_service_ids(payload.get("service_ids", []))
    if service_ids is None:
        return jsonify({"error": "invalid_payload", "message": "service_ids must be a list of integers"}), 400

    try:
        discount = int(payload.get("discount_percentage", 0))
        if not 0 <= discount <= 100:
            raise ValueError("discount out of range")
    except (TypeError, ValueError):
        return (
            jsonify({"error": "invalid_payload", "message": "discount_percentage must be between 0 and 100"}),
            400,
        )

    tier = payload.get("membership_tier") or None

    try:
        validator = service_validator()
        total_price = validator.calculate_total_price(service_ids, discount, tier)
        total_duration = validator.calculate_total_duration(service_ids)
        return jsonify({
            "total_price": total_price,
            "formatted_price": format_price(total_price),
            "total_duration": total_duration,
            "formatted_duration": format_duration(total_duration),
        }), 200

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to estimate services", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.post("/services/recommendations")
def recommend_services() -> tuple[dict[str, object], int]:
    """Recommend follow-up services from explicit ids or a member's visit history."""
    payload = _json_body()

    try:
        member_id = payload.get("member_id")
        if member_id is not None:
            member_id = _as_int(member_id)
            member = Member.query.get(member_id) if member_id is not None else None
            if not member:
                return jsonify({"error": "not_found", "message": "Member not found"}), 404
            rows = (
                db.session.query(VisitService.service_id)
                .join(Visit)
                .filter(Visit.member_id == member.member_id)
                .distinct()
                .all()
            )
            service_ids = [row.service_id for row in rows]
        else:
            service_ids = parse_service_ids(payload.get("service_ids", []))
            if service_ids is None:
                return (
                    jsonify({"error": "invalid_payload", "message": "service_ids must be a list of integers"}),
                    400,
                )

        recommendations = service_validator().get_recommendations(service_ids)
        return jsonify({"services": [_catalog_payload(entry) for entry in recommendations]}), 200

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to build recommendations", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


# --- END: Service catalog ---

# --- START: Membership tiers ---


@bp.get("/membership/tiers")
def list_membership_tiers() -> tuple[dict[str, object], int]:
    tiers = tier_calculator()
    return jsonify({"tiers": [level.to_dict() for level in tiers.get_all_tiers()]}), 200


@bp.get("/members/<int:member_id>/membership")
def get_member_membership(member_id: int) -> tuple[dict[str, object], int]:
    """Tier card data for one member: level, progress, next tier and estimate.
    ---
    tags:
      - Membership
    parameters:
      - name: member_id
        in: path
        type: integer
        required: true
      - name: monthly_visits
        in: query
        type: number
        default: 2
      - name: average_spend
        in: query
        type: integer
        default: 300000
    responses:
      200:
        description: Membership summary
      400:
        description: Invalid estimate parameters
      404:
        description: Member not found
      500:
        description: Database error
    """
    try:
        monthly_visits = float(request.args.get("monthly_visits", 2))
        average_spend = float(request.args.get("average_spend", 300000))
        if monthly_visits < 0 or average_spend < 0:
            raise ValueError("negative estimate inputs")
    except ValueError as exc:
        current_app.logger.warning(f"Invalid estimate parameters: {exc}")
        return (
            jsonify({"error": "invalid_request", "message": "monthly_visits and average_spend must be >= 0"}),
            400,
        )

    try:
        member = Member.query.get(member_id)
        if not member:
            return jsonify({"error": "not_found", "message": "Member not found"}), 404

        tiers = tier_calculator()
        counters = member.counters()
        level = tiers.get_level_info(counters.membership_tier)
        progress = tiers.calculate_progress(
            counters.total_visits, counters.total_spent, counters.membership_tier
        )
        estimate = tiers.estimate_time_to_next_tier(
            counters.total_visits,
            counters.total_spent,
            counters.membership_tier,
            monthly_visits=monthly_visits,
            average_spend_per_visit=average_spend,
        )

        return jsonify({
            "member_id": member.member_id,
            "membership_tier": member.membership_tier,
            "membership_points": member.membership_points,
            "total_visits": counters.total_visits,
            "total_spent": counters.total_spent,
            "level": level.to_dict(),
            "rank": tiers.get_tier_rank(counters.membership_tier),
            "progress": progress.to_dict(),
            **tiers.get_next_tier_info(counters.membership_tier).to_dict(),
            "estimate": estimate.to_dict(),
            "upgrade_check": tiers.should_upgrade(counters).to_dict(),
        }), 200

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch membership summary", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.get("/members/<int:member_id>/membership/history")
def get_membership_history(member_id: int) -> tuple[dict[str, object], int]:
    try:
        member = Member.query.get(member_id)
        if not member:
            return jsonify({"error": "not_found", "message": "Member not found"}), 404

        history = (
            MembershipLevelHistory.query.filter_by(member_id=member_id)
            .order_by(MembershipLevelHistory.achieved_at.desc(), MembershipLevelHistory.history_id.desc())
            .all()
        )
        return jsonify({"member_id": member_id, "history": [row.to_dict() for row in history]}), 200

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch membership history", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.get("/membership/stats")
def get_membership_stats() -> tuple[dict[str, object], int]:
    """Tier distribution and averages across all members (admin reports)."""
    try:
        counters = [member.counters() for member in Member.query.all()]
        stats = tier_calculator().get_membership_stats(counters)
        return jsonify(stats.to_dict()), 200

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch membership stats", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


# --- END: Membership tiers ---

# --- START: Members and hairstylists ---


@bp.get("/members")
def list_members() -> tuple[dict[str, object], int]:
    """List members with optional tier filter and name search.
    ---
    tags:
      - Members
    parameters:
      - name: tier
        in: query
        type: string
      - name: query
        in: query
        type: string
      - name: page
        in: query
        type: integer
        default: 1
      - name: limit
        in: query
        type: integer
        default: 20
        maximum: 100
    responses:
      200:
        description: Paginated members
      400:
        description: Invalid parameters
      500:
        description: Database error
    """
    try:
        tier = request.args.get("tier", "").strip().lower()
        query = request.args.get("query", "").strip()
        page = max(1, int(request.args.get("page", 1)))
        limit = min(100, max(1, int(request.args.get("limit", 20))))

        member_query = Member.query.options(joinedload(Member.profile)).join(UserProfile)
        if tier:
            member_query = member_query.filter(Member.membership_tier == tier)
        if query:
            member_query = member_query.filter(UserProfile.full_name.ilike(f"%{query}%"))

        total = member_query.count()
        members = (
            member_query.order_by(Member.created_at.desc(), Member.member_id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )

        return jsonify({
            "members": [member.to_dict() for member in members],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "total_pages": (total + limit - 1) // limit,
            },
        }), 200

    except ValueError as exc:
        current_app.logger.warning(f"Invalid pagination parameters: {exc}")
        return jsonify({"error": "invalid_request", "message": "page and limit must be integers"}), 400
    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch members", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.post("/members")
def create_member() -> tuple[dict[str, object], int]:
    """Register a member. Imported counters set the starting tier.
    ---
    tags:
      - Members
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            full_name:
              type: string
            whatsapp_number:
              type: string
            instagram_handle:
              type: string
            email:
              type: string
            birthday:
              type: string
              format: date
            preferred_services:
              type: array
              items:
                type: string
            notes:
              type: string
            total_visits:
              type: integer
            total_spent:
              type: integer
    responses:
      201:
        description: Member created
      400:
        description: Invalid input
      409:
        description: Email already registered
      500:
        description: Database error
    """
    payload = _json_body()

    bad_field = _non_text_field(payload, "full_name", "whatsapp_number", "notes")
    if bad_field:
        return _text_error(bad_field)

    full_name = (payload.get("full_name") or "").strip()
    whatsapp = (payload.get("whatsapp_number") or "").strip()
    if not 2 <= len(full_name) <= 100 or not whatsapp:
        return (
            jsonify({
                "error": "invalid_payload",
                "message": "full_name (2-100 characters) and whatsapp_number are required",
            }),
            400,
        )

    error = _validate_contact(payload)
    if error:
        return jsonify({"error": "invalid_payload", "message": error}), 400

    notes = (payload.get("notes") or "").strip() or None
    if notes and len(notes) > 500:
        return jsonify({"error": "invalid_payload", "message": "notes must not exceed 500 characters"}), 400

    try:
        total_visits = int(payload.get("total_visits", 0))
        total_spent = int(payload.get("total_spent", 0))
        if total_visits < 0 or total_spent < 0:
            raise ValueError("negative counters")
        birthday = date.fromisoformat(payload["birthday"]) if payload.get("birthday") else None
    except (TypeError, ValueError):
        return (
            jsonify({
                "error": "invalid_payload",
                "message": "total_visits and total_spent must be >= 0 and birthday must be YYYY-MM-DD",
            }),
            400,
        )

    preferred = payload.get("preferred_services") or []
    if not isinstance(preferred, list):
        return jsonify({"error": "invalid_payload", "message": "preferred_services must be a list"}), 400

    try:
        profile = UserProfile(
            full_name=full_name,
            email=(payload.get("email") or "").strip().lower() or None,
            role="member",
            whatsapp_number=whatsapp,
            instagram_handle=(payload.get("instagram_handle") or "").strip() or None,
            phone=(payload.get("phone") or "").strip() or None,
        )
        db.session.add(profile)
        db.session.flush()

        member = Member(
            profile_id=profile.profile_id,
            total_visits=total_visits,
            total_spent=total_spent,
            membership_tier=tier_calculator().calculate_tier(total_visits, total_spent),
            preferred_services=[str(item) for item in preferred],
            notes=notes,
            birthday=birthday,
        )
        db.session.add(member)
        db.session.commit()

        return jsonify({"message": "Member created successfully", "member": member.to_dict()}), 201

    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "duplicate_email", "message": "Email already registered"}), 409
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create member", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.get("/members/<int:member_id>")
def get_member(member_id: int) -> tuple[dict[str, object], int]:
    try:
        member = Member.query.get(member_id)
        if not member:
            return jsonify({"error": "not_found", "message": "Member not found"}), 404

        recent_visits = (
            Visit.query.filter_by(member_id=member_id)
            .order_by(Visit.visit_date.desc())
            .limit(5)
            .all()
        )
        payload = member.to_dict()
        payload["recent_visits"] = [visit.to_dict() for visit in recent_visits]
        return jsonify({"member": payload}), 200

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch member", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.put("/members/<int:member_id>")
def update_member(member_id: int) -> tuple[dict[str, object], int]:
    """Update member biodata. Counters and tier only change through recorded visits."""
    payload = _json_body()

    bad_field = _non_text_field(payload, "full_name", "notes")
    if bad_field:
        return _text_error(bad_field)

    error = _validate_contact(payload)
    if error:
        return jsonify({"error": "invalid_payload", "message": error}), 400

    try:
        member = Member.query.get(member_id)
        if not member:
            return jsonify({"error": "not_found", "message": "Member not found"}), 404

        profile = member.profile
        if "full_name" in payload:
            full_name = (payload.get("full_name") or "").strip()
            if not 2 <= len(full_name) <= 100:
                return (
                    jsonify({"error": "invalid_payload", "message": "full_name must be 2-100 characters"}),
                    400,
                )
            profile.full_name = full_name
        for field in ("whatsapp_number", "instagram_handle", "phone"):
            if field in payload:
                setattr(profile, field, (payload.get(field) or "").strip() or None)
        if "email" in payload:
            profile.email = (payload.get("email") or "").strip().lower() or None

        if "notes" in payload:
            notes = (payload.get("notes") or "").strip() or None
            if notes and len(notes) > 500:
                return (
                    jsonify({"error": "invalid_payload", "message": "notes must not exceed 500 characters"}),
                    400,
                )
            member.notes = notes
        if "preferred_services" in payload:
            preferred = payload.get("preferred_services") or []
            if not isinstance(preferred, list):
                return (
                    jsonify({"error": "invalid_payload", "message": "preferred_services must be a list"}),
                    400,
                )
            member.preferred_services = [str(item) for item in preferred]
        if "birthday" in payload:
            try:
                member.birthday = (
                    date.fromisoformat(payload["birthday"]) if payload.get("birthday") else None
                )
            except (TypeError, ValueError):
                return (
                    jsonify({"error": "invalid_payload", "message": "birthday must be YYYY-MM-DD"}),
                    400,
                )

        db.session.commit()
        return jsonify({"message": "Member updated successfully", "member": member.to_dict()}), 200

    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "duplicate_email", "message": "Email already registered"}), 409
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to update member", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.get("/hairstylists")
def list_hairstylists() -> tuple[dict[str, object], int]:
    try:
        hairstylists = (
            Hairstylist.query.options(joinedload(Hairstylist.profile))
            .join(UserProfile)
            .filter(UserProfile.is_active.is_(True))
            .order_by(UserProfile.full_name)
            .all()
        )
        return jsonify({"hairstylists": [stylist.to_dict() for stylist in hairstylists]}), 200

    except SQLAlchemyError as exc:
        current_app.logger.exception("Failed to fetch hairstylists", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


@bp.post("/hairstylists")
def create_hairstylist() -> tuple[dict[str, object], int]:
    """Register a hairstylist (admin).
    ---
    tags:
      - Hairstylists
    parameters:
      - in: body
        name: body
        required: true
        schema:
          properties:
            full_name:
              type: string
            email:
              type: string
            phone:
              type: string
            specialties:
              type: array
              items:
                type: string
            experience_years:
              type: integer
            commission_rate:
              type: integer
    responses:
      201:
        description: Hairstylist created
      400:
        description: Invalid input
      409:
        description: Email already registered
      500:
        description: Database error
    """
    payload = _json_body()

    bad_field = _non_text_field(payload, "full_name", "email", "address", "bio")
    if bad_field:
        return _text_error(bad_field)

    full_name = (payload.get("full_name") or "").strip()
    email = (payload.get("email") or "").strip().lower()
    if not 2 <= len(full_name) <= 100 or not email:
        return (
            jsonify({"error": "invalid_payload", "message": "full_name and email are required"}),
            400,
        )

    error = _validate_contact(payload)
    if error:
        return jsonify({"error": "invalid_payload", "message": error}), 400

    specialties = payload.get("specialties") or []
    if isinstance(specialties, str):
        specialties = [item.strip() for item in specialties.split(",") if item.strip()]
    if not isinstance(specialties, list) or not specialties:
        return (
            jsonify({"error": "invalid_payload", "message": "At least one specialty is required"}),
            400,
        )

    try:
        experience_years = int(payload.get("experience_years", 0))
        commission_rate = int(payload.get("commission_rate", 0))
        if not 0 <= experience_years <= 50 or not 0 <= commission_rate <= 100:
            raise ValueError("out of range")
    except (TypeError, ValueError):
        return (
            jsonify({
                "error": "invalid_payload",
                "message": "experience_years must be 0-50 and commission_rate 0-100",
            }),
            400,
        )

    try:
        profile = UserProfile(
            full_name=full_name,
            email=email,
            role="hairstylist",
            phone=(payload.get("phone") or "").strip() or None,
            whatsapp_number=(payload.get("whatsapp_number") or "").strip() or None,
            address=(payload.get("address") or "").strip() or None,
            bio=(payload.get("bio") or "").strip() or None,
        )
        db.session.add(profile)
        db.session.flush()

        hairstylist = Hairstylist(
            profile_id=profile.profile_id,
            specialties=[str(item) for item in specialties],
            experience_years=experience_years,
            commission_rate=commission_rate,
        )
        db.session.add(hairstylist)
        db.session.commit()

        return (
            jsonify({"message": "Hairstylist created successfully", "hairstylist": hairstylist.to_dict()}),
            201,
        )

    except IntegrityError:
        db.session.rollback()
        return jsonify({"error": "duplicate_email", "message": "Email already registered"}), 409
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Failed to create hairstylist", exc_info=exc)
        return jsonify({"error": "database_error"}), 500


# --- END: Members and hairstylists ---
