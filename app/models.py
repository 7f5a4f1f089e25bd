"""Database models for the salon membership backend."""
from __future__ import annotations

from datetime import date, datetime, timezone

from .extensions import db
from .services.catalog import CatalogEntry
from .services.membership import MemberCounters


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def _iso(value: date | datetime | None) -> str | None:
    return value.isoformat() if value else None


class UserProfile(db.Model):
    __tablename__ = "user_profiles"

    profile_id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=True)
    role = db.Column(
        db.Enum(
            "admin",
            "hairstylist",
            "member",
            name="user_role",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        server_default="member",
    )
    full_name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(30))
    whatsapp_number = db.Column(db.String(20))
    instagram_handle = db.Column(db.String(50))
    address = db.Column(db.String(200))
    bio = db.Column(db.Text)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    def to_dict_basic(self) -> dict[str, object]:
        return {
            "id": self.profile_id,
            "full_name": self.full_name,
            "email": self.email,
            "role": self.role,
            "phone": self.phone,
            "whatsapp_number": self.whatsapp_number,
            "instagram_handle": self.instagram_handle,
            "is_active": bool(self.is_active),
        }


class Member(db.Model):
    """A salon member and the counters that drive their tier."""

    __tablename__ = "members"

    member_id = db.Column(db.Integer, primary_key=True)
    profile_id = db.Column(db.Integer, db.ForeignKey("user_profiles.profile_id"), nullable=False)
    membership_tier = db.Column(db.String(20), nullable=False, default="bronze")
    membership_points = db.Column(db.Integer, nullable=False, default=0)
    total_visits = db.Column(db.Integer, nullable=False, default=0)
    total_spent = db.Column(db.BigInteger, nullable=False, default=0)
    join_date = db.Column(db.Date, nullable=False, default=lambda: utc_now().date())
    last_visit_date = db.Column(db.DateTime)
    preferred_services = db.Column(db.JSON, nullable=True, default=list)
    notes = db.Column(db.Text)
    birthday = db.Column(db.Date)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    profile = db.relationship("UserProfile")
    assignments = db.relationship(
        "MemberHairstylistAssignment",
        back_populates="member",
        cascade="all, delete-orphan",
    )

    def counters(self) -> MemberCounters:
        return MemberCounters(
            total_visits=self.total_visits or 0,
            total_spent=self.total_spent or 0,
            membership_tier=self.membership_tier,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.member_id,
            "profile": self.profile.to_dict_basic() if self.profile else None,
            "membership_tier": self.membership_tier,
            "membership_points": self.membership_points,
            "total_visits": self.total_visits,
            "total_spent": self.total_spent,
            "join_date": _iso(self.join_date),
            "last_visit_date": _iso(self.last_visit_date),
            "preferred_services": self.preferred_services or [],
            "notes": self.notes,
            "birthday": _iso(self.birthday),
            "assigned_hairstylists": [
                {
                    "hairstylist_id": assignment.hairstylist_id,
                    "full_name": assignment.hairstylist.profile.full_name
                    if assignment.hairstylist and assignment.hairstylist.profile
                    else None,
                    "is_primary": bool(assignment.is_primary),
                }
                for assignment in self.assignments
            ],
        }


class Hairstylist(db.Model):
    __tablename__ = "hairstylists"

    hairstylist_id = db.Column(db.Integer, primary_key=True)
    profile_id = db.Column(db.Integer, db.ForeignKey("user_profiles.profile_id"), nullable=False)
    specialties = db.Column(db.JSON, nullable=True, default=list)
    experience_years = db.Column(db.Integer, nullable=False, default=0)
    commission_rate = db.Column(db.Integer, nullable=False, default=0)  # percent
    join_date = db.Column(db.Date, nullable=False, default=lambda: utc_now().date())
    schedule_notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    profile = db.relationship("UserProfile")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.hairstylist_id,
            "profile": self.profile.to_dict_basic() if self.profile else None,
            "specialties": self.specialties or [],
            "experience_years": self.experience_years,
            "commission_rate": self.commission_rate,
            "join_date": _iso(self.join_date),
            "schedule_notes": self.schedule_notes,
        }


class MemberHairstylistAssignment(db.Model):
    __tablename__ = "member_hairstylist_assignments"
    __table_args__ = (db.UniqueConstraint("member_id", "hairstylist_id"),)

    assignment_id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.member_id"), nullable=False)
    hairstylist_id = db.Column(
        db.Integer, db.ForeignKey("hairstylists.hairstylist_id"), nullable=False
    )
    is_primary = db.Column(db.Boolean, nullable=False, default=False)
    assigned_by = db.Column(db.Integer, db.ForeignKey("user_profiles.profile_id"), nullable=True)
    notes = db.Column(db.Text)
    assigned_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    member = db.relationship("Member", back_populates="assignments")
    hairstylist = db.relationship("Hairstylist")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.assignment_id,
            "member_id": self.member_id,
            "hairstylist_id": self.hairstylist_id,
            "is_primary": bool(self.is_primary),
            "assigned_by": self.assigned_by,
            "notes": self.notes,
            "assigned_at": _iso(self.assigned_at),
        }


class Service(db.Model):
    """Catalog entry; combos are recognised by name through the combo table."""

    __tablename__ = "services"

    service_id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.String(300))
    category = db.Column(
        db.Enum(
            "haircut",
            "styling",
            "treatment",
            "coloring",
            "beard",
            "wash",
            "combo",
            name="service_category",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
    )
    base_price = db.Column(db.Integer, nullable=False)
    duration_minutes = db.Column(db.Integer, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    requires_consultation = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    def to_catalog_entry(self) -> CatalogEntry:
        return CatalogEntry(
            id=self.service_id,
            name=self.name,
            category=self.category,
            base_price=self.base_price,
            duration_minutes=self.duration_minutes,
            is_active=bool(self.is_active),
            description=self.description,
            requires_consultation=bool(self.requires_consultation),
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.service_id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "base_price": self.base_price,
            "duration_minutes": self.duration_minutes,
            "is_active": bool(self.is_active),
            "requires_consultation": bool(self.requires_consultation),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Visit(db.Model):
    """A recorded salon visit with its priced service lines."""

    __tablename__ = "visits"

    visit_id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.member_id"), nullable=False)
    hairstylist_id = db.Column(
        db.Integer, db.ForeignKey("hairstylists.hairstylist_id"), nullable=False
    )
    visit_date = db.Column(db.DateTime, nullable=False, default=utc_now)
    status = db.Column(
        db.Enum(
            "scheduled",
            "confirmed",
            "in_progress",
            "completed",
            "cancelled",
            "no_show",
            name="visit_status",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
        server_default="completed",
    )
    total_duration = db.Column(db.Integer, nullable=False, default=0)
    total_price = db.Column(db.Integer, nullable=False, default=0)
    discount_percentage = db.Column(db.Integer, nullable=False, default=0)
    final_price = db.Column(db.Integer, nullable=False, default=0)
    points_earned = db.Column(db.Integer, nullable=False, default=0)
    hairstylist_notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    member = db.relationship("Member")
    hairstylist = db.relationship("Hairstylist")
    services = db.relationship(
        "VisitService", back_populates="visit", cascade="all, delete-orphan"
    )
    photos = db.relationship("VisitPhoto", back_populates="visit", cascade="all, delete-orphan")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.visit_id,
            "member_id": self.member_id,
            "member_name": self.member.profile.full_name
            if self.member and self.member.profile
            else None,
            "hairstylist_id": self.hairstylist_id,
            "hairstylist_name": self.hairstylist.profile.full_name
            if self.hairstylist and self.hairstylist.profile
            else None,
            "visit_date": _iso(self.visit_date),
            "status": self.status,
            "total_duration": self.total_duration,
            "total_price": self.total_price,
            "discount_percentage": self.discount_percentage,
            "final_price": self.final_price,
            "points_earned": self.points_earned,
            "hairstylist_notes": self.hairstylist_notes,
            "services": [line.to_dict() for line in self.services],
            "photos": [photo.to_dict() for photo in self.photos],
            "created_at": _iso(self.created_at),
        }


class VisitService(db.Model):
    __tablename__ = "visit_services"

    visit_service_id = db.Column(db.Integer, primary_key=True)
    visit_id = db.Column(db.Integer, db.ForeignKey("visits.visit_id"), nullable=False)
    service_id = db.Column(db.Integer, db.ForeignKey("services.service_id"), nullable=False)
    price = db.Column(db.Integer, nullable=False)
    duration_minutes = db.Column(db.Integer, nullable=False)
    notes = db.Column(db.Text)

    visit = db.relationship("Visit", back_populates="services")
    service = db.relationship("Service")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.visit_service_id,
            "service_id": self.service_id,
            "service_name": self.service.name if self.service else None,
            "price": self.price,
            "duration_minutes": self.duration_minutes,
            "notes": self.notes,
        }


class VisitPhoto(db.Model):
    """Photo metadata; the image itself lives in external storage."""

    __tablename__ = "visit_photos"

    photo_id = db.Column(db.Integer, primary_key=True)
    visit_id = db.Column(db.Integer, db.ForeignKey("visits.visit_id"), nullable=False)
    photo_type = db.Column(
        db.Enum(
            "before",
            "after",
            "profile",
            name="photo_type",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
    )
    file_path = db.Column(db.String(255), nullable=False)
    file_url = db.Column(db.String(500), nullable=False)
    description = db.Column(db.String(255))
    uploaded_by = db.Column(db.Integer, db.ForeignKey("user_profiles.profile_id"), nullable=True)
    is_public = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    visit = db.relationship("Visit", back_populates="photos")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.photo_id,
            "visit_id": self.visit_id,
            "photo_type": self.photo_type,
            "file_path": self.file_path,
            "file_url": self.file_url,
            "description": self.description,
            "uploaded_by": self.uploaded_by,
            "is_public": bool(self.is_public),
            "created_at": _iso(self.created_at),
        }


class PersonalNote(db.Model):
    """A hairstylist's own note about a member."""

    __tablename__ = "personal_notes"

    note_id = db.Column(db.Integer, primary_key=True)
    hairstylist_id = db.Column(
        db.Integer, db.ForeignKey("hairstylists.hairstylist_id"), nullable=False
    )
    member_id = db.Column(db.Integer, db.ForeignKey("members.member_id"), nullable=False)
    note = db.Column(db.Text, nullable=False)
    is_private = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    member = db.relationship("Member")

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.note_id,
            "hairstylist_id": self.hairstylist_id,
            "member_id": self.member_id,
            "member_name": self.member.profile.full_name
            if self.member and self.member.profile
            else None,
            "note": self.note,
            "is_private": bool(self.is_private),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Review(db.Model):
    """Member review of a service, a hairstylist or the barbershop itself."""

    __tablename__ = "reviews"
    __table_args__ = (db.UniqueConstraint("visit_id", "review_type", "target_id"),)

    review_id = db.Column(db.Integer, primary_key=True)
    visit_id = db.Column(db.Integer, db.ForeignKey("visits.visit_id"), nullable=False)
    member_id = db.Column(db.Integer, db.ForeignKey("members.member_id"), nullable=False)
    review_type = db.Column(
        db.Enum(
            "service",
            "hairstylist",
            "barbershop",
            name="review_type",
            native_enum=False,
            validate_strings=True,
        ),
        nullable=False,
    )
    target_id = db.Column(db.Integer, nullable=True)  # service or hairstylist id
    rating = db.Column(db.Integer, nullable=False)  # 1-5 stars
    comment = db.Column(db.Text)
    is_anonymous = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utc_now)
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
    )

    member = db.relationship("Member")

    def to_dict(self) -> dict[str, object]:
        if self.is_anonymous or not (self.member and self.member.profile):
            member_name = "Anonymous"
        else:
            member_name = self.member.profile.full_name
        return {
            "id": self.review_id,
            "visit_id": self.visit_id,
            "member_id": None if self.is_anonymous else self.member_id,
            "member_name": member_name,
            "review_type": self.review_type,
            "target_id": self.target_id,
            "rating": self.rating,
            "comment": self.comment,
            "is_anonymous": bool(self.is_anonymous),
            "created_at": _iso(self.created_at),
        }


class MembershipLevelHistory(db.Model):
    __tablename__ = "membership_level_history"

    history_id = db.Column(db.Integer, primary_key=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.member_id"), nullable=False)
    previous_tier = db.Column(db.String(20))
    new_tier = db.Column(db.String(20), nullable=False)
    points_earned = db.Column(db.Integer, nullable=False, default=0)
    reason = db.Column(db.String(255))
    achieved_at = db.Column(db.DateTime, nullable=False, default=utc_now)

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.history_id,
            "member_id": self.member_id,
            "previous_tier": self.previous_tier,
            "new_tier": self.new_tier,
            "points_earned": self.points_earned,
            "reason": self.reason,
            "achieved_at": _iso(self.achieved_at),
        }
