"""pytest configuration: path management and a fresh in-memory app per test."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure the project root is available on sys.path so tests can import the app package.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app import create_app  # noqa: E402
from app.extensions import db  # noqa: E402
from app.models import Hairstylist, Member, Service, UserProfile  # noqa: E402
from app.services.catalog import DEFAULT_SERVICES  # noqa: E402


@pytest.fixture
def app():
    flask_app = create_app({
        "TESTING": True,
        "SQLALCHEMY_DATABASE_URI": "sqlite:///:memory:",
    })

    with flask_app.app_context():
        db.create_all()

    yield flask_app

    with flask_app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def catalog(app) -> dict[str, int]:
    """Seed the default services and return their ids keyed by name."""
    with app.app_context():
        services = [Service(**data) for data in DEFAULT_SERVICES]
        db.session.add_all(services)
        db.session.commit()
        return {service.name: service.service_id for service in services}


@pytest.fixture
def make_member(app):
    """Return a factory that inserts a member and returns its id."""

    def _make(full_name: str = "Budi Santoso", **counters) -> int:
        with app.app_context():
            profile = UserProfile(
                full_name=full_name, role="member", whatsapp_number="+62 812 3456 7890"
            )
            db.session.add(profile)
            db.session.flush()
            member = Member(profile_id=profile.profile_id, **counters)
            db.session.add(member)
            db.session.commit()
            return member.member_id

    return _make


@pytest.fixture
def make_hairstylist(app):
    def _make(full_name: str = "Rina Wijaya", email: str = "rina@example.com") -> int:
        with app.app_context():
            profile = UserProfile(full_name=full_name, email=email, role="hairstylist")
            db.session.add(profile)
            db.session.flush()
            hairstylist = Hairstylist(
                profile_id=profile.profile_id, specialties=["Perm"], experience_years=5
            )
            db.session.add(hairstylist)
            db.session.commit()
            return hairstylist.hairstylist_id

    return _make


@pytest.fixture
def member_id(make_member) -> int:
    return make_member()


@pytest.fixture
def hairstylist_id(make_hairstylist) -> int:
    return make_hairstylist()
