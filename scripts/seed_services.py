#!/usr/bin/env python3
"""Seed the service catalog with the default haircut, treatment and combo services."""
import sys
from pathlib import Path

# Add the parent directory to the path so we can import the app
sys.path.insert(0, str(Path(__file__).parent.parent))

from app import create_app, db
from app.models import Service
from app.services.catalog import DEFAULT_SERVICES


def seed_services(app=None) -> int:
    """Insert catalog services that are missing by name. Returns how many were added."""
    if app is None:
        app = create_app()

    with app.app_context():
        existing = {name for (name,) in db.session.query(Service.name).all()}
        added = 0

        for data in DEFAULT_SERVICES:
            if data["name"] in existing:
                print(f"⏭️  {data['name']} already in catalog. Skipping...")
                continue
            db.session.add(Service(**data))
            added += 1

        db.session.commit()
        print(f"✅ Added {added} services ({len(existing)} already present)")
        return added


if __name__ == "__main__":
    seed_services()
