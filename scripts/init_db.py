#!/usr/bin/env python3
"""Create (or with --reset, recreate) the database tables."""
import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app import create_app
from app.extensions import db


def init_database(reset: bool = False, app=None) -> None:
    if app is None:
        app = create_app()
    with app.app_context():
        if reset:
            db.drop_all()
            print("🗑️  Dropped existing tables")
        db.create_all()
        print("✅ Database tables initialized successfully")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--reset", action="store_true", help="Drop all tables before creating them")
    args = parser.parse_args()
    init_database(reset=args.reset)
