"""Development entry point for the salon membership API."""
from __future__ import annotations

import os

from app import create_app
from app.extensions import db

TRUTHY = {"1", "true", "True"}


def main() -> None:
    salon_app = create_app()

    if os.environ.get("AUTO_CREATE_TABLES", "0") in TRUTHY:
        with salon_app.app_context():
            db.create_all()

    print("\n=== Salon API routes ===")
    for rule in sorted(salon_app.url_map.iter_rules(), key=lambda r: r.rule):
        if rule.endpoint == "static":
            continue
        methods = ",".join(sorted(rule.methods - {"HEAD", "OPTIONS"}))
        print(f"{methods:<12} {rule.rule}")
    print("========================\n")

    salon_app.run(
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", 5000)),
        debug=os.environ.get("FLASK_DEBUG", "0") in TRUTHY,
    )


if __name__ == "__main__":
    main()
