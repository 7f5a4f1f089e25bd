"""Default configuration, overridable through ``APP_SETTINGS`` or ``create_app``."""
from __future__ import annotations

import os


class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///salon.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # None keeps the built-in tables from app.services.
    MEMBERSHIP_LEVELS = None
    COMBO_INCLUDES = None
