"""Shared Flask extensions for the salon membership backend."""
from __future__ import annotations

from flask_sqlalchemy import SQLAlchemy

# SQLAlchemy database instance shared by the models and routes.
db = SQLAlchemy()
