"""
app/catalog/__init__.py
-----------------------
Service catalog blueprint.
URL prefix: /api/services
"""
from flask import Blueprint

catalog = Blueprint('catalog', __name__)

from app.catalog import routes  # noqa: E402, F401
from app.catalog import models  # noqa: E402, F401  registers Service with SQLAlchemy
