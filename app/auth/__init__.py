"""
app/auth/__init__.py
--------------------
Back-office login blueprint (session based, JSON responses).
URL prefix: /auth
"""
from flask import Blueprint

auth = Blueprint('auth', __name__)

from app.auth import routes   # noqa: F401, E402
from app.auth import models   # noqa: F401, E402  registers User with SQLAlchemy
