"""
app/content/__init__.py
-----------------------
Testimonials & portfolio blueprint.
URL prefix: /api
"""
from flask import Blueprint

content = Blueprint('content', __name__)

from app.content import routes  # noqa: E402, F401
from app.content import models  # noqa: E402, F401
