"""
app/proposals/__init__.py
-------------------------
Proposals blueprint: admin CRUD/builder plus the public proposal page,
visitor quote cart and acceptance. Routes carry their own /api paths.
"""
from flask import Blueprint

proposals = Blueprint('proposals', __name__)

from app.proposals import routes  # noqa: E402, F401
from app.proposals import models  # noqa: E402, F401  registers Proposal with SQLAlchemy
