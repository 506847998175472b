"""
app/auth/decorators.py
----------------------
Route-protection decorators for the JSON back office.
Usage:
    from app.auth.decorators import login_required, admin_required

    @proposals.route('/', methods=['POST'])
    @admin_required
    def create():
        ...
"""
from functools import wraps
from flask import session, abort


def login_required(f):
    """Reject anonymous requests with 401."""
    @wraps(f)
    def decorated(*args, **kwargs):
        if 'user_id' not in session:
            abort(401)
        return f(*args, **kwargs)
    return decorated


def admin_required(f):
    """
    Allow access only to users with role == 'admin'.
    Anonymous → 401, authenticated non-admin → 403.
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        if 'user_id' not in session:
            abort(401)
        if session.get('role') != 'admin':
            abort(403)
        return f(*args, **kwargs)
    return decorated


def is_admin_session() -> bool:
    return session.get('role') == 'admin'
