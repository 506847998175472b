"""
app/utils/payload.py
────────────────────
Request-body helpers shared by the JSON blueprints.
"""
from flask import request, abort


def json_body() -> dict:
    """Decoded JSON object body; {} when absent, 400 when not an object."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        abort(400, description='Request body must be a JSON object')
    return data


def text(data: dict, key: str) -> str:
    """Stripped string value of `key`; '' when missing or not a string."""
    value = data.get(key)
    return value.strip() if isinstance(value, str) else ''
