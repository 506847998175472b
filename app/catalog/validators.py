"""
app/catalog/validators.py
-------------------------
Pure-Python validation for service payloads.
Returns a dict of field -> error_message; empty means valid.
"""
from app.catalog.models import SERVICE_TYPES


def to_int(value, default=0):
    if value in (None, ''):
        return default
    if isinstance(value, bool):
        raise ValueError('boolean is not an integer')
    return int(value)


def validate_service_form(data: dict, partial: bool = False) -> dict:
    """
    Validate a create / update payload.

    Args:
        data:    decoded JSON body
        partial: True for PUT; only the keys present are checked

    base_price stays free text: anything is accepted, including prices the
    calculator will read as 0 ("Call us"), because staff author it by hand.
    """
    errors = {}

    def present(key):
        return not partial or key in data

    # ── name ─────────────────────────────────────────────────────
    if present('name'):
        name = data.get('name')
        name = name.strip() if isinstance(name, str) else ''
        if not name:
            errors['name'] = 'Service name is required.'
        elif len(name) > 200:
            errors['name'] = 'Service name must be 200 characters or fewer.'

    # ── type ──────────────────────────────────────────────────────
    if present('type'):
        if data.get('type') not in [t[0] for t in SERVICE_TYPES]:
            errors['type'] = 'Type must be one of: pricing, lease, maintenance, addon.'

    # ── base_price ────────────────────────────────────────────────
    if present('base_price'):
        price = data.get('base_price')
        if not isinstance(price, str) or not price.strip():
            errors['base_price'] = 'Price is required.'
        elif len(price) > 100:
            errors['base_price'] = 'Price must be 100 characters or fewer.'

    # ── features ──────────────────────────────────────────────────
    if 'features' in data and not isinstance(data['features'], list):
        errors['features'] = 'Features must be a list.'

    # ── metadata ──────────────────────────────────────────────────
    if 'metadata' in data and not isinstance(data['metadata'], dict):
        errors['metadata'] = 'Metadata must be an object.'

    # ── display_order ─────────────────────────────────────────────
    if 'display_order' in data:
        try:
            to_int(data['display_order'])
        except (TypeError, ValueError):
            errors['display_order'] = 'Display order must be a whole number.'

    return errors
