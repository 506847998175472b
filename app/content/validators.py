"""
app/content/validators.py
-------------------------
Validation for testimonial and portfolio payloads.
Same contract as the catalog validator: {field: message}, empty = valid.
"""
from urllib.parse import urlparse

from app.catalog.validators import to_int


def _check_text(errors, data, key, label, max_len, required, partial):
    if partial and key not in data:
        return
    value = (data.get(key) or '')
    if not isinstance(value, str):
        errors[key] = f'{label} must be text.'
        return
    value = value.strip()
    if required and not value:
        errors[key] = f'{label} is required.'
    elif len(value) > max_len:
        errors[key] = f'{label} must be {max_len} characters or fewer.'


def _check_url(errors, data, key, label):
    value = data.get(key)
    if not value:
        return
    if not isinstance(value, str):
        errors[key] = f'{label} must be text.'
        return
    parsed = urlparse(value.strip())
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        errors[key] = f'{label} must be an http(s) URL.'


def _check_order(errors, data):
    if 'display_order' in data:
        try:
            to_int(data['display_order'])
        except (TypeError, ValueError):
            errors['display_order'] = 'Display order must be a whole number.'


def validate_testimonial_form(data: dict, partial: bool = False) -> dict:
    errors = {}
    _check_text(errors, data, 'name',    'Name',    120, True,  partial)
    _check_text(errors, data, 'role',    'Role',    120, False, partial)
    _check_text(errors, data, 'company', 'Company', 200, False, partial)
    _check_text(errors, data, 'quote',   'Quote',   5000, True, partial)
    _check_url(errors, data, 'image_url', 'Image URL')
    _check_order(errors, data)

    if 'rating' in data:
        try:
            rating = to_int(data['rating'], default=5)
            if not (1 <= rating <= 5):
                errors['rating'] = 'Rating must be between 1 and 5.'
        except (TypeError, ValueError):
            errors['rating'] = 'Rating must be a whole number.'

    return errors


def validate_portfolio_form(data: dict, partial: bool = False) -> dict:
    errors = {}
    _check_text(errors, data, 'name',        'Name',        200,  True,  partial)
    _check_text(errors, data, 'description', 'Description', 5000, False, partial)
    _check_text(errors, data, 'category',    'Category',    100,  False, partial)
    _check_url(errors, data, 'image_url', 'Image URL')
    _check_url(errors, data, 'url',       'Site URL')
    _check_order(errors, data)
    return errors
