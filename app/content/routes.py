"""
app/content/routes.py
---------------------
Testimonials and portfolio CRUD.

Public:  GET /api/testimonials/          active rows, display order
         GET /api/portfolio/
Admin:   GET  /all, GET/PUT/DELETE /<id>, POST /
"""
from flask import jsonify, current_app, abort

from app import db
from app.content import content
from app.content.models import Testimonial, PortfolioItem
from app.content.validators import validate_testimonial_form, validate_portfolio_form
from app.catalog.validators import to_int
from app.auth.decorators import admin_required
from app.utils.payload import json_body, text


TEXT_FIELDS = {
    Testimonial:   ('name', 'role', 'company', 'quote', 'image_url'),
    PortfolioItem: ('name', 'description', 'image_url', 'url', 'category'),
}


# ── Helpers ───────────────────────────────────────────────────────

def _get_or_404(model, row_id):
    row = db.session.get(model, row_id)
    if row is None:
        abort(404, description=f'{model.__name__} not found')
    return row


def _ordered(model, active_only: bool):
    query = model.query
    if active_only:
        query = query.filter_by(is_active=True)
    return query.order_by(model.display_order.asc(), model.id.asc()).all()


def _apply(row, data: dict) -> None:
    for key in TEXT_FIELDS[type(row)]:
        if key in data:
            setattr(row, key, text(data, key))
    if 'display_order' in data:
        row.display_order = to_int(data['display_order'])
    if 'is_active' in data:
        row.is_active = bool(data['is_active'])
    if 'rating' in data and isinstance(row, Testimonial):
        row.rating = to_int(data['rating'], default=5)


def _create(model, validator):
    data = json_body()
    errors = validator(data)
    if errors:
        return jsonify({'error': f'Invalid {model.__name__}', 'errors': errors}), 400
    row = model(is_active=True)
    _apply(row, data)
    db.session.add(row)
    db.session.commit()
    current_app.logger.info(f"{model.__name__} {row.id} created")
    return jsonify(row.to_dict()), 201


def _update(model, validator, row_id):
    row = _get_or_404(model, row_id)
    data = json_body()
    errors = validator(data, partial=True)
    if errors:
        return jsonify({'error': f'Invalid {model.__name__}', 'errors': errors}), 400
    _apply(row, data)
    db.session.commit()
    current_app.logger.info(f"{model.__name__} {row.id} updated")
    return jsonify(row.to_dict())


def _delete(model, row_id):
    row = _get_or_404(model, row_id)
    db.session.delete(row)
    db.session.commit()
    current_app.logger.info(f"{model.__name__} {row_id} deleted")
    return '', 204


# ── Testimonials ──────────────────────────────────────────────────

@content.route('/testimonials/', methods=['GET'])
def testimonials():
    return jsonify([t.to_dict() for t in _ordered(Testimonial, active_only=True)])


@content.route('/testimonials/all', methods=['GET'])
@admin_required
def all_testimonials():
    return jsonify([t.to_dict() for t in _ordered(Testimonial, active_only=False)])


@content.route('/testimonials/<int:row_id>', methods=['GET'])
@admin_required
def testimonial_detail(row_id):
    return jsonify(_get_or_404(Testimonial, row_id).to_dict())


@content.route('/testimonials/', methods=['POST'])
@admin_required
def create_testimonial():
    return _create(Testimonial, validate_testimonial_form)


@content.route('/testimonials/<int:row_id>', methods=['PUT'])
@admin_required
def update_testimonial(row_id):
    return _update(Testimonial, validate_testimonial_form, row_id)


@content.route('/testimonials/<int:row_id>', methods=['DELETE'])
@admin_required
def delete_testimonial(row_id):
    return _delete(Testimonial, row_id)


# ── Portfolio ─────────────────────────────────────────────────────

@content.route('/portfolio/', methods=['GET'])
def portfolio():
    return jsonify([p.to_dict() for p in _ordered(PortfolioItem, active_only=True)])


@content.route('/portfolio/all', methods=['GET'])
@admin_required
def all_portfolio():
    return jsonify([p.to_dict() for p in _ordered(PortfolioItem, active_only=False)])


@content.route('/portfolio/<int:row_id>', methods=['GET'])
@admin_required
def portfolio_detail(row_id):
    return jsonify(_get_or_404(PortfolioItem, row_id).to_dict())


@content.route('/portfolio/', methods=['POST'])
@admin_required
def create_portfolio():
    return _create(PortfolioItem, validate_portfolio_form)


@content.route('/portfolio/<int:row_id>', methods=['PUT'])
@admin_required
def update_portfolio(row_id):
    return _update(PortfolioItem, validate_portfolio_form, row_id)


@content.route('/portfolio/<int:row_id>', methods=['DELETE'])
@admin_required
def delete_portfolio(row_id):
    return _delete(PortfolioItem, row_id)
