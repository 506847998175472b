"""
app/catalog/routes.py
---------------------
Service catalog CRUD. Reads are public (the proposal page lists the
offerings); writes are admin-only.
"""
from flask import request, jsonify, current_app, abort, session

from app import db
from app.catalog import catalog
from app.catalog.models import Service, SERVICE_TYPES
from app.catalog.validators import validate_service_form, to_int
from app.auth.decorators import admin_required, is_admin_session
from app.utils.payload import json_body, text


def _get_or_404(service_id) -> Service:
    service = db.session.get(Service, service_id)
    if service is None:
        abort(404, description='Service not found')
    return service


def _apply(service: Service, data: dict) -> None:
    """Copy validated fields from `data` onto `service`."""
    if 'name' in data:
        service.name = text(data, 'name')
    if 'type' in data:
        service.type = data['type']
    if 'base_price' in data:
        service.base_price = text(data, 'base_price')
    if 'description' in data:
        service.description = text(data, 'description')
    if 'features' in data:
        service.features_list = data['features']
    if 'category' in data:
        service.category = text(data, 'category')
    if 'display_order' in data:
        service.display_order = to_int(data['display_order'])
    if 'is_active' in data:
        service.is_active = bool(data['is_active'])
    if 'metadata' in data:
        service.metadata_dict = data['metadata']


# ── List ──────────────────────────────────────────────────────────

@catalog.route('/', methods=['GET'])
def index():
    query = Service.query.order_by(Service.display_order.asc(), Service.id.asc())

    service_type = request.args.get('type')
    if service_type:
        if service_type not in [t[0] for t in SERVICE_TYPES]:
            return jsonify({'error': f'Unknown service type: {service_type}'}), 400
        query = query.filter_by(type=service_type)

    if not is_admin_session():
        query = query.filter_by(is_active=True)

    return jsonify([s.to_dict() for s in query.all()])


@catalog.route('/<int:service_id>', methods=['GET'])
def detail(service_id):
    service = _get_or_404(service_id)
    if not service.is_active and not is_admin_session():
        abort(404, description='Service not found')
    return jsonify(service.to_dict())


# ── Create / Update / Delete ──────────────────────────────────────

@catalog.route('/', methods=['POST'])
@admin_required
def create():
    data = json_body()
    errors = validate_service_form(data)
    if errors:
        return jsonify({'error': 'Invalid service', 'errors': errors}), 400

    service = Service(is_active=True)
    _apply(service, data)
    db.session.add(service)
    db.session.commit()

    current_app.logger.info(
        f"Service {service.id} '{service.name}' created by user {session.get('user_id')}")
    return jsonify(service.to_dict()), 201


@catalog.route('/<int:service_id>', methods=['PUT'])
@admin_required
def update(service_id):
    service = _get_or_404(service_id)
    data = json_body()
    errors = validate_service_form(data, partial=True)
    if errors:
        return jsonify({'error': 'Invalid service', 'errors': errors}), 400

    _apply(service, data)
    db.session.commit()
    current_app.logger.info(f"Service {service.id} updated by user {session.get('user_id')}")
    return jsonify(service.to_dict())


@catalog.route('/<int:service_id>', methods=['DELETE'])
@admin_required
def delete(service_id):
    service = _get_or_404(service_id)
    db.session.delete(service)
    db.session.commit()
    current_app.logger.info(f"Service {service_id} deleted by user {session.get('user_id')}")
    return '', 204
