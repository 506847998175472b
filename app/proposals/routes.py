"""
app/proposals/routes.py
-----------------------
Proposal endpoints.

Admin (session, role=admin):
    GET    /api/admin/proposals/                 list (newest first), ?slug= / ?status=
    GET    /api/admin/proposals/<id>
    POST   /api/admin/proposals/                 create (slug generated if absent)
    PUT    /api/admin/proposals/<id>
    DELETE /api/admin/proposals/<id>
    GET    /api/admin/proposals/<id>/quote       stored cart + totals
    POST   /api/admin/proposals/<id>/toggle      toggle a catalog service in the stored cart
    POST   /api/admin/proposals/<id>/summary     regenerate the executive summary

Public:
    GET    /api/proposal/<slug>                  proposal + catalog + visitor quote
    GET    /api/proposal/<slug>/cart
    POST   /api/proposal/<slug>/cart/add
    POST   /api/proposal/<slug>/cart/remove
    POST   /api/proposal/<slug>/cart/clear
    POST   /api/proposal/<slug>/accept
    POST   /api/submit-proposal                  acceptance without a saved proposal

Every total in every response comes from calculate_totals().
"""
import re
from datetime import datetime

from flask import request, jsonify, session, current_app, abort
from sqlalchemy.exc import IntegrityError

from app import db
from app.proposals import proposals
from app.proposals.models import Proposal, PROPOSAL_STATUSES, generate_slug, unique_slug
from app.proposals.summary import generate_summary
from app.catalog.models import Service
from app.quote.cart import (
    Cart, CartItem, Slot, SLOT_CHOICES,
    add_item, remove_item, is_selected, toggle_item,
)
from app.quote.pricing import calculate_totals, build_summary
from app.quote import session as quote_session
from app.notifications.email import send_acceptance_emails, EmailError
from app.auth.decorators import admin_required
from app.utils.payload import json_body, text


_EMAIL = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')

EDITABLE_FIELDS = ('client_name', 'industry', 'core_problem', 'generated_summary')


# ── Helpers ───────────────────────────────────────────────────────

def _get_or_404(proposal_id) -> Proposal:
    proposal = db.session.get(Proposal, proposal_id)
    if proposal is None:
        abort(404, description='Proposal not found')
    return proposal


def _by_slug_or_404(slug) -> Proposal:
    proposal = Proposal.query.filter_by(slug=slug).first()
    if proposal is None:
        abort(404, description='Proposal not found')
    return proposal


def _active_service(value):
    """Look up an active catalog service by id; None if absent or inactive."""
    try:
        service = db.session.get(Service, int(value))
    except (TypeError, ValueError):
        return None
    if service is None or not service.is_active:
        return None
    return service


def _parse_cart(raw):
    """Decode a posted cart. Returns (cart, error)."""
    if raw is None:
        return Cart(), None
    if not isinstance(raw, dict):
        return None, 'selected_services must be an object.'
    try:
        return Cart.from_dict(raw), None
    except (KeyError, ValueError, TypeError, AttributeError) as e:
        return None, f'Invalid selected_services: {e}'


def _quote_payload(cart: Cart, open_cart: bool = False) -> dict:
    totals = calculate_totals(cart)
    return {
        'cart':       cart.to_dict(),
        'totals':     totals.to_dict(),
        'itemCount':  cart.item_count,
        'showTotals': totals.has_charges,
        'openCart':   open_cart,
    }


def _catalog_with_selection(cart: Cart, discount: bool) -> dict:
    """Active services grouped by slot, each flagged with is_selected()."""
    grouped = {slot: [] for slot in SLOT_CHOICES}
    services = (Service.query.filter_by(is_active=True)
                .order_by(Service.display_order.asc(), Service.id.asc()).all())
    for service in services:
        if service.type not in grouped:
            continue
        item = service.to_cart_item(discount=discount)
        entry = service.to_dict()
        entry['cart_item'] = item.to_dict()
        entry['selected']  = is_selected(item, cart)
        grouped[service.type].append(entry)
    return grouped


def _apply_fields(proposal: Proposal, data: dict) -> dict:
    """Copy editable fields; returns validation errors (nothing applied on error)."""
    errors = {}
    if 'client_name' in data and not text(data, 'client_name'):
        errors['client_name'] = 'Client name is required.'
    if 'status' in data and data['status'] not in PROPOSAL_STATUSES:
        errors['status'] = f"Status must be one of: {', '.join(PROPOSAL_STATUSES)}."
    for key in EDITABLE_FIELDS:
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            errors.setdefault(key, 'Must be text.')

    cart = None
    if 'selected_services' in data:
        cart, error = _parse_cart(data['selected_services'])
        if error:
            errors['selected_services'] = error

    if errors:
        return errors

    for key in EDITABLE_FIELDS:
        if key in data:
            value = data.get(key)
            setattr(proposal, key, value.strip() if isinstance(value, str) else value)
    if 'status' in data:
        proposal.status = data['status']
    if cart is not None:
        proposal.cart = cart
    return {}


# ── Admin: CRUD ───────────────────────────────────────────────────

@proposals.route('/api/admin/proposals/', methods=['GET'])
@admin_required
def index():
    slug = request.args.get('slug')
    if slug:
        return jsonify(_by_slug_or_404(slug).to_dict())

    query  = Proposal.query
    status = request.args.get('status')
    if status:
        query = query.filter_by(status=status)
    rows = query.order_by(Proposal.created_at.desc(), Proposal.id.desc()).all()
    return jsonify([p.to_dict() for p in rows])


@proposals.route('/api/admin/proposals/<int:proposal_id>', methods=['GET'])
@admin_required
def detail(proposal_id):
    return jsonify(_get_or_404(proposal_id).to_dict())


@proposals.route('/api/admin/proposals/', methods=['POST'])
@admin_required
def create():
    data = json_body()
    if not text(data, 'client_name'):
        return jsonify({'error': 'Invalid proposal',
                        'errors': {'client_name': 'Client name is required.'}}), 400

    proposal = Proposal(status='draft', created_by=session.get('user_id'))
    errors = _apply_fields(proposal, data)
    if errors:
        return jsonify({'error': 'Invalid proposal', 'errors': errors}), 400

    base = generate_slug(text(data, 'slug') or proposal.client_name)
    proposal.slug = unique_slug(base)
    if proposal.selected_services is None:
        proposal.cart = Cart()

    try:
        db.session.add(proposal)
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        current_app.logger.error(f"Proposal slug collision on {proposal.slug!r}")
        return jsonify({'error': 'A proposal with this slug already exists'}), 409

    current_app.logger.info(
        f"Proposal {proposal.id} ({proposal.slug}) created by user {session.get('user_id')}")
    return jsonify(proposal.to_dict()), 201


@proposals.route('/api/admin/proposals/<int:proposal_id>', methods=['PUT'])
@admin_required
def update(proposal_id):
    proposal = _get_or_404(proposal_id)
    data = json_body()

    errors = _apply_fields(proposal, data)
    if errors:
        db.session.rollback()
        return jsonify({'error': 'Invalid proposal', 'errors': errors}), 400

    if text(data, 'slug'):
        proposal.slug = unique_slug(generate_slug(text(data, 'slug')), exclude_id=proposal.id)

    db.session.commit()
    current_app.logger.info(f"Proposal {proposal.id} updated by user {session.get('user_id')}")
    return jsonify(proposal.to_dict())


@proposals.route('/api/admin/proposals/<int:proposal_id>', methods=['DELETE'])
@admin_required
def delete(proposal_id):
    proposal = _get_or_404(proposal_id)
    db.session.delete(proposal)
    db.session.commit()
    current_app.logger.info(f"Proposal {proposal_id} deleted by user {session.get('user_id')}")
    return '', 204


# ── Admin: builder ────────────────────────────────────────────────

@proposals.route('/api/admin/proposals/<int:proposal_id>/quote', methods=['GET'])
@admin_required
def admin_quote(proposal_id):
    proposal = _get_or_404(proposal_id)
    cart = proposal.cart
    payload = _quote_payload(cart)
    payload['services'] = _catalog_with_selection(cart, discount=False)
    return jsonify(payload)


@proposals.route('/api/admin/proposals/<int:proposal_id>/toggle', methods=['POST'])
@admin_required
def toggle_service(proposal_id):
    """Select / deselect one catalog service in the proposal's stored cart."""
    proposal = _get_or_404(proposal_id)
    data = json_body()

    service = _active_service(data.get('service_id'))
    if service is None:
        return jsonify({'error': 'Service not found'}), 404

    item = service.to_cart_item(discount=bool(data.get('discount', False)))
    proposal.cart = toggle_item(proposal.cart, item)
    db.session.commit()
    return jsonify(_quote_payload(proposal.cart))


@proposals.route('/api/admin/proposals/<int:proposal_id>/summary', methods=['POST'])
@admin_required
def regenerate_summary(proposal_id):
    proposal = _get_or_404(proposal_id)
    summary = generate_summary(proposal.client_name, proposal.industry or '', proposal.core_problem or '')
    if summary is None:
        return jsonify({'error': 'Summary generation is unavailable right now.'}), 503

    proposal.generated_summary = summary
    db.session.commit()
    current_app.logger.info(f"Summary regenerated for proposal {proposal.id}")
    return jsonify(proposal.to_dict())


# ── Public: proposal view & visitor cart ──────────────────────────

def _visitor_cart(proposal: Proposal) -> Cart:
    """Session cart for this proposal, seeded from the saved selection."""
    return quote_session.get_cart(proposal.slug, default=proposal.cart)


@proposals.route('/api/proposal/<slug>', methods=['GET'])
def public_view(slug):
    proposal = _by_slug_or_404(slug)
    cart = _visitor_cart(proposal)
    payload = _quote_payload(cart)
    payload['proposal'] = proposal.to_dict(include_contact=False)
    payload['services'] = _catalog_with_selection(cart, discount=True)
    return jsonify(payload)


@proposals.route('/api/proposal/<slug>/cart', methods=['GET'])
def public_cart(slug):
    proposal = _by_slug_or_404(slug)
    return jsonify(_quote_payload(_visitor_cart(proposal)))


@proposals.route('/api/proposal/<slug>/cart/add', methods=['POST'])
def cart_add(slug):
    """
    Body: {"service_id": 3}                      → catalog service (build tiers discounted)
      or: {"item": {...CartItem...}, "slot": "addon"}
    """
    proposal = _by_slug_or_404(slug)
    data = json_body()

    if data.get('service_id') is not None:
        service = _active_service(data['service_id'])
        if service is None:
            return jsonify({'error': 'Service not found'}), 404
        item = service.to_cart_item(discount=True)
    elif isinstance(data.get('item'), dict):
        try:
            item = CartItem.from_dict(data['item'])
        except (KeyError, ValueError, TypeError) as e:
            return jsonify({'error': f'Invalid item: {e}'}), 400
    else:
        return jsonify({'error': 'service_id or item is required'}), 400

    slot = data.get('slot', item.type.value)
    if slot != item.type.value:
        return jsonify({'error': f'{item.type.value} item cannot go in the {slot} slot'}), 400

    change = add_item(_visitor_cart(proposal), item, Slot(slot))
    quote_session.save_cart(proposal.slug, change.cart)
    return jsonify(_quote_payload(change.cart, open_cart=change.open_cart))


@proposals.route('/api/proposal/<slug>/cart/remove', methods=['POST'])
def cart_remove(slug):
    """Body: {"id": "12", "slot": "addon"}"""
    proposal = _by_slug_or_404(slug)
    data = json_body()

    slot = data.get('slot')
    if slot not in SLOT_CHOICES:
        return jsonify({'error': f"slot must be one of: {', '.join(SLOT_CHOICES)}"}), 400

    cart = remove_item(_visitor_cart(proposal), str(data.get('id', '')), Slot(slot))
    quote_session.save_cart(proposal.slug, cart)
    return jsonify(_quote_payload(cart))


@proposals.route('/api/proposal/<slug>/cart/clear', methods=['POST'])
def cart_clear(slug):
    proposal = _by_slug_or_404(slug)
    quote_session.save_cart(proposal.slug, Cart())
    return jsonify(_quote_payload(Cart()))


# ── Acceptance ────────────────────────────────────────────────────

def _validate_contact(data: dict, require_client: bool) -> dict:
    errors = {}
    if require_client and not text(data, 'clientName'):
        errors['clientName'] = 'Client name is required.'
    if not text(data, 'contactName'):
        errors['contactName'] = 'Contact name is required.'
    email = text(data, 'email')
    if not email:
        errors['email'] = 'Email is required.'
    elif not _EMAIL.match(email):
        errors['email'] = 'Email address looks invalid.'
    return errors


def _contact(data: dict) -> dict:
    return {
        'contactName': text(data, 'contactName'),
        'email':       text(data, 'email'),
        'phone':       text(data, 'phone'),
        'notes':       text(data, 'notes'),
    }


def _send(client_name: str, contact: dict, cart: Cart):
    """Email team + prospect. Returns (response, status) on failure, else ids."""
    summary = build_summary(cart)
    try:
        return send_acceptance_emails(client_name, contact, summary), None
    except EmailError as e:
        current_app.logger.error(f"Acceptance emails failed for {client_name!r}: {e}")
        return None, (jsonify({'error': 'Failed to send emails',
                               'message': 'Please try again in a moment.'}), 502)


def _accepted(ids) -> dict:
    team_id, client_id = ids
    return {
        'success':       True,
        'message':       'Proposal accepted successfully',
        'teamEmailId':   team_id,
        'clientEmailId': client_id,
    }


@proposals.route('/api/proposal/<slug>/accept', methods=['POST'])
def accept(slug):
    proposal = _by_slug_or_404(slug)
    data = json_body()

    errors = _validate_contact(data, require_client=False)
    if errors:
        return jsonify({'error': 'Missing required fields', 'errors': errors}), 400

    cart = _visitor_cart(proposal)
    if not calculate_totals(cart).has_charges:
        return jsonify({'error': 'Your quote is empty'}), 400

    contact = _contact(data)
    ids, failure = _send(proposal.client_name, contact, cart)
    if failure:
        return failure

    proposal.cart          = cart
    proposal.status        = 'accepted'
    proposal.contact_name  = contact['contactName']
    proposal.contact_email = contact['email']
    proposal.contact_phone = contact['phone'] or None
    proposal.notes         = contact['notes'] or None
    proposal.accepted_at   = datetime.utcnow()
    db.session.commit()
    quote_session.clear_cart(proposal.slug)

    current_app.logger.info(f"Proposal {proposal.slug} accepted by {contact['email']}")
    return jsonify(_accepted(ids))


@proposals.route('/api/submit-proposal', methods=['POST'])
def submit_proposal():
    """
    Acceptance for the standalone quote page (no saved proposal).
    Body: {clientName, contactName, email, phone?, notes?,
           proposalSummary: {pricingPlan, leasePlan, maintenancePlan, addons, ...}}
    Totals posted by the browser are ignored and recomputed here.
    """
    data = json_body()

    errors = _validate_contact(data, require_client=True)
    if errors:
        return jsonify({'error': 'Missing required fields', 'errors': errors}), 400

    cart, error = _parse_cart(data.get('proposalSummary') or data.get('cart'))
    if error:
        return jsonify({'error': error}), 400
    if not calculate_totals(cart).has_charges:
        return jsonify({'error': 'Your quote is empty'}), 400

    client_name = text(data, 'clientName')
    ids, failure = _send(client_name, _contact(data), cart)
    if failure:
        return failure

    current_app.logger.info(f"Standalone proposal accepted for {client_name!r}")
    return jsonify(_accepted(ids))
