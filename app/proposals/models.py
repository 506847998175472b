"""
app/proposals/models.py
-----------------------
Proposal: one prospect-facing quote page, addressed by slug.

selected_services holds the cart exactly as Cart.to_dict() produces it
(pricingPlan / leasePlan / maintenancePlan / addons) and is never
reshaped on the way in or out.
"""
import json
import re
from datetime import datetime

from app import db
from app.quote.cart import Cart


PROPOSAL_STATUSES = ['draft', 'sent', 'accepted', 'declined', 'archived']

_NON_SLUG = re.compile(r'[^a-z0-9]+')


def generate_slug(client_name: str) -> str:
    """'CBT Baltimore, LLC' → 'cbt-baltimore-llc'."""
    return _NON_SLUG.sub('-', (client_name or '').lower()).strip('-')


def unique_slug(base: str, exclude_id: int = None) -> str:
    """Append -1, -2, … to `base` until no other proposal uses it."""
    base      = base or 'proposal'
    candidate = base
    counter   = 1
    while True:
        query = Proposal.query.filter_by(slug=candidate)
        if exclude_id is not None:
            query = query.filter(Proposal.id != exclude_id)
        if query.first() is None:
            return candidate
        candidate = f'{base}-{counter}'
        counter  += 1


class Proposal(db.Model):
    __tablename__ = 'proposals'

    id                = db.Column(db.Integer, primary_key=True)
    slug              = db.Column(db.String(200), unique=True, nullable=False, index=True)
    client_name       = db.Column(db.String(200), nullable=False)
    industry          = db.Column(db.String(200), nullable=True)
    core_problem      = db.Column(db.Text,        nullable=True)
    generated_summary = db.Column(db.Text,        nullable=True)
    status            = db.Column(db.String(20),  nullable=False, default='draft', index=True)
    selected_services = db.Column(db.Text,        nullable=False, default='{}')   # JSON cart

    # Filled on acceptance
    contact_name      = db.Column(db.String(200), nullable=True)
    contact_email     = db.Column(db.String(200), nullable=True)
    contact_phone     = db.Column(db.String(50),  nullable=True)
    notes             = db.Column(db.Text,        nullable=True)
    accepted_at       = db.Column(db.DateTime,    nullable=True)

    created_by        = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)
    created_at        = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at        = db.Column(db.DateTime, nullable=False, default=datetime.utcnow,
                                  onupdate=datetime.utcnow)

    creator = db.relationship('User', lazy='select', foreign_keys=[created_by])

    # ── Cart ──────────────────────────────────────────────────────

    @property
    def selected_services_dict(self) -> dict:
        try:
            return json.loads(self.selected_services or '{}') or {}
        except (ValueError, TypeError):
            return {}

    @selected_services_dict.setter
    def selected_services_dict(self, value):
        self.selected_services = json.dumps(value or {})

    @property
    def cart(self) -> Cart:
        return Cart.from_dict(self.selected_services_dict)

    @cart.setter
    def cart(self, value: Cart):
        self.selected_services = json.dumps(value.to_dict())

    # ── Serialisation ─────────────────────────────────────────────

    def to_dict(self, include_contact: bool = True) -> dict:
        data = {
            'id':                self.id,
            'slug':              self.slug,
            'client_name':       self.client_name,
            'industry':          self.industry,
            'core_problem':      self.core_problem,
            'generated_summary': self.generated_summary,
            'status':            self.status,
            'selected_services': self.selected_services_dict,
            'created_by':        self.created_by,
            'created_at':        self.created_at.isoformat() if self.created_at else None,
            'updated_at':        self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_contact:
            data.update({
                'contact_name':  self.contact_name,
                'contact_email': self.contact_email,
                'contact_phone': self.contact_phone,
                'notes':         self.notes,
                'accepted_at':   self.accepted_at.isoformat() if self.accepted_at else None,
            })
        return data

    def __repr__(self):
        return f'<Proposal {self.slug!r} {self.status}>'
