"""
app/catalog/models.py
---------------------
Service: one sellable offering in the proposal catalog.

base_price is the staff-authored display string ("$3,000", "$199/mo",
"$75/hr"). It becomes Money only when converted to a CartItem.
"""
import json
from datetime import datetime

from app import db
from app.quote.cart import CartItem, Slot
from app.quote.money import Charge, classify_price
from app.quote.pricing import apply_discount, CURRENT_CLIENT_DISCOUNT


SERVICE_TYPES = [
    ('pricing',     'Website Build (one-time)'),
    ('lease',       'Website Lease (monthly)'),
    ('maintenance', 'Maintenance Plan (monthly)'),
    ('addon',       'Add-on'),
]


class Service(db.Model):
    __tablename__ = 'services'

    id            = db.Column(db.Integer, primary_key=True)
    name          = db.Column(db.String(200), nullable=False)
    type          = db.Column(db.String(20),  nullable=False, index=True)   # see SERVICE_TYPES
    base_price    = db.Column(db.String(100), nullable=False)
    description   = db.Column(db.Text,        nullable=True)
    features      = db.Column(db.Text,        nullable=False, default='[]')  # JSON list
    category      = db.Column(db.String(100), nullable=True)
    display_order = db.Column(db.Integer,     nullable=False, default=0)
    is_active     = db.Column(db.Boolean,     nullable=False, default=True)
    extra         = db.Column('metadata', db.Text, nullable=False, default='{}')  # JSON dict
    created_at    = db.Column(db.DateTime,    nullable=False, default=datetime.utcnow)
    updated_at    = db.Column(db.DateTime,    nullable=False, default=datetime.utcnow,
                              onupdate=datetime.utcnow)

    # ── JSON helpers ──────────────────────────────────────────────

    @property
    def features_list(self) -> list:
        try:
            return json.loads(self.features or '[]')
        except (ValueError, TypeError):
            return []

    @features_list.setter
    def features_list(self, value):
        self.features = json.dumps(list(value or []))

    @property
    def metadata_dict(self) -> dict:
        try:
            return json.loads(self.extra or '{}')
        except (ValueError, TypeError):
            return {}

    @metadata_dict.setter
    def metadata_dict(self, value):
        self.extra = json.dumps(dict(value or {}))

    # ── Cart conversion ───────────────────────────────────────────

    def to_cart_item(self, discount: bool = False) -> CartItem:
        """
        Build the CartItem a prospect or admin selects.
        Plans other than build tiers recur monthly; addons recur only when
        their price says so. Build tiers can carry the current-client
        discount, baked into the price string here and nowhere else.
        """
        slot  = Slot(self.type)
        price = self.base_price
        if slot is Slot.pricing and discount:
            price = apply_discount(price, CURRENT_CLIENT_DISCOUNT)

        if slot is Slot.addon:
            recurring = classify_price(price) is Charge.MONTHLY
        else:
            recurring = slot is not Slot.pricing

        return CartItem(
            id               = str(self.id),
            name             = self.name,
            price            = price,
            type             = slot,
            recurring        = recurring,
            recurring_period = 'monthly' if recurring else None,
        )

    def to_dict(self) -> dict:
        return {
            'id':            self.id,
            'name':          self.name,
            'type':          self.type,
            'base_price':    self.base_price,
            'description':   self.description,
            'features':      self.features_list,
            'category':      self.category,
            'display_order': self.display_order,
            'is_active':     self.is_active,
            'metadata':      self.metadata_dict,
            'created_at':    self.created_at.isoformat() if self.created_at else None,
            'updated_at':    self.updated_at.isoformat() if self.updated_at else None,
        }

    @property
    def type_label(self) -> str:
        return dict(SERVICE_TYPES).get(self.type, self.type)

    def __repr__(self):
        return f'<Service {self.name!r} {self.type} {self.base_price!r}>'
