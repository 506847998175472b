"""
app/quote/cart.py
-----------------
Immutable cart model for one proposal quote.

Wire structure (stored verbatim in proposals.selected_services):
{
    "pricingPlan":     CartItem | null,   ← one-time build plan
    "leasePlan":       CartItem | null,   ← monthly lease plan
    "maintenancePlan": CartItem | null,
    "addons":          [CartItem, ...]    ← unique by id, display order kept
}

CartItem on the wire:
    {"id", "name", "price", "type", "recurring", "recurringPeriod"?}

pricingPlan and leasePlan are two ways to buy the same website, so they
are mutually exclusive. Every mutator returns a new Cart; nothing here
writes in place.
"""
from __future__ import annotations
import enum
from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

from app.quote.money import Money, Charge, classify_price


class Slot(enum.Enum):
    pricing     = 'pricing'
    lease       = 'lease'
    maintenance = 'maintenance'
    addon       = 'addon'


SLOT_CHOICES = [s.value for s in Slot]

RECURRING_PERIODS = ('monthly', 'yearly')


def _slot(value) -> Slot:
    return value if isinstance(value, Slot) else Slot(value)


def _in_slot(item: 'CartItem', slot: Slot) -> 'CartItem':
    if item.type is not slot:
        raise ValueError(f'{item.type.value} item stored in the {slot.value} slot')
    return item


# ── CartItem ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class CartItem:
    """A single selectable offering. Money and charge kind are derived once."""
    id:               str
    name:             str
    price:            str
    type:             Slot
    recurring:        bool = False
    recurring_period: Optional[str] = None

    amount: Money  = field(init=False, compare=False, repr=False)
    charge: Charge = field(init=False, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, 'id', str(self.id))
        object.__setattr__(self, 'type', _slot(self.type))
        object.__setattr__(self, 'amount', Money.from_price(self.price))
        object.__setattr__(self, 'charge', classify_price(self.price))
        if not self.recurring:
            object.__setattr__(self, 'recurring_period', None)

    def to_dict(self) -> dict:
        data = {
            'id':        self.id,
            'name':      self.name,
            'price':     self.price,
            'type':      self.type.value,
            'recurring': self.recurring,
        }
        if self.recurring_period:
            data['recurringPeriod'] = self.recurring_period
        return data

    @classmethod
    def from_dict(cls, data: dict) -> 'CartItem':
        period = data.get('recurringPeriod')
        return cls(
            id               = data['id'],
            name             = data.get('name', ''),
            price            = data.get('price') or '',
            type             = data['type'],
            recurring        = bool(data.get('recurring', False)),
            recurring_period = period if period in RECURRING_PERIODS else None,
        )


# ── Cart ──────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Cart:
    pricing_plan:     Optional[CartItem] = None
    lease_plan:       Optional[CartItem] = None
    maintenance_plan: Optional[CartItem] = None
    addons:           Tuple[CartItem, ...] = ()

    @property
    def item_count(self) -> int:
        plans = (self.pricing_plan, self.lease_plan, self.maintenance_plan)
        return sum(1 for p in plans if p is not None) + len(self.addons)

    @property
    def is_empty(self) -> bool:
        return self.item_count == 0

    @property
    def has_plan(self) -> bool:
        """True when a build or lease plan is present (hosting applies)."""
        return self.pricing_plan is not None or self.lease_plan is not None

    def to_dict(self) -> dict:
        return {
            'pricingPlan':     self.pricing_plan.to_dict() if self.pricing_plan else None,
            'leasePlan':       self.lease_plan.to_dict() if self.lease_plan else None,
            'maintenancePlan': self.maintenance_plan.to_dict() if self.maintenance_plan else None,
            'addons':          [a.to_dict() for a in self.addons],
        }

    @classmethod
    def from_dict(cls, data) -> 'Cart':
        """
        Hydrate a persisted selected_services structure.
        Missing keys or None give an empty cart. If both plans were stored
        (hand-edited rows), the lease plan is dropped to keep exclusivity.
        Raises ValueError when an item sits in a slot that does not match
        its type.
        """
        if not data:
            return cls()

        def item(key, slot):
            raw = data.get(key)
            return _in_slot(CartItem.from_dict(raw), slot) if raw else None

        pricing = item('pricingPlan', Slot.pricing)
        lease   = item('leasePlan', Slot.lease) if pricing is None else None

        addons, seen = [], set()
        for raw in data.get('addons') or []:
            addon = _in_slot(CartItem.from_dict(raw), Slot.addon)
            if addon.id not in seen:
                seen.add(addon.id)
                addons.append(addon)

        return cls(
            pricing_plan     = pricing,
            lease_plan       = lease,
            maintenance_plan = item('maintenancePlan', Slot.maintenance),
            addons           = tuple(addons),
        )


@dataclass(frozen=True)
class CartChange:
    """
    Result of add_item. open_cart tells the presenting surface to reveal
    the cart panel; the model itself has no UI side effects.
    """
    cart:      Cart
    open_cart: bool = True


# ── Mutators ──────────────────────────────────────────────────────

def add_item(cart: Cart, item: CartItem, slot) -> CartChange:
    """
    Place `item` in `slot`.
      pricing     → set pricing plan, clear lease plan
      lease       → set lease plan, clear pricing plan
      maintenance → overwrite maintenance plan
      addon       → append unless an addon with the same id exists
    """
    slot = _slot(slot)
    assert item.type is slot, f'{item.type.value} item routed to {slot.value} slot'

    if slot is Slot.pricing:
        new = replace(cart, pricing_plan=item, lease_plan=None)
    elif slot is Slot.lease:
        new = replace(cart, lease_plan=item, pricing_plan=None)
    elif slot is Slot.maintenance:
        new = replace(cart, maintenance_plan=item)
    elif any(a.id == item.id for a in cart.addons):
        new = cart
    else:
        new = replace(cart, addons=cart.addons + (item,))

    return CartChange(cart=new, open_cart=True)


def remove_item(cart: Cart, item_id: str, slot) -> Cart:
    """Clear a plan slot (id not needed), or drop the addon with `item_id`."""
    slot = _slot(slot)
    if slot is Slot.pricing:
        return replace(cart, pricing_plan=None)
    if slot is Slot.lease:
        return replace(cart, lease_plan=None)
    if slot is Slot.maintenance:
        return replace(cart, maintenance_plan=None)
    return replace(cart, addons=tuple(a for a in cart.addons if a.id != str(item_id)))


def is_selected(item: CartItem, cart: Cart) -> bool:
    """True if an item with the same id occupies the item's slot."""
    if item.type is Slot.pricing:
        return cart.pricing_plan is not None and cart.pricing_plan.id == item.id
    if item.type is Slot.lease:
        return cart.lease_plan is not None and cart.lease_plan.id == item.id
    if item.type is Slot.maintenance:
        return cart.maintenance_plan is not None and cart.maintenance_plan.id == item.id
    return any(a.id == item.id for a in cart.addons)


def toggle_item(cart: Cart, item: CartItem) -> Cart:
    """Deselect when already selected, otherwise add (admin proposal builder)."""
    if is_selected(item, cart):
        return remove_item(cart, item.id, item.type)
    return add_item(cart, item, item.type).cart
