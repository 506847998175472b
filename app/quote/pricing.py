"""
app/quote/pricing.py
--------------------
Pure quote-pricing calculator. Every surface that shows totals (public
proposal page, admin builder, acceptance emails) calls calculate_totals();
none of them add prices on their own.

Rules
─────
1. pricingPlan                      → one-time
2. leasePlan, maintenancePlan       → monthly
3. addons by price suffix:
       /mo, /month                  → monthly
       /hr, /page                   → per-unit, quoted separately (not summed)
       anything else                → one-time
4. Any build or lease plan adds the flat hosting fee to monthly.
5. annual = monthly × 12, grand (first year) = one-time + annual.
6. A build plan's price is split 50% down / 50% on
   completion, each half rounded half-up on its own.

No DB reads, no Flask imports.
"""
from __future__ import annotations
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from app.quote.cart import Cart
from app.quote.money import Money, Charge, parse_amount


HOSTING_FEE             = Money.whole(50)   # per month, same for every tier
CURRENT_CLIENT_DISCOUNT = 10                # percent off build tiers
MONTHS_PER_YEAR         = 12


@dataclass(frozen=True)
class PaymentSchedule:
    down_payment:  Money
    on_completion: Money

    def to_dict(self) -> dict:
        return {
            'downPayment':  self.down_payment.to_number(),
            'onCompletion': self.on_completion.to_number(),
        }


@dataclass(frozen=True)
class Totals:
    one_time_total:   Money = Money()
    monthly_total:    Money = Money()
    annual_total:     Money = Money()
    grand_total:      Money = Money()
    hosting_fee:      Money = Money()
    payment_schedule: Optional[PaymentSchedule] = None

    @property
    def has_charges(self) -> bool:
        """False when there is nothing to show (both buckets zero)."""
        return bool(self.one_time_total) or bool(self.monthly_total)

    def to_dict(self) -> dict:
        return {
            'oneTimeTotal':    self.one_time_total.to_number(),
            'monthlyTotal':    self.monthly_total.to_number(),
            'annualTotal':     self.annual_total.to_number(),
            'grandTotal':      self.grand_total.to_number(),
            'hostingFee':      self.hosting_fee.to_number(),
            'paymentSchedule': self.payment_schedule.to_dict() if self.payment_schedule else None,
        }


def calculate_totals(cart: Cart) -> Totals:
    """Derive all totals from `cart`. An empty cart gives all zeros."""
    one_time = Money.zero()
    monthly  = Money.zero()

    hosting = HOSTING_FEE if cart.has_plan else Money.zero()
    monthly += hosting

    if cart.pricing_plan:
        one_time += cart.pricing_plan.amount
    if cart.lease_plan:
        monthly += cart.lease_plan.amount
    if cart.maintenance_plan:
        monthly += cart.maintenance_plan.amount

    for addon in cart.addons:
        if addon.charge is Charge.MONTHLY:
            monthly += addon.amount
        elif addon.charge is Charge.ONE_TIME:
            one_time += addon.amount
        # PER_UNIT: quoted separately

    annual = monthly * MONTHS_PER_YEAR

    # Only the build plan is split; one-time addons are billed on top
    schedule = None
    if cart.pricing_plan and cart.pricing_plan.amount:
        half = cart.pricing_plan.amount.half_rounded()
        schedule = PaymentSchedule(down_payment=half, on_completion=half)

    return Totals(
        one_time_total   = one_time,
        monthly_total    = monthly,
        annual_total     = annual,
        grand_total      = one_time + annual,
        hosting_fee      = hosting,
        payment_schedule = schedule,
    )


def apply_discount(price: str, percent: int = CURRENT_CLIENT_DISCOUNT) -> str:
    """
    Discount a build-tier display price, e.g. "$4,000" → "$3,600".
    Applied once, when the CartItem is created; the calculator only ever
    sees the discounted string.
    """
    amount     = Decimal(parse_amount(price))
    discounted = (amount * Decimal(100 - percent) / Decimal(100)).quantize(
        Decimal('1'), rounding=ROUND_HALF_UP)
    return Money.whole(int(discounted)).format()


def build_summary(cart: Cart) -> dict:
    """Acceptance payload: the cart's four slots plus its totals."""
    data = cart.to_dict()
    data['totals'] = calculate_totals(cart).to_dict()
    return data
