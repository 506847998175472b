"""
app/quote/money.py
------------------
Money value type and the legacy price-string shim.

Catalog prices are authored by staff as free text ("$3,000", "$199/mo",
"$75/hr", "$250–$500"). Those strings are kept for display, but every
calculation runs on Money, which is produced once when a CartItem is built.

Amounts are integer minor units (cents) so no float ever enters a total.
"""
from __future__ import annotations
import enum
import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP


_DIGITS  = re.compile(r'([0-9]+)')
_STRIP   = re.compile(r'[$,]')
CENTS    = 100


class Charge(enum.Enum):
    """How a price string bills."""
    ONE_TIME = 'one_time'
    MONTHLY  = 'monthly'
    PER_UNIT = 'per_unit'   # quoted separately, never summed


# ── Legacy string shim ────────────────────────────────────────────

def parse_amount(price) -> int:
    """
    Extract the first whole number from a display price.

        "$3,000"     → 3000
        "$199/mo"    → 199
        "$250–$500"  → 250   (ranges resolve to the lower bound)
        "" / "TBD"   → 0

    Never raises: malformed input degrades to 0.
    """
    if not price or not isinstance(price, str):
        return 0
    match = _DIGITS.search(_STRIP.sub('', price).strip())
    return int(match.group(1)) if match else 0


def classify_price(price) -> Charge:
    """Bucket a display price by its suffix."""
    text = price if isinstance(price, str) else ''
    if '/mo' in text or '/month' in text:
        return Charge.MONTHLY
    if '/hr' in text or '/page' in text:
        return Charge.PER_UNIT
    return Charge.ONE_TIME


# ── Money ─────────────────────────────────────────────────────────

@dataclass(frozen=True, order=True)
class Money:
    cents:    int = 0
    currency: str = 'USD'

    @classmethod
    def whole(cls, units: int, currency: str = 'USD') -> 'Money':
        return cls(int(units) * CENTS, currency)

    @classmethod
    def zero(cls, currency: str = 'USD') -> 'Money':
        return cls(0, currency)

    @classmethod
    def from_price(cls, price, currency: str = 'USD') -> 'Money':
        """Build Money from a legacy display string (see parse_amount)."""
        return cls.whole(parse_amount(price), currency)

    # ── Arithmetic ────────────────────────────────────────────────
    def __add__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            return NotImplemented
        assert other.currency == self.currency, 'currency mismatch'
        return Money(self.cents + other.cents, self.currency)

    def __mul__(self, factor: int) -> 'Money':
        if not isinstance(factor, int):
            return NotImplemented
        return Money(self.cents * factor, self.currency)

    __rmul__ = __mul__

    def __bool__(self) -> bool:
        return self.cents != 0

    def half_rounded(self) -> 'Money':
        """50% of this amount, rounded half-up to the nearest whole unit."""
        half = (self.units / Decimal(2)).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
        return Money.whole(int(half), self.currency)

    # ── Projections ───────────────────────────────────────────────
    @property
    def units(self) -> Decimal:
        return Decimal(self.cents) / Decimal(CENTS)

    def to_number(self):
        """JSON-friendly amount: int when whole, else a 2dp float."""
        if self.cents % CENTS == 0:
            return self.cents // CENTS
        return float(self.units.quantize(Decimal('0.01')))

    def format(self) -> str:
        """Display form, e.g. "$3,600" or "$12.50"."""
        if self.cents % CENTS == 0:
            return f'${self.cents // CENTS:,}'
        return f'${self.units:,.2f}'

    def __str__(self) -> str:
        return self.format()
