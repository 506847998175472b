"""
app/quote
---------
Cart state model and pricing calculator for proposal quotes.
Pure Python apart from session.py, which binds a cart to the Flask session.
"""
from app.quote.money import Money, Charge, parse_amount, classify_price          # noqa: F401
from app.quote.cart import (                                                      # noqa: F401
    Cart, CartItem, CartChange, Slot, SLOT_CHOICES,
    add_item, remove_item, is_selected, toggle_item,
)
from app.quote.pricing import (                                                   # noqa: F401
    Totals, PaymentSchedule, HOSTING_FEE, CURRENT_CLIENT_DISCOUNT,
    calculate_totals, apply_discount, build_summary,
)
