"""
app/quote/session.py
--------------------
Keeps each visitor's quote cart in the Flask session, one cart per
proposal slug:

session['quotes'] = {
    "<slug>": { ...Cart.to_dict()... },
    ...
}

The session only stores the wire dict; callers always get a Cart value
back and hand a new Cart to save_cart() after mutating.
"""
from typing import Optional

from flask import session

from app.quote.cart import Cart


QUOTES_KEY = 'quotes'


def _quotes() -> dict:
    return session.get(QUOTES_KEY, {})


def has_cart(slug: str) -> bool:
    return slug in _quotes()


def get_cart(slug: str, default: Optional[Cart] = None) -> Cart:
    """Return the session cart for `slug`, else `default` (or an empty cart)."""
    raw = _quotes().get(slug)
    if raw is None:
        return default if default is not None else Cart()
    return Cart.from_dict(raw)


def save_cart(slug: str, cart: Cart) -> None:
    quotes = _quotes()
    quotes[slug] = cart.to_dict()
    session[QUOTES_KEY] = quotes
    session.modified    = True


def clear_cart(slug: str) -> None:
    """Forget the visitor's cart (after acceptance or an explicit reset)."""
    quotes = _quotes()
    quotes.pop(slug, None)
    session[QUOTES_KEY] = quotes
    session.modified    = True
