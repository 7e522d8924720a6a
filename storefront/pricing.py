"""Subtotal, shipping and total for a list of order lines.

Everything is summed in ``Decimal`` and only rounded by :func:`money` when a
value is rendered, so multi-item carts never accumulate rounding error.
"""
from collections import namedtuple
from decimal import Decimal, ROUND_HALF_UP

FREE_SHIPPING_THRESHOLD = Decimal("600")
STANDARD_SHIPPING_FEE = Decimal("39")

CENT = Decimal("0.01")

Totals = namedtuple("Totals", "subtotal shipping total")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 599.99 as 599.99 instead of the binary float expansion
    return Decimal(str(value))


def money(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def shipping_for(subtotal) -> Decimal:
    subtotal = to_decimal(subtotal)
    if subtotal <= 0:
        return Decimal("0")
    if subtotal >= FREE_SHIPPING_THRESHOLD:
        return Decimal("0")
    return STANDARD_SHIPPING_FEE


def calculate(lines) -> Totals:
    """Price a cart.

    ``lines`` is any iterable of objects with ``unit_price`` and ``quantity``.
    Callers validate quantities and prices first; this never raises for
    finite non-negative input.
    """
    subtotal = sum((to_decimal(l.unit_price) * l.quantity for l in lines), Decimal("0"))
    shipping = shipping_for(subtotal)
    return Totals(subtotal, shipping, subtotal + shipping)
