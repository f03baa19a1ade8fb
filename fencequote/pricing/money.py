"""
Presentation rounding for money and quantities.

The engine and the store keep the full precision of the multiplication
chain. Values are rounded half-even to cents only when shown to a person
(API responses, HTML/CSV/PDF exports).
"""

from decimal import ROUND_HALF_EVEN, Decimal

CENTS = Decimal("0.01")


def to_cents(amount) -> Decimal:
    """Round a money value half-even to 2 decimal places."""
    if amount is None:
        return Decimal("0.00")
    return Decimal(amount).quantize(CENTS, rounding=ROUND_HALF_EVEN)


def fmt_money(amount) -> str:
    """Format as $X,XXX.XX"""
    return f"${to_cents(amount):,.2f}"


def fmt_quantity(quantity) -> str:
    """Format as X,XXX.XX"""
    return f"{to_cents(quantity):,.2f}"
