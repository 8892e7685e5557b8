"""Fixed-point money helpers. Amounts are ``Decimal`` with two places."""

from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")


def to_money(value) -> Decimal:
    """Quantize a price or amount to cents.

    Floats go through ``str`` first so ``25.1`` becomes ``Decimal("25.10")``
    rather than its binary expansion.
    """
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def line_total(unit_price: Decimal, quantity: int) -> Decimal:
    return to_money(unit_price * quantity)
