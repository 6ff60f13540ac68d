"""Monetary amounts: Decimal, two places, half-up."""
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

Amount = Union[Decimal, int, float, str]


def money(value: Amount) -> Decimal:
    """Coerce to Decimal and round to cents. Floats go through str() to avoid binary noise."""
    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
