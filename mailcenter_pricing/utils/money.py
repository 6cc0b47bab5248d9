"""Decimal money helpers - all amounts are USD with cent precision"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Union[Decimal, int, str, float]) -> Decimal:
    """Quantize to cents. Floats go through str() to avoid binary artifacts."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal) -> str:
    """Render as a plain two-place amount, e.g. '45.00'"""
    return str(to_money(value))


def format_currency(value: Decimal) -> str:
    """Render as USD, e.g. '$1,234.50' or '-$1.00'"""
    amount = to_money(value)
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"
