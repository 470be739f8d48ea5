from decimal import ROUND_HALF_UP, Decimal
from typing import Union

CENT = Decimal("0.01")


def to_decimal(value: Union[Decimal, int, float, str, None]) -> Decimal:
    if value is None:
        return Decimal("0.00")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def format_money(value) -> str:
    """Render an amount with exactly two decimal places, e.g. ``"20.00"``."""
    return str(to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))
