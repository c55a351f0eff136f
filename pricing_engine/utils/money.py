"""
Decimal money helpers.

All monetary math in the engine is done with Decimal and rounded
half-up to the currency's minor unit once per pipeline stage.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

ZERO = Decimal("0")
HUNDRED = Decimal("100")


class MoneyOverflowError(ArithmeticError):
    """Raised when an amount has too many digits to round to the minor unit."""


def to_decimal(value: Any) -> Optional[Decimal]:
    """
    Convert a raw value to Decimal without going through float.

    Returns None for booleans, blanks and anything unparseable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, float):
        value = repr(value)
    text = str(value).strip()
    if not text:
        return None
    try:
        result = Decimal(text)
    except InvalidOperation:
        return None
    return result if result.is_finite() else None


def round_money(amount: Decimal, places: int = 2) -> Decimal:
    """Round to the minor unit using round-half-up."""
    quantum = Decimal(1).scaleb(-places)
    try:
        return amount.quantize(quantum, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise MoneyOverflowError(f"Amount {amount} is too large to price") from e


def percent_of(amount: Decimal, percentage: Decimal) -> Decimal:
    """Unrounded percentage of an amount (percentage=10 means 10%)."""
    return amount * percentage / HUNDRED


def clamp(
    amount: Decimal,
    lower: Optional[Decimal] = None,
    upper: Optional[Decimal] = None,
) -> Decimal:
    """Clamp an amount to optional inclusive bounds."""
    if lower is not None and amount < lower:
        return lower
    if upper is not None and amount > upper:
        return upper
    return amount
