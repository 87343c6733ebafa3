"""Conversion between decimal amounts and stored minor units.

Amounts are persisted in the smallest currency unit (cents, piastres) as
integers. The API and providers speak decimals.
"""

from decimal import ROUND_HALF_UP, Decimal

MINOR_UNIT = Decimal("0.01")


def to_minor_units(amount: Decimal) -> int:
    """Convert a decimal amount to minor units (e.g., 19.99 -> 1999)."""
    return int((amount / MINOR_UNIT).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> Decimal:
    """Convert minor units back to a decimal amount (e.g., 1999 -> 19.99)."""
    return (Decimal(amount) * MINOR_UNIT).quantize(MINOR_UNIT)
