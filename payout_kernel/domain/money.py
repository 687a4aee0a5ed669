"""
Money rounding.

The only sanctioned rounding for ledger amounts.  Amounts are Decimal end
to end; floats never enter a calculation.
"""

from decimal import ROUND_HALF_UP, Decimal

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP
HUNDRED = Decimal("100")


def money_quantum(decimal_places: int = MONEY_DECIMAL_PLACES) -> Decimal:
    """Return the smallest representable unit, e.g. Decimal('0.01')."""
    return Decimal(1).scaleb(-decimal_places)


def round_money(amount: Decimal, decimal_places: int = MONEY_DECIMAL_PLACES) -> Decimal:
    """Round a monetary amount to the settlement precision (ROUND_HALF_UP)."""
    return Decimal(amount).quantize(money_quantum(decimal_places), rounding=DEFAULT_ROUNDING)
