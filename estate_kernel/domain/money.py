"""
Money -- currency rounding helpers.

Responsibility:
    Centralizes the two rounding rules of the leasing engine so that every
    calculator uses identical precision:

    * ``round_money``  -- ROUND_HALF_UP to the currency unit (tax, display).
    * ``floor_money``  -- ROUND_FLOOR to the currency unit (schedule slices).

Invariants enforced:
    No floats anywhere.  Both helpers reject ``float`` input so that binary
    floating point never leaks into a Decimal calculation.
"""

from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal

MONEY_DECIMAL_PLACES = 2

# Smallest currency unit
CENT = Decimal("0.01")


def _quantum(decimal_places: int) -> Decimal:
    return Decimal(1).scaleb(-decimal_places)


def round_money(value: Decimal, decimal_places: int = MONEY_DECIMAL_PLACES) -> Decimal:
    """
    Round a monetary value half-up to ``decimal_places``.

    Raises:
        TypeError: If value is a float.
    """
    if isinstance(value, float):
        raise TypeError("Monetary values must be Decimal, not float")
    return Decimal(value).quantize(_quantum(decimal_places), rounding=ROUND_HALF_UP)


def floor_money(value: Decimal, decimal_places: int = MONEY_DECIMAL_PLACES) -> Decimal:
    """
    Truncate a monetary value toward negative infinity at ``decimal_places``.

    Raises:
        TypeError: If value is a float.
    """
    if isinstance(value, float):
        raise TypeError("Monetary values must be Decimal, not float")
    return Decimal(value).quantize(_quantum(decimal_places), rounding=ROUND_FLOOR)


def to_decimal(value: Decimal | int | str) -> Decimal:
    """Coerce an int or string amount to Decimal, refusing floats."""
    if isinstance(value, float):
        raise TypeError("Monetary values must be Decimal, not float")
    return value if isinstance(value, Decimal) else Decimal(value)
