"""
Money representation.

DESIGN DECISION: Amounts are held as integer minor units (paise/cents).
Adding and removing the same amount any number of times returns the
balance to exactly where it started, which a binary float cannot promise.

Decimals are only used at the edges: parsing caller input and
formatting for display.
"""

from decimal import Decimal, InvalidOperation
from typing import Union

MINOR_UNITS = 2

AmountInput = Union[Decimal, int, float, str]


def to_minor_units(value: AmountInput) -> int:
    """
    Convert a caller-supplied amount into integer minor units.

    Floats go through str() first so 0.1 means 0.10, not
    0.1000000000000000055511151231257827.

    Raises:
        ValueError: non-numeric, non-finite, out of range, or more than
            two decimal places
    """
    if isinstance(value, bool):
        raise ValueError(f"Not an amount: {value!r}")

    try:
        if isinstance(value, Decimal):
            amount = value
        elif isinstance(value, float):
            amount = Decimal(str(value))
        else:
            amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Not an amount: {value!r}")

    if not amount.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")

    try:
        scaled = amount.scaleb(MINOR_UNITS)
        whole = scaled.to_integral_value()
    except ArithmeticError:
        # decimal.Overflow and friends for absurd exponents
        raise ValueError(f"Amount out of range: {value!r}")

    if scaled != whole:
        raise ValueError(
            f"Amount has more than {MINOR_UNITS} decimal places: {value!r}"
        )
    return int(scaled)


def from_minor_units(minor: int) -> Decimal:
    """Decimal view of a minor-unit count, always with two places."""
    return Decimal(minor).scaleb(-MINOR_UNITS)


def format_amount(value: Union[Decimal, int], currency_symbol: str = "") -> str:
    """
    Format an amount for display with exactly two decimal places.

    Ints are taken as minor units. The sign goes before the symbol,
    so -200 paise with "₹" renders as "-₹2.00".
    """
    amount = from_minor_units(value) if isinstance(value, int) else value
    sign = "-" if amount < 0 else ""
    return f"{sign}{currency_symbol}{abs(amount):.2f}"
