"""
Values -- Decimal coercion and rounding helpers.

Responsibility:
    Single place where numbers entering the engine become ``Decimal`` and
    where amounts leaving an engine are rounded.  Engines and records
    never hold ``float`` currency values.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Currency amounts are rounded to 2 places with ROUND_HALF_UP.
    - Hour counts are rounded to whole hours with ROUND_HALF_UP, matching
      the half-up behaviour of the pricing sheets the engine replaces.

Failure modes:
    - ValueError on values that cannot be represented as Decimal.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")
ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")


def to_decimal(value: Any) -> Decimal:
    """Coerce ints, strings and floats to ``Decimal`` via ``str``."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid numeric value: {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid numeric value: {value!r}") from e


def round_money(value: Decimal) -> Decimal:
    """Round a currency amount to cents."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def round_ratio(value: Decimal) -> Decimal:
    """Round a ratio (multipliers, percentages) to 4 places."""
    return value.quantize(FOUR_PLACES, rounding=ROUND_HALF_UP)


def round_hours(value: Decimal) -> int:
    """Round an hour estimate to whole hours, half-up."""
    return int(value.quantize(ONE, rounding=ROUND_HALF_UP))
