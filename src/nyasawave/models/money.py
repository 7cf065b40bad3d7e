"""Decimal helpers shared by the scoring and royalty models.

All monetary values use Decimal. Rounding to two places is a display
concern only; the unrounded value is always kept alongside it.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Union

from nyasawave.errors import ValidationError

Number = Union[Decimal, int, float, str]

CURRENCY_QUANTUM = Decimal("0.01")
ZERO = Decimal("0")
ONE = Decimal("1")


def to_decimal(value: Number, label: str = "value") -> Decimal:
    """Convert a caller-supplied number to Decimal.

    Floats go through str() so 0.1 stays 0.1. Booleans, NaN and
    infinities are rejected.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be a number, got bool")
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"{label} must be a number, got {value!r}") from exc
    if not result.is_finite():
        raise ValidationError(f"{label} must be finite, got {value!r}")
    return result


def non_negative(value: Number, label: str) -> Decimal:
    result = to_decimal(value, label)
    if result < ZERO:
        raise ValidationError(f"{label} must be >= 0, got {result}")
    return result


def fraction(value: Number, label: str) -> Decimal:
    """Convert and check a value lies in [0, 1]."""
    result = to_decimal(value, label)
    if not (ZERO <= result <= ONE):
        raise ValidationError(f"{label} must be in [0, 1], got {result}")
    return result


def round_currency(amount: Decimal) -> Decimal:
    return amount.quantize(CURRENCY_QUANTUM, rounding=ROUND_HALF_UP)
