"""Utility helpers for parsing monetary input and converting to cents."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional

CENTS_PER_DOLLAR = 100
# Largest value an INTEGER column holds on every supported backend.
MAX_CENTS = 2**31 - 1
_CENT = Decimal("0.01")


def parse_amount(raw_value: Any) -> Optional[Decimal]:
    """Coerce submitted form input into a :class:`~decimal.Decimal`.

    Surrounding whitespace is ignored and an empty value coerces to zero, so
    that a blank amount fails the "greater than zero" check rather than a
    separate type check.  ``None`` is returned for anything that is not a
    finite number.
    """

    if raw_value is None:
        return None

    if isinstance(raw_value, Decimal):
        value = raw_value
    elif isinstance(raw_value, bool):
        return None
    elif isinstance(raw_value, (int, float)):
        value = Decimal(str(raw_value))
    else:
        text = str(raw_value).strip()
        if not text:
            return Decimal(0)
        try:
            value = Decimal(text)
        except InvalidOperation:
            return None

    if not value.is_finite():
        return None
    return value


def to_cents(amount: Decimal | float | int) -> int:
    """Return ``round(amount * 100)`` as an integer, rounding halves up.

    Raises :class:`ValueError` when the result does not fit in
    :data:`MAX_CENTS`.
    """

    if not isinstance(amount, Decimal):
        amount = Decimal(str(amount))
    try:
        cents = int(
            (amount * CENTS_PER_DOLLAR).quantize(Decimal(1), rounding=ROUND_HALF_UP)
        )
    except (InvalidOperation, ValueError, OverflowError) as exc:
        raise ValueError(f"Amount {amount} cannot be stored as cents") from exc
    if abs(cents) > MAX_CENTS:
        raise ValueError(f"Amount {amount} cannot be stored as cents")
    return cents


def from_cents(cents: int) -> Decimal:
    """Convert stored integer cents back into a dollar amount."""

    return (Decimal(int(cents)) / CENTS_PER_DOLLAR).quantize(_CENT)


def format_currency(cents: Optional[int]) -> str:
    """Format integer cents for display, e.g. ``123456`` -> ``$1,234.56``."""

    if cents is None:
        return ""
    dollars = from_cents(cents)
    sign = "-" if dollars < 0 else ""
    return f"{sign}${abs(dollars):,.2f}"
