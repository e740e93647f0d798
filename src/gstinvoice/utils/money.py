from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

ZERO = Decimal("0")
CENT = Decimal("0.01")
# Amounts at or above this are out of range and coerce to 0
MAX_AMOUNT = Decimal("1e15")


def round2(value: Decimal) -> Decimal:
    """Round half-up to 2 decimal places.

    Values too large to carry cents at the context precision become 0, like other
    out-of-range input.
    """
    try:
        return value.quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return ZERO


def coerce_amount(value: object) -> Decimal:
    """Coerce a number or numeric string into a non-negative Decimal.

    Anything that is not a finite, non-negative number below MAX_AMOUNT becomes 0.
    Floats go through ``str()`` so 0.1 stays 0.1 instead of its binary expansion.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        d = value
    elif isinstance(value, (int, float)):
        d = Decimal(str(value))
    elif isinstance(value, str):
        try:
            d = Decimal(value.strip().replace(",", ""))
        except InvalidOperation:
            return ZERO
    else:
        return ZERO
    if not d.is_finite() or d < 0 or d >= MAX_AMOUNT:
        return ZERO
    return d
