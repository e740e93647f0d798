"""Rupee amounts in words, using the Indian numbering system (crore / lakh / thousand).

Paise are split out by :func:`split_amount` but are not rendered in the phrase
yet; invoices print the whole-rupee wording only.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from gstinvoice.utils.money import coerce_amount

ZERO_PHRASE = "Zero Only"
PREFIX = "Rupees - "
SUFFIX = "Only"
_ONE = Decimal("1")

_ONES = ["", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine"]
_TEENS = [
    "Ten", "Eleven", "Twelve", "Thirteen", "Fourteen",
    "Fifteen", "Sixteen", "Seventeen", "Eighteen", "Nineteen",
]
_TENS = ["", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety"]

_SCALES = (
    (10_000_000, "Crore"),
    (100_000, "Lakh"),
    (1_000, "Thousand"),
)


def split_amount(amount: object) -> tuple[int, int]:
    """Split an amount into whole rupees (floored) and paise (rounded half-up)."""
    d = coerce_amount(amount)
    rupees = int(d)
    paise = int(((d - rupees) * 100).quantize(_ONE, rounding=ROUND_HALF_UP))
    return rupees, paise



def _below_thousand(num: int) -> list[str]:
    words: list[str] = []
    if num >= 100:
        words += [_ONES[num // 100], "Hundred"]
        num %= 100
    if num >= 20:
        words.append(_TENS[num // 10])
        num %= 10
    elif num >= 10:
        words.append(_TEENS[num - 10])
        return words
    if num > 0:
        words.append(_ONES[num])
    return words


def _indian_words(num: int) -> list[str]:
    words: list[str] = []
    for divisor, label in _SCALES:
        count, num = divmod(num, divisor)
        if count:
            # More than 999 crore: the crore count gets its own lakh/thousand grouping
            words += _indian_words(count) if count > 999 else _below_thousand(count)
            words.append(label)
    words += _below_thousand(num)
    return words


def amount_to_words(amount: object) -> str:
    """Render an amount as e.g. ``"Rupees - Twelve Lakh Thirty Four Thousand ... Only"``."""
    rupees, paise = split_amount(amount)
    if rupees == 0 and paise == 0:
        return ZERO_PHRASE
    words = _indian_words(rupees) or ["Zero"]
    return f"{PREFIX}{' '.join(words)} {SUFFIX}"
