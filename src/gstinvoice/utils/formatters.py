from __future__ import annotations

import re
from datetime import date
from decimal import Decimal

from gstinvoice.utils.money import coerce_amount, round2


def format_indian_number(value: Decimal | int | str) -> str:
    """Group digits the Indian way: last three together, then pairs (12,34,567)."""
    text = format(Decimal(value), "f")
    sign = ""
    if text.startswith("-"):
        sign, text = "-", text[1:]
    whole, _, frac = text.partition(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        pairs: list[str] = []
        while len(head) > 2:
            pairs.insert(0, head[-2:])
            head = head[:-2]
        if head:
            pairs.insert(0, head)
        whole = ",".join([*pairs, tail])
    return sign + whole + (f".{frac}" if frac else "")


def format_inr(value: object) -> str:
    """Format an amount as ₹ 12,34,567.89."""
    return f"₹ {format_indian_number(round2(coerce_amount(value)))}"


def format_amount(value: object) -> str:
    """Plain two-decimal amount as printed in the invoice table."""
    return f"{round2(coerce_amount(value)):.2f}"


def format_invoice_date(value: str) -> str:
    """Format an ISO date as DD.MM.YY; empty or invalid input gives ''."""
    if not value:
        return ""
    try:
        d = date.fromisoformat(value)
    except ValueError:
        return ""
    return d.strftime("%d.%m.%y")


def format_rate(value: object) -> str:
    """Percentage without trailing zeros: 18, 9, 2.5."""
    d = coerce_amount(value).normalize()
    text = format(d, "f")
    return text if "." not in text else text.rstrip("0").rstrip(".")


def clean_filename(invoice_number: str) -> str:
    """Make an invoice number safe for a file name (spaces become dashes)."""
    return re.sub(r"[^A-Za-z0-9_-]", "", re.sub(r"\s+", "-", invoice_number))
