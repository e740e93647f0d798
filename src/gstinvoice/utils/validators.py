from __future__ import annotations

import re
from datetime import date
from decimal import Decimal, InvalidOperation

from gstinvoice.utils.money import MAX_AMOUNT

_GSTIN_RE = re.compile(r"\d{2}[A-Z]{5}\d{4}[A-Z][A-Z0-9]Z[A-Z0-9]")
_PAN_RE = re.compile(r"[A-Z]{5}\d{4}[A-Z]")
_EMAIL_RE = re.compile(r"[^@\s]+@[^@\s]+\.[^@\s]+")


def validate_required(value: str, label: str) -> str:
    """Return the stripped value; raise if it is blank."""
    value = (value or "").strip()
    if not value:
        raise ValueError(f"Please fill in: {label}")
    return value


def validate_gstin(value: str) -> str:
    """Validate a 15-character GSTIN (state code, PAN, entity, Z, checksum)."""
    v = value.strip().upper()
    if not _GSTIN_RE.fullmatch(v):
        raise ValueError(f"Invalid GST number: '{value}'")
    return v


def validate_pan(value: str) -> str:
    """Validate a PAN: 5 letters, 4 digits, 1 letter."""
    v = value.strip().upper()
    if not _PAN_RE.fullmatch(v):
        raise ValueError(f"Invalid PAN number: '{value}'")
    return v


def validate_email(value: str) -> str:
    v = value.strip()
    if not _EMAIL_RE.fullmatch(v):
        raise ValueError(f"Invalid email: '{value}'")
    return v


def validate_phone(value: str) -> str:
    """Validate a phone number: optional +, then 10-15 digits. Spaces and dashes are ignored."""
    v = value.strip()
    if not re.fullmatch(r"\+?\d{10,15}", re.sub(r"[\s-]", "", v)):
        raise ValueError(f"Invalid phone number: '{value}'")
    return v


def validate_hsn(value: str) -> str:
    """Validate an HSN/SAC code: empty, or 4 to 8 digits."""
    v = value.strip()
    if v and not re.fullmatch(r"\d{4,8}", v):
        raise ValueError("HSN code: must be 4 to 8 digits")
    return v


def _to_decimal(value: str, label: str) -> Decimal:
    try:
        d = Decimal(value.strip())
        if not d.is_finite():
            raise InvalidOperation
    except InvalidOperation:
        raise ValueError(f"Invalid {label}: '{value}'") from None
    return d


def validate_monetary(value: str) -> str:
    """Validate a positive amount. Returns it with 2 decimal places."""
    d = _to_decimal(value, "amount")
    if d <= 0:
        raise ValueError(f"Amount must be positive: '{value}'")
    if d >= MAX_AMOUNT:
        raise ValueError(f"Amount is too large: '{value}'")
    return f"{d:.2f}"


def validate_quantity(value: str) -> str:
    """Validate a non-negative quantity. Returns it unchanged apart from whitespace."""
    d = _to_decimal(value, "quantity")
    if d < 0:
        raise ValueError(f"Quantity cannot be negative: '{value}'")
    if d >= MAX_AMOUNT:
        raise ValueError(f"Quantity is too large: '{value}'")
    return value.strip()


def validate_rate(value: str) -> str:
    """Validate a GST rate percentage (0.00-100.00)."""
    d = _to_decimal(value, "GST rate")
    if d < 0 or d > 100:
        raise ValueError("GST rate must be between 0 and 100")
    return f"{d:.2f}"


def validate_date(value: str) -> str:
    """Validate an ISO date string (YYYY-MM-DD)."""
    try:
        date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"Invalid date: '{value}'. Use YYYY-MM-DD.") from None
    return value


def validate_slug(value: str) -> str:
    if not re.fullmatch(r"[a-z0-9_-]+", value):
        raise ValueError("Slug: lowercase letters, digits, _ and - only")
    return value
