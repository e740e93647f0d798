from __future__ import annotations

from enum import Enum


class QuotationStatus(str, Enum):
    """Lifecycle of a saved document: a quotation until it is issued as an invoice."""

    QUOTATION = "quotation"
    INVOICE = "invoice"
