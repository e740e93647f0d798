"""Shared Select option constants for the TUI forms.

Labels are shown to the user, values are what gets stored.
"""

from __future__ import annotations

from gstinvoice.models.invoice import TaxRegime
from gstinvoice.models.quotation import QuotationStatus

REGIME_OPTIONS: tuple[tuple[str, str], ...] = tuple(
    (regime.label, regime.value) for regime in TaxRegime
)

STATUS_FILTER_OPTIONS: tuple[tuple[str, str], ...] = (
    ("All", "all"),
    ("Quotations", QuotationStatus.QUOTATION.value),
    ("Invoices", QuotationStatus.INVOICE.value),
)

STATUS_STYLES = {
    QuotationStatus.QUOTATION.value: "[yellow]quotation[/yellow]",
    QuotationStatus.INVOICE.value: "[green]invoice[/green]",
}
