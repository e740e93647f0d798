"""GST computation for invoice lines and whole invoices.

Both functions are total: malformed numbers coerce to zero instead of raising,
so the TUI can recompute after every keystroke without guarding the call.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from gstinvoice.models.invoice import InvoiceTotals, LineItem, LineTax, TaxRegime
from gstinvoice.utils.money import ZERO, coerce_amount, round2

_HUNDRED = Decimal("100")
_TWO = Decimal("2")


def compute_line_tax(taxable_amount: object, rate: object) -> LineTax:
    """Tax and gross amount for one taxable amount at a percentage rate."""
    amount = round2(coerce_amount(taxable_amount))
    tax = round2(amount * coerce_amount(rate) / _HUNDRED)
    return LineTax(tax_amount=tax, total_amount=round2(amount + tax))


def _as_item(item: LineItem | dict) -> LineItem:
    if isinstance(item, LineItem):
        return item
    if isinstance(item, dict):
        return LineItem.from_dict(item)
    return LineItem(quantity=ZERO)


def compute_invoice_totals(
    items: Iterable[LineItem | dict] | None,
    rate: object,
    regime: TaxRegime | str | None,
) -> InvoiceTotals:
    """Aggregate totals for an invoice.

    Per-item values are rounded before they are summed. CGST/SGST halves are
    summed unrounded and rounded once at the end.
    """
    regime = TaxRegime.parse(regime)
    rate = coerce_amount(rate)

    taxable_total = ZERO
    tax_total = ZERO
    half_a = ZERO
    half_b = ZERO
    unified = ZERO

    for raw in items or ():
        item = _as_item(raw)
        amount = item.taxable_amount
        taxable_total += amount
        if item.tax_exempt or regime is TaxRegime.NONE:
            continue

        tax = compute_line_tax(amount, rate).tax_amount
        tax_total += tax
        if regime is TaxRegime.SPLIT_DOMESTIC:
            half = tax / _TWO
            half_a += half
            half_b += half
        else:
            unified += tax

    return InvoiceTotals(
        taxable_total=round2(taxable_total),
        tax_total=round2(tax_total),
        grand_total=round2(taxable_total + tax_total),
        split_component_a=round2(half_a),
        split_component_b=round2(half_b),
        unified_component=round2(unified),
    )
