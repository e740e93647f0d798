from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from gstinvoice.utils.money import ZERO, coerce_amount, round2


class TaxRegime(str, Enum):
    """How the invoice tax is broken down for display (not how much is owed)."""

    NONE = ""
    SPLIT_DOMESTIC = "CGST_SGST"  # intra-state: CGST + SGST halves
    UNIFIED = "IGST"  # inter-state: single IGST component

    @classmethod
    def parse(cls, value: object) -> TaxRegime:
        """Accept a member, a stored value or None; unknown values map to NONE."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value or "")
        except ValueError:
            return cls.NONE

    @property
    def label(self) -> str:
        return _REGIME_LABELS[self]


_REGIME_LABELS = {
    TaxRegime.NONE: "None",
    TaxRegime.SPLIT_DOMESTIC: "Intra-State (CGST + SGST)",
    TaxRegime.UNIFIED: "Inter-State (IGST)",
}


@dataclass(frozen=True)
class LineItem:
    """One invoice row. The taxable amount is always derived from quantity x rate."""

    description: str = ""
    hsn_code: str = ""
    quantity: Decimal = Decimal("1")
    unit_rate: Decimal = ZERO
    tax_exempt: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", coerce_amount(self.quantity))
        object.__setattr__(self, "unit_rate", coerce_amount(self.unit_rate))

    @property
    def taxable_amount(self) -> Decimal:
        return round2(self.quantity * self.unit_rate)

    @classmethod
    def from_amount(
        cls,
        amount: object,
        description: str = "",
        hsn_code: str = "",
        tax_exempt: bool = False,
    ) -> LineItem:
        """Build a single-unit item for callers that only know the line amount."""
        return cls(
            description=description,
            hsn_code=hsn_code,
            quantity=Decimal("1"),
            unit_rate=coerce_amount(amount),
            tax_exempt=tax_exempt,
        )

    @classmethod
    def from_dict(cls, d: dict) -> LineItem:
        """Create a LineItem from a stored quotation row.

        Older rows only carry ``amount``, and rows typed as a bare amount store a zero
        ``rate``; either way the unit rate is recovered as amount / unit.
        """
        quantity = coerce_amount(d.get("unit", 1))
        unit_rate = coerce_amount(d.get("rate"))
        if not unit_rate and quantity:
            unit_rate = coerce_amount(d.get("amount")) / quantity
        return cls(
            description=str(d.get("description") or ""),
            hsn_code=str(d.get("hsn") or ""),
            quantity=quantity,
            unit_rate=unit_rate,
            tax_exempt=bool(d.get("excludeGST", False)),
        )

    def to_dict(self) -> dict:
        return {
            "description": self.description,
            "hsn": self.hsn_code,
            "unit": str(self.quantity),
            "rate": str(self.unit_rate),
            "amount": str(self.taxable_amount),
            "excludeGST": self.tax_exempt,
        }


@dataclass(frozen=True)
class LineTax:
    tax_amount: Decimal
    total_amount: Decimal


@dataclass(frozen=True)
class InvoiceTotals:
    taxable_total: Decimal = ZERO
    tax_total: Decimal = ZERO
    grand_total: Decimal = ZERO
    split_component_a: Decimal = ZERO  # CGST
    split_component_b: Decimal = ZERO  # SGST
    unified_component: Decimal = ZERO  # IGST

    def to_dict(self) -> dict[str, str]:
        """Snapshot for storage alongside a saved quotation."""
        return {
            "total_before_tax": str(self.taxable_total),
            "total_gst": str(self.tax_total),
            "total_after_tax": str(self.grand_total),
            "total_cgst": str(self.split_component_a),
            "total_sgst": str(self.split_component_b),
            "total_igst": str(self.unified_component),
        }


# (attribute, stored key) pairs for the invoice metadata block
_DETAIL_KEYS: tuple[tuple[str, str], ...] = (
    ("delivery_note", "deliveryNote"),
    ("payment_mode", "paymentMode"),
    ("supplier_ref", "supplierRef"),
    ("other_ref", "otherRef"),
    ("buyer_po", "buyerPO"),
    ("po_date", "poDate"),
    ("dispatch_through", "dispatchThrough"),
    ("destination", "destination"),
    ("terms_of_delivery", "termsOfDelivery"),
    ("invoice_date", "invoiceDate"),
)


@dataclass(frozen=True)
class InvoiceDetails:
    """Invoice header fields. The number is stored as the quotation number."""

    invoice_number: str
    invoice_date: str = ""  # YYYY-MM-DD
    delivery_note: str = ""
    payment_mode: str = ""
    supplier_ref: str = ""
    other_ref: str = ""
    buyer_po: str = ""
    po_date: str = ""
    dispatch_through: str = ""
    destination: str = ""
    terms_of_delivery: str = ""

    @classmethod
    def from_dict(cls, invoice_number: str, d: dict | None) -> InvoiceDetails:
        d = d or {}
        return cls(
            invoice_number=invoice_number,
            **{attr: str(d.get(key) or "") for attr, key in _DETAIL_KEYS},
        )

    def to_dict(self) -> dict[str, str]:
        """Stored ``invoice_details`` block, keyed the way saved quotations expect."""
        return {key: getattr(self, attr) for attr, key in _DETAIL_KEYS}
