from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from gstinvoice.config import DEFAULT_GST_RATE, IST, get_pdf_dir, load_company
from gstinvoice.models.buyer import Buyer
from gstinvoice.models.company import Company
from gstinvoice.models.invoice import InvoiceDetails, InvoiceTotals, LineItem, TaxRegime
from gstinvoice.models.quotation import QuotationStatus
from gstinvoice.services.exceptions import InvoiceValidationError, QuotationNotFoundError
from gstinvoice.services.pdf_renderer import render_invoice
from gstinvoice.services.tax import compute_invoice_totals
from gstinvoice.utils import registry
from gstinvoice.utils.amount_words import amount_to_words
from gstinvoice.utils.formatters import clean_filename
from gstinvoice.utils.money import coerce_amount
from gstinvoice.utils.sequence import next_quotation_number

logger = logging.getLogger(__name__)


@dataclass
class InvoiceDraft:
    """Everything the invoice form holds; totals are derived, never stored on the draft."""

    company: Company | None
    buyer: Buyer
    details: InvoiceDetails
    items: list[LineItem] = field(default_factory=list)
    gst_rate: Decimal = Decimal(DEFAULT_GST_RATE)
    regime: TaxRegime = TaxRegime.NONE
    company_slug: str = ""
    quotation_id: str | None = None

    @property
    def totals(self) -> InvoiceTotals:
        return compute_invoice_totals(self.items, self.gst_rate, self.regime)

    @property
    def amount_in_words(self) -> str:
        return amount_to_words(self.totals.grand_total)


def new_draft(
    company: Company | None = None,
    company_slug: str = "",
    today: date | None = None,
) -> InvoiceDraft:
    """Blank draft dated today, with a freshly reserved quotation number."""
    today = today or datetime.now(IST).date()
    details = InvoiceDetails(
        invoice_number=next_quotation_number(today),
        invoice_date=today.isoformat(),
    )
    return InvoiceDraft(
        company=company,
        buyer=Buyer(name="", address=""),
        details=details,
        company_slug=company_slug,
    )


def validate_draft(draft: InvoiceDraft) -> None:
    """Raise InvoiceValidationError listing every missing or invalid field."""
    errors: list[str] = []
    company = draft.company
    fields_to_check: list[tuple[str, str]] = []
    if company is None:
        errors.append("Please select a seller company")
    else:
        fields_to_check += [
            ("Company name", company.name),
            ("Company address", company.address),
            ("Company phone", company.phone),
            ("Company GST number", company.gstin),
            ("Company email", company.email),
        ]
    fields_to_check += [
        ("Buyer name", draft.buyer.name),
        ("Buyer address", draft.buyer.address),
        ("Invoice number", draft.details.invoice_number),
        ("Invoice date", draft.details.invoice_date),
    ]
    for label, value in fields_to_check:
        if not (value or "").strip():
            errors.append(f"Please fill in: {label}")

    if not draft.items:
        errors.append("Please add at least one item")
    for n, item in enumerate(draft.items, start=1):
        if not item.description.strip():
            errors.append(f"Item {n}: description is required")
        if item.taxable_amount <= 0:
            errors.append(f"Item {n}: amount must be greater than zero")

    if errors:
        raise InvoiceValidationError(errors)


def to_record(draft: InvoiceDraft, status: str = QuotationStatus.QUOTATION.value) -> dict[str, Any]:
    """Registry payload for a draft, including a snapshot of its totals."""
    details = draft.details.to_dict()
    details["gstType"] = draft.regime.value
    return {
        "quotation_no": draft.details.invoice_number,
        "company_slug": draft.company_slug,
        "buyer_name": draft.buyer.name,
        "buyer_address": draft.buyer.address,
        "buyer_gst": draft.buyer.gstin,
        "buyer_phone": draft.buyer.phone,
        "buyer_email": draft.buyer.email,
        "invoice_details": details,
        "items": [item.to_dict() for item in draft.items],
        "gst_rate": str(draft.gst_rate),
        **draft.totals.to_dict(),
        "status": status,
    }


def from_record(entry: dict[str, Any], company: Company | None) -> InvoiceDraft:
    """Rebuild an editable draft from a stored quotation."""
    details_raw = entry.get("invoice_details") or {}
    raw_rate = entry.get("gst_rate")
    gst_rate = Decimal(DEFAULT_GST_RATE) if raw_rate in (None, "") else coerce_amount(raw_rate)
    return InvoiceDraft(
        company=company,
        buyer=Buyer(
            name=entry.get("buyer_name") or "",
            address=entry.get("buyer_address") or "",
            gstin=entry.get("buyer_gst") or "",
            phone=entry.get("buyer_phone") or "",
            email=entry.get("buyer_email") or "",
        ),
        details=InvoiceDetails.from_dict(entry.get("quotation_no") or "", details_raw),
        items=[LineItem.from_dict(d) for d in entry.get("items") or []],
        gst_rate=gst_rate,
        regime=TaxRegime.parse(details_raw.get("gstType")),
        company_slug=entry.get("company_slug") or "",
        quotation_id=entry.get("id"),
    )


def save(draft: InvoiceDraft, status: str = QuotationStatus.QUOTATION.value) -> dict[str, Any]:
    """Validate and persist a draft; new drafts are added, known ones updated."""
    validate_draft(draft)
    record = to_record(draft, status)
    if draft.quotation_id:
        entry = registry.update_quotation(draft.quotation_id, record)
        if entry is None:
            raise QuotationNotFoundError(draft.quotation_id)
    else:
        entry = registry.add_quotation(record)
        draft.quotation_id = entry["id"]
    logger.info("Saved %s %s", status, entry.get("quotation_no"))
    return entry


def _unique_path(path: Path) -> Path:
    """Return a non-conflicting path by appending _1, _2, etc. if needed."""
    if not path.exists():
        return path
    stem, suffix, parent = path.stem, path.suffix, path.parent
    counter = 1
    candidate = parent / f"{stem}_{counter}{suffix}"
    while candidate.exists():
        counter += 1
        candidate = parent / f"{stem}_{counter}{suffix}"
    return candidate


def default_pdf_name(invoice_number: str) -> str:
    return f"Invoice_{clean_filename(invoice_number)}.pdf"


def export_pdf(draft: InvoiceDraft, output: str | Path | None = None) -> Path:
    """Save the draft as an invoice, render it and write the PDF. Returns the written path."""
    save(draft, status=QuotationStatus.INVOICE.value)
    content = render_invoice(draft)
    if output is None:
        target = get_pdf_dir() / default_pdf_name(draft.details.invoice_number)
    else:
        target = Path(output).expanduser()
    target = _unique_path(target)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(content)
    logger.info("Invoice PDF written to %s", target)
    return target


def load_company_for(entry: dict[str, Any]) -> Company | None:
    """Load the seller referenced by a stored quotation, or None if it is gone."""
    slug = entry.get("company_slug")
    if not slug:
        logger.warning("Quotation %s has no company", entry.get("quotation_no"))
        return None
    try:
        return Company.from_dict(load_company(slug))
    except (OSError, KeyError, TypeError, yaml.YAMLError):
        logger.warning("Company '%s' could not be loaded", slug, exc_info=True)
        return None


def find_quotation(ref: str) -> dict[str, Any]:
    """Resolve a quotation by id or by quotation number."""
    entry = registry.get_quotation(ref) or registry.find_by_number(ref)
    if entry is None:
        raise QuotationNotFoundError(ref)
    return entry
