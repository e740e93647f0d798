"""Printable A4 tax invoice built with ReportLab platypus."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import TYPE_CHECKING
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from gstinvoice.models.invoice import TaxRegime
from gstinvoice.services.tax import compute_line_tax
from gstinvoice.utils.formatters import format_amount, format_invoice_date, format_rate
from gstinvoice.utils.money import ZERO

if TYPE_CHECKING:
    from gstinvoice.services.invoice import InvoiceDraft

logger = logging.getLogger(__name__)

DECLARATION = (
    "We declare that this invoice shows the actual price of the goods described "
    "and that all particulars are true and correct."
)

_MARGIN = 12 * mm
PAGE_WIDTH = A4[0] - 2 * _MARGIN

_base = getSampleStyleSheet()
BODY = ParagraphStyle("body", parent=_base["Normal"], fontSize=8, leading=10)
BOLD = ParagraphStyle("bold", parent=BODY, fontName="Helvetica-Bold")
RIGHT = ParagraphStyle("right", parent=BODY, alignment=TA_RIGHT)
CENTER = ParagraphStyle("center", parent=BODY, alignment=TA_CENTER)
SELLER = ParagraphStyle(
    "seller", parent=_base["Title"], fontSize=18, leading=22, alignment=TA_CENTER, spaceAfter=0
)
TAGLINE = ParagraphStyle("tagline", parent=CENTER, fontSize=9, textColor=colors.grey)
TITLE = ParagraphStyle(
    "title",
    parent=CENTER,
    fontName="Helvetica-Bold",
    fontSize=12,
    leading=14,
    textColor=colors.white,
)
FOOTNOTE = ParagraphStyle("footnote", parent=CENTER, fontSize=7, leading=9)

_GRID = [
    ("BOX", (0, 0), (-1, -1), 0.8, colors.black),
    ("INNERGRID", (0, 0), (-1, -1), 0.4, colors.black),
    ("VALIGN", (0, 0), (-1, -1), "TOP"),
    ("LEFTPADDING", (0, 0), (-1, -1), 3),
    ("RIGHTPADDING", (0, 0), (-1, -1), 3),
]


def _p(text: str, style: ParagraphStyle = BODY) -> Paragraph:
    return Paragraph(escape(text or "").replace("\n", "<br/>"), style)


def _image(path: str | None, max_w: float, max_h: float) -> Image | None:
    """Scaled image flowable, or None when the file is missing or unreadable."""
    if not path or not Path(path).is_file():
        return None
    try:
        w, h = ImageReader(path).getSize()
    except Exception:
        logger.warning("Could not read image %s", path, exc_info=True)
        return None
    scale = min(max_w / w, max_h / h)
    return Image(path, width=w * scale, height=h * scale)


def _header(draft: InvoiceDraft) -> list:
    company = draft.company
    logo = _image(company.logo_path, 30 * mm, 20 * mm)
    if logo is None:
        logo = _p(company.name[:3].upper(), SELLER)
    heading = [_p(company.name, SELLER), _p(company.display_tagline, TAGLINE)]
    table = Table([[logo, heading]], colWidths=[35 * mm, PAGE_WIDTH - 35 * mm])
    table.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "MIDDLE")]))

    title = Table([[_p("TAX INVOICE", TITLE)]], colWidths=[PAGE_WIDTH])
    title.setStyle(TableStyle([("BACKGROUND", (0, 0), (-1, -1), colors.HexColor("#1f3b63"))]))
    return [table, Spacer(1, 4), title]


def _parties(draft: InvoiceDraft) -> Table:
    company, buyer = draft.company, draft.buyer
    seller_lines = [
        _p(company.name, BOLD),
        _p(company.address),
        _p(f"Phone: {company.phone}"),
        _p(f"Email: {company.email}"),
        _p(f"GSTIN: {company.gstin}"),
        _p(f"PAN: {company.effective_pan}"),
    ]
    buyer_lines = [_p("Buyer (Bill to)", BOLD), _p(buyer.name, BOLD), _p(buyer.address)]
    if buyer.gstin:
        buyer_lines.append(_p(f"GSTIN: {buyer.gstin}"))
    if buyer.phone:
        buyer_lines.append(_p(f"Phone: {buyer.phone}"))

    d = draft.details
    grid = [
        ("Invoice No.", d.invoice_number, "Dated", format_invoice_date(d.invoice_date)),
        ("Delivery Note", d.delivery_note, "Mode/Terms of Payment", d.payment_mode),
        ("Supplier's Ref.", d.supplier_ref, "Other Reference(s)", d.other_ref),
        ("Buyer's Order No.", d.buyer_po, "Dated", format_invoice_date(d.po_date)),
        ("Dispatched through", d.dispatch_through, "Destination", d.destination),
    ]
    rows = [[[_p(a, BOLD), _p(b)], [_p(c, BOLD), _p(e)]] for a, b, c, e in grid]
    rows.append([[_p("Terms of Delivery", BOLD), _p(d.terms_of_delivery)], ""])
    details = Table(rows, colWidths=[PAGE_WIDTH * 0.25] * 2)
    details.setStyle(TableStyle([*_GRID, ("SPAN", (0, len(grid)), (1, len(grid)))]))

    table = Table(
        [[seller_lines, details], [buyer_lines, ""]],
        colWidths=[PAGE_WIDTH * 0.5, PAGE_WIDTH * 0.5],
    )
    table.setStyle(
        TableStyle(
            [
                ("BOX", (0, 0), (-1, -1), 0.8, colors.black),
                ("LINEAFTER", (0, 0), (0, -1), 0.4, colors.black),
                ("LINEBELOW", (0, 0), (0, 0), 0.4, colors.black),
                ("SPAN", (1, 0), (1, 1)),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("LEFTPADDING", (1, 0), (1, 1), 0),
                ("RIGHTPADDING", (1, 0), (1, 1), 0),
                ("TOPPADDING", (1, 0), (1, 1), 0),
                ("BOTTOMPADDING", (1, 0), (1, 1), 0),
            ]
        )
    )
    return table


def _items(draft: InvoiceDraft) -> Table:
    headers = ["Sr", "Description", "HSN", "Qty", "Rate", "Amount", "GST %", "GST Amt", "Total"]
    rows: list[list] = [[_p(h, BOLD) for h in headers]]
    taxed = draft.regime is not TaxRegime.NONE
    rate_label = f"{format_rate(draft.gst_rate)}%"

    for n, item in enumerate(draft.items, start=1):
        amount = item.taxable_amount
        if item.tax_exempt or not taxed:
            tax, total = ZERO, amount
            gst_label = "Exempt" if item.tax_exempt else "0%"
        else:
            line = compute_line_tax(amount, draft.gst_rate)
            tax, total = line.tax_amount, line.total_amount
            gst_label = rate_label
        rows.append(
            [
                _p(str(n), CENTER),
                _p(item.description),
                _p(item.hsn_code, CENTER),
                _p(format_rate(item.quantity), RIGHT),
                _p(format_amount(item.unit_rate), RIGHT),
                _p(format_amount(amount), RIGHT),
                _p(gst_label, CENTER),
                _p(format_amount(tax), RIGHT),
                _p(format_amount(total), RIGHT),
            ]
        )

    totals = draft.totals
    rows.append(
        [
            "",
            _p("Subtotal", BOLD),
            "",
            "",
            "",
            _p(format_amount(totals.taxable_total), RIGHT),
            "",
            _p(format_amount(totals.tax_total), RIGHT),
            _p(format_amount(totals.grand_total), RIGHT),
        ]
    )

    fixed = [8 * mm, 0, 16 * mm, 12 * mm, 18 * mm, 20 * mm, 14 * mm, 18 * mm, 22 * mm]
    fixed[1] = PAGE_WIDTH - sum(fixed)
    table = Table(rows, colWidths=fixed, repeatRows=1)
    table.setStyle(TableStyle([*_GRID, ("BACKGROUND", (0, 0), (-1, 0), colors.whitesmoke)]))
    return table


def _tax_rows(draft: InvoiceDraft) -> list[tuple[str, str]]:
    totals = draft.totals
    match draft.regime:
        case TaxRegime.SPLIT_DOMESTIC:
            half = f"{format_rate(draft.gst_rate / 2)}%"
            return [
                (f"CGST {half}", format_amount(totals.split_component_a)),
                (f"SGST {half}", format_amount(totals.split_component_b)),
            ]
        case TaxRegime.UNIFIED:
            igst = f"IGST {format_rate(draft.gst_rate)}%"
            return [(igst, format_amount(totals.unified_component))]
        case _:
            return [("GST 0%", format_amount(ZERO))]


def _summary(draft: InvoiceDraft) -> Table:
    totals = draft.totals
    figures = [
        ("Total amount before tax", format_amount(totals.taxable_total)),
        *_tax_rows(draft),
        ("Tax Amount", format_amount(totals.tax_total)),
        ("Total amount after tax", format_amount(totals.grand_total)),
    ]
    words = [_p("Amount Chargeable (in words)", BOLD), _p(draft.amount_in_words)]
    rows = [
        [words if i == 0 else "", _p(label, BOLD), _p(value, RIGHT)]
        for i, (label, value) in enumerate(figures)
    ]
    table = Table(rows, colWidths=[PAGE_WIDTH * 0.5, PAGE_WIDTH * 0.3, PAGE_WIDTH * 0.2])
    table.setStyle(TableStyle([*_GRID, ("SPAN", (0, 0), (0, -1))]))
    return table


def _footer(draft: InvoiceDraft) -> list:
    company = draft.company
    signature = _image(company.signature_path, 45 * mm, 18 * mm) or Spacer(1, 18 * mm)
    stamp = [_p(f"For {company.name.upper()}", BOLD), signature, _p("Authorized Signatory")]
    table = Table(
        [[[_p("Declaration", BOLD), _p(DECLARATION)], stamp]],
        colWidths=[PAGE_WIDTH * 0.6, PAGE_WIDTH * 0.4],
    )
    table.setStyle(TableStyle(_GRID))
    office = ", ".join(line.strip() for line in company.address.splitlines() if line.strip())
    return [table, Spacer(1, 4), _p(f"Regd. Office - {office}", FOOTNOTE)]


def render_invoice(draft: InvoiceDraft) -> bytes:
    """Render a validated draft (seller present) to PDF bytes."""
    if draft.company is None:
        raise ValueError("Cannot render an invoice without a seller company")
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=_MARGIN,
        rightMargin=_MARGIN,
        topMargin=_MARGIN,
        bottomMargin=_MARGIN,
        title=f"Invoice {draft.details.invoice_number}",
        author=draft.company.name,
    )
    story = [
        *_header(draft),
        _parties(draft),
        _items(draft),
        _summary(draft),
        *_footer(draft),
    ]
    doc.build(story)
    return buffer.getvalue()
