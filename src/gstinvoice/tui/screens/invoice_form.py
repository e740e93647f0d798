from __future__ import annotations

import logging
from decimal import Decimal
from typing import TYPE_CHECKING

from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Checkbox, DataTable, Input, Label, Select, Static, TextArea

from gstinvoice.config import DEFAULT_GST_RATE
from gstinvoice.models.buyer import Buyer
from gstinvoice.models.invoice import InvoiceDetails, LineItem, TaxRegime
from gstinvoice.tui.options import REGIME_OPTIONS
from gstinvoice.utils.formatters import format_amount, format_inr, format_rate
from gstinvoice.utils.money import coerce_amount

if TYPE_CHECKING:
    from gstinvoice.models.company import Company
    from gstinvoice.services.invoice import InvoiceDraft

logger = logging.getLogger(__name__)

# (widget_id, InvoiceDetails attribute, label, placeholder)
_DETAIL_FIELDS: tuple[tuple[str, str, str, str], ...] = (
    ("inv-number", "invoice_number", "Invoice number", "QT-2501-001"),
    ("inv-date", "invoice_date", "Invoice date (YYYY-MM-DD)", "2025-01-31"),
    ("inv-delivery-note", "delivery_note", "Delivery note", ""),
    ("inv-payment-mode", "payment_mode", "Mode/terms of payment", "NEFT / 30 days"),
    ("inv-supplier-ref", "supplier_ref", "Supplier's reference", ""),
    ("inv-other-ref", "other_ref", "Other reference(s)", ""),
    ("inv-buyer-po", "buyer_po", "Buyer's order no.", ""),
    ("inv-po-date", "po_date", "Order date (YYYY-MM-DD)", ""),
    ("inv-dispatch", "dispatch_through", "Dispatched through", ""),
    ("inv-destination", "destination", "Destination", ""),
    ("inv-terms", "terms_of_delivery", "Terms of delivery", ""),
)

# (widget_id, Buyer attribute, label, placeholder)
_BUYER_FIELDS: tuple[tuple[str, str, str, str], ...] = (
    ("buyer-name", "name", "Buyer name", "Acme Retail LLP"),
    ("buyer-gstin", "gstin", "Buyer GST number (optional)", "06AAACA1234B1Z2"),
    ("buyer-phone", "phone", "Buyer phone (optional)", ""),
    ("buyer-email", "email", "Buyer email (optional)", ""),
)


class InvoiceFormScreen(ModalScreen[bool]):
    """Quotation / invoice editor. Dismisses with True when something was saved."""

    BINDINGS = [
        Binding("escape", "go_back", "Back"),
    ]

    def __init__(self, quotation_id: str | None = None) -> None:
        super().__init__()
        self._quotation_id = quotation_id
        self._items: list[LineItem] = []
        self._companies: dict[str, Company] = {}
        self._buyers: dict[str, Buyer] = {}
        self._saved = False

    def compose(self) -> ComposeResult:
        with Vertical(id="modal-dialog"):
            with Horizontal(id="modal-title-bar"):
                yield Static("New quotation", id="header-bar")
                yield Button("✕", id="btn-modal-close")

            with VerticalScroll(id="invoice-form"):
                yield Static("Seller", classes="section-title")
                yield Select([], id="company-select", prompt="Select the company")

                yield Static("Buyer", classes="section-title")
                yield Select([], id="buyer-select", prompt="Saved buyers (optional)")
                for widget_id, _, label, placeholder in _BUYER_FIELDS:
                    yield Label(label, classes="form-label")
                    yield Input(placeholder=placeholder, id=widget_id)
                yield Label("Buyer address", classes="form-label")
                yield TextArea(id="buyer-address", classes="address-input")

                yield Static("Invoice details", classes="section-title")
                for widget_id, _, label, placeholder in _DETAIL_FIELDS:
                    yield Label(label, classes="form-label")
                    yield Input(placeholder=placeholder, id=widget_id)

                yield Static("Items", classes="section-title")
                with Horizontal(id="item-entry"):
                    yield Input(placeholder="Description", id="item-desc")
                    yield Input(placeholder="HSN/SAC", id="item-hsn")
                    yield Input(value="1", placeholder="Qty", id="item-qty")
                    yield Input(placeholder="Rate", id="item-rate")
                    yield Checkbox("Exempt", id="item-exempt")
                    yield Button("+ Add", id="btn-add-item", variant="primary")
                yield DataTable(id="items-table", cursor_type="row")
                with Horizontal(classes="button-bar"):
                    yield Button("✖ Remove item", id="btn-remove-item", variant="warning")

                yield Static("Tax", classes="section-title")
                yield Label("GST rate (%)", classes="form-label")
                yield Input(value=str(DEFAULT_GST_RATE), id="gst-rate")
                yield Label("GST type", classes="form-label")
                yield Select(
                    REGIME_OPTIONS,
                    value=TaxRegime.NONE.value,
                    allow_blank=False,
                    id="regime-select",
                )
                yield Static("", id="totals-summary")
                yield Static("", id="amount-words")

            yield Label("", id="form-error")
            with Horizontal(classes="button-bar"):
                yield Button("✕ Close", id="btn-form-close")
                yield Button("↺ Reset", id="btn-reset")
                yield Button("▶ Save quotation", id="btn-save", variant="primary")
                yield Button("⇓ Save & Generate PDF", id="btn-generate", variant="success")

    def on_mount(self) -> None:
        self._populate_items()
        self._refresh_totals()
        self._load_form()

    # --- Loading (threaded) ---

    @work(thread=True)
    def _load_form(self) -> None:
        from gstinvoice.config import list_buyers, list_companies, load_buyer, load_company
        from gstinvoice.models.company import Company
        from gstinvoice.services import invoice as invoice_service
        from gstinvoice.services.exceptions import QuotationNotFoundError
        from gstinvoice.utils import registry

        try:
            companies: dict[str, Company] = {}
            for slug in list_companies():
                try:
                    companies[slug] = Company.from_dict(load_company(slug))
                except Exception:
                    logger.warning("Skipping unreadable company '%s'", slug, exc_info=True)
            buyers: dict[str, Buyer] = {}
            for slug in list_buyers():
                try:
                    buyers[slug] = Buyer.from_dict(load_buyer(slug))
                except Exception:
                    logger.warning("Skipping unreadable buyer '%s'", slug, exc_info=True)

            if self._quotation_id:
                entry = registry.get_quotation(self._quotation_id)
                if entry is None:
                    raise QuotationNotFoundError(self._quotation_id)
                company = companies.get(entry.get("company_slug") or "")
                draft = invoice_service.from_record(entry, company)
            else:
                draft = invoice_service.new_draft()
            self.app.call_from_thread(self._apply_loaded, companies, buyers, draft)
        except Exception as e:
            self.app.call_from_thread(self._set_error, f"Could not load the form: {e}")

    def _apply_loaded(
        self, companies: dict[str, Company], buyers: dict[str, Buyer], draft: InvoiceDraft
    ) -> None:
        self._companies = companies
        self._buyers = buyers
        self.query_one("#company-select", Select).set_options(
            [(c.name, slug) for slug, c in companies.items()]
        )
        self.query_one("#buyer-select", Select).set_options(
            [(b.name, slug) for slug, b in buyers.items()]
        )
        if not draft.company_slug and len(companies) == 1:
            draft.company_slug = next(iter(companies))
        self._apply_draft(draft)

    def _apply_draft(self, draft: InvoiceDraft) -> None:
        self._quotation_id = draft.quotation_id
        if draft.company_slug in self._companies:
            self.query_one("#company-select", Select).value = draft.company_slug
        for widget_id, attr, _, _ in _BUYER_FIELDS:
            self.query_one(f"#{widget_id}", Input).value = getattr(draft.buyer, attr)
        self.query_one("#buyer-address", TextArea).text = draft.buyer.address
        for widget_id, attr, _, _ in _DETAIL_FIELDS:
            self.query_one(f"#{widget_id}", Input).value = getattr(draft.details, attr)
        self._items = list(draft.items)
        self.query_one("#gst-rate", Input).value = format_rate(draft.gst_rate)
        self.query_one("#regime-select", Select).value = draft.regime.value
        self._update_mode_labels()
        self._populate_items()
        self._refresh_totals()

    def _update_mode_labels(self) -> None:
        editing = self._quotation_id is not None
        title = "Edit quotation" if editing else "New quotation"
        self.query_one("#header-bar", Static).update(title)
        self.query_one("#btn-save", Button).label = (
            "▶ Update quotation" if editing else "▶ Save quotation"
        )

    # --- Draft ---

    def _selected_company_slug(self) -> str:
        value = self.query_one("#company-select", Select).value
        return "" if value is Select.BLANK else str(value)

    def _build_draft(self) -> InvoiceDraft:
        from gstinvoice.services.invoice import InvoiceDraft

        slug = self._selected_company_slug()
        buyer_values = {
            attr: self.query_one(f"#{widget_id}", Input).value.strip()
            for widget_id, attr, _, _ in _BUYER_FIELDS
        }
        buyer_values["gstin"] = buyer_values["gstin"].upper()
        buyer = Buyer(
            address=self.query_one("#buyer-address", TextArea).text.strip(),
            **buyer_values,
        )
        details = InvoiceDetails(
            **{
                attr: self.query_one(f"#{widget_id}", Input).value.strip()
                for widget_id, attr, _, _ in _DETAIL_FIELDS
            }
        )
        return InvoiceDraft(
            company=self._companies.get(slug),
            buyer=buyer,
            details=details,
            items=list(self._items),
            gst_rate=coerce_amount(self.query_one("#gst-rate", Input).value),
            regime=TaxRegime.parse(self.query_one("#regime-select", Select).value),
            company_slug=slug,
            quotation_id=self._quotation_id,
        )

    def _refresh_totals(self) -> None:
        draft = self._build_draft()
        totals = draft.totals
        lines = [f"Total before tax:  {format_inr(totals.taxable_total)}"]
        rate = draft.gst_rate
        match draft.regime:
            case TaxRegime.SPLIT_DOMESTIC:
                half = format_rate(rate / 2)
                lines.append(f"CGST {half}%:  {format_inr(totals.split_component_a)}")
                lines.append(f"SGST {half}%:  {format_inr(totals.split_component_b)}")
            case TaxRegime.UNIFIED:
                lines.append(f"IGST {format_rate(rate)}%:  {format_inr(totals.unified_component)}")
            case _:
                lines.append("GST 0%:  ₹ 0.00")
        lines.append(f"Tax amount:  {format_inr(totals.tax_total)}")
        lines.append(f"[bold]Total after tax:  {format_inr(totals.grand_total)}[/bold]")
        self.query_one("#totals-summary", Static).update("\n".join(lines))
        self.query_one("#amount-words", Static).update(draft.amount_in_words)

    # --- Items ---

    def _populate_items(self) -> None:
        table = self.query_one("#items-table", DataTable)
        table.clear(columns=True)
        table.add_columns("Sr", "Description", "HSN", "Qty", "Rate", "Amount", "GST")
        for n, item in enumerate(self._items, start=1):
            table.add_row(
                str(n),
                item.description,
                item.hsn_code,
                format_rate(item.quantity),
                format_amount(item.unit_rate),
                format_amount(item.taxable_amount),
                "Exempt" if item.tax_exempt else "",
                key=str(n - 1),
            )

    def _add_item(self) -> None:
        from gstinvoice.utils.validators import (
            validate_hsn,
            validate_monetary,
            validate_quantity,
            validate_required,
        )

        error_label = self.query_one("#form-error", Label)
        error_label.update("")
        desc_input = self.query_one("#item-desc", Input)
        try:
            description = validate_required(desc_input.value, "Item description")
            hsn = validate_hsn(self.query_one("#item-hsn", Input).value)
            quantity = validate_quantity(self.query_one("#item-qty", Input).value or "1")
            rate = validate_monetary(self.query_one("#item-rate", Input).value)
        except ValueError as e:
            error_label.update(str(e))
            return

        exempt = self.query_one("#item-exempt", Checkbox)
        self._items.append(
            LineItem(
                description=description,
                hsn_code=hsn,
                quantity=Decimal(quantity),
                unit_rate=Decimal(rate),
                tax_exempt=exempt.value,
            )
        )
        desc_input.value = ""
        self.query_one("#item-hsn", Input).value = ""
        self.query_one("#item-qty", Input).value = "1"
        self.query_one("#item-rate", Input).value = ""
        exempt.value = False
        self._populate_items()
        self._refresh_totals()
        desc_input.focus()

    def _remove_item(self) -> None:
        table = self.query_one("#items-table", DataTable)
        if table.row_count == 0:
            self.notify("No item selected", severity="warning", timeout=3)
            return
        del self._items[table.cursor_row]
        self._populate_items()
        self._refresh_totals()

    # --- Event handlers ---

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "gst-rate":
            self._refresh_totals()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id in ("item-desc", "item-hsn", "item-qty", "item-rate"):
            self._add_item()

    def on_select_changed(self, event: Select.Changed) -> None:
        match event.select.id:
            case "regime-select":
                self._refresh_totals()
            case "buyer-select":
                if event.value is not Select.BLANK:
                    self._fill_buyer(self._buyers.get(str(event.value)))

    def _fill_buyer(self, buyer: Buyer | None) -> None:
        if buyer is None:
            return
        for widget_id, attr, _, _ in _BUYER_FIELDS:
            self.query_one(f"#{widget_id}", Input).value = getattr(buyer, attr)
        self.query_one("#buyer-address", TextArea).text = buyer.address

    def on_button_pressed(self, event: Button.Pressed) -> None:
        match event.button.id:
            case "btn-form-close" | "btn-modal-close":
                self.dismiss(self._saved)
            case "btn-add-item":
                self._add_item()
            case "btn-remove-item":
                self._remove_item()
            case "btn-reset":
                self._reset()
            case "btn-save":
                self._do_save(generate=False)
            case "btn-generate":
                self._do_save(generate=True)

    def _reset(self) -> None:
        """Clear everything except the seller, the number and the date."""
        for widget_id, _, _, _ in _BUYER_FIELDS:
            self.query_one(f"#{widget_id}", Input).value = ""
        self.query_one("#buyer-address", TextArea).text = ""
        self.query_one("#buyer-select", Select).clear()
        for widget_id, attr, _, _ in _DETAIL_FIELDS:
            if attr not in ("invoice_number", "invoice_date"):
                self.query_one(f"#{widget_id}", Input).value = ""
        self._items = []
        self.query_one("#gst-rate", Input).value = str(DEFAULT_GST_RATE)
        self.query_one("#regime-select", Select).value = TaxRegime.NONE.value
        self.query_one("#form-error", Label).update("")
        self._populate_items()
        self._refresh_totals()

    # --- Save ---

    def _check_form(self, draft: InvoiceDraft) -> list[str]:
        """Field-format checks on top of the service's completeness checks."""
        from gstinvoice.services.exceptions import InvoiceValidationError
        from gstinvoice.services.invoice import validate_draft
        from gstinvoice.utils.validators import validate_date, validate_gstin, validate_rate

        errors: list[str] = []
        checks = [(validate_rate, self.query_one("#gst-rate", Input).value)]
        if draft.details.invoice_date:
            checks.append((validate_date, draft.details.invoice_date))
        if draft.details.po_date:
            checks.append((validate_date, draft.details.po_date))
        if draft.buyer.gstin:
            checks.append((validate_gstin, draft.buyer.gstin))
        for check, value in checks:
            try:
                check(value)
            except ValueError as e:
                errors.append(str(e))
        try:
            validate_draft(draft)
        except InvoiceValidationError as e:
            errors.extend(e.errors)
        return errors

    def _do_save(self, *, generate: bool) -> None:
        error_label = self.query_one("#form-error", Label)
        error_label.update("")
        draft = self._build_draft()
        errors = self._check_form(draft)
        if errors:
            error_label.update(" | ".join(errors))
            return
        self._set_buttons_enabled(False)
        self.notify(
            "Generating PDF…" if generate else "Saving…", severity="information", timeout=3
        )
        self._run_save(draft, generate)

    @work(thread=True)
    def _run_save(self, draft: InvoiceDraft, generate: bool) -> None:
        from gstinvoice.services import invoice as invoice_service
        from gstinvoice.services.exceptions import InvoiceValidationError

        try:
            if generate:
                path = invoice_service.export_pdf(draft)
                message = f"PDF saved to: {path}"
            else:
                entry = invoice_service.save(draft)
                message = f"Quotation {entry['quotation_no']} saved"
            self.app.call_from_thread(self._on_saved, draft.quotation_id, message)
        except InvoiceValidationError as e:
            self.app.call_from_thread(self._set_error, " | ".join(e.errors))
        except Exception as e:
            self.app.call_from_thread(self._set_error, f"Save failed: {e}")

    def _on_saved(self, quotation_id: str | None, message: str) -> None:
        self._quotation_id = quotation_id
        self._saved = True
        self._update_mode_labels()
        self._set_buttons_enabled(True)
        self.notify(message, timeout=5)

    def _set_error(self, msg: str) -> None:
        self.query_one("#form-error", Label).update(msg)
        self._set_buttons_enabled(True)

    def _set_buttons_enabled(self, enabled: bool) -> None:
        self.query_one("#btn-save", Button).disabled = not enabled
        self.query_one("#btn-generate", Button).disabled = not enabled

    def action_go_back(self) -> None:
        self.dismiss(self._saved)
