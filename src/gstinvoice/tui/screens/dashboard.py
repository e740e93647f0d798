from __future__ import annotations

from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import Key
from textual.screen import Screen
from textual.widgets import Button, DataTable, Footer, Label, Select, Static

from gstinvoice.tui.options import STATUS_FILTER_OPTIONS, STATUS_STYLES
from gstinvoice.utils.formatters import format_inr, format_invoice_date


class DashboardScreen(Screen):
    """Main screen: stored quotations and invoices."""

    BINDINGS = [
        # List actions: hidden from footer (have buttons above table)
        Binding("n", "new_quotation", "New", show=False),
        Binding("r", "duplicate", "Duplicate", show=False),
        Binding("i", "convert", "To invoice", show=False),
        Binding("p", "export_pdf", "PDF", show=False),
        Binding("d", "delete", "Delete", show=False),
        # Generic actions: shown in footer
        Binding("c", "companies", "Companies"),
        Binding("b", "buyers", "Buyers"),
        Binding("h", "help", "Help"),
        Binding("o", "logout", "Logout"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._all_quotations: list[dict] = []

    def compose(self) -> ComposeResult:
        with Horizontal(id="top-bar"):
            yield Static("GST Invoice Maker", id="app-title")
            yield Static(self.app.user_email or "", id="user-badge")  # type: ignore[attr-defined]

        with Horizontal(id="info-bar"):
            with Vertical(id="card-companies", classes="info-card"):
                yield Label("Companies", classes="card-title")
                yield Label("…", id="companies-info", classes="card-value")
            with Vertical(id="card-seq", classes="info-card"):
                yield Label("Next number", classes="card-title")
                yield Label("…", id="seq-info", classes="card-value")
            with Vertical(id="card-registry", classes="info-card"):
                yield Label("Stored", classes="card-title")
                yield Label("…", id="registry-info", classes="card-value")

        with Horizontal(id="filter-bar"):
            yield Static("Quotations & Invoices", id="section-title")
            yield Select(
                STATUS_FILTER_OPTIONS,
                value="all",
                allow_blank=False,
                id="filter-status",
                tooltip="Show all, only quotations or only invoices",
            )

        with Horizontal(id="action-bar"):
            yield Button("+ New", id="btn-new", variant="primary", tooltip="New quotation (n)")
            yield Button("▶ Open", id="btn-open", tooltip="Edit the selected quotation (enter)")
            yield Button("↻ Duplicate", id="btn-duplicate", tooltip="Copy under a new number (r)")
            yield Button("✓ To invoice", id="btn-convert", tooltip="Mark as invoice (i)")
            yield Button(
                "⇓ PDF",
                id="btn-pdf",
                variant="success",
                tooltip="Save as invoice and write the PDF (p)",
            )
            yield Button("✖ Delete", id="btn-delete", variant="warning", tooltip="Delete (d)")

        yield DataTable(id="quotations-table", cursor_type="row")

        yield Static(
            "No quotations yet.\n"
            "Press [bold]c[/bold] to add your company, then [bold]n[/bold] "
            "to create a quotation.",
            id="empty-state",
        )

        yield Footer()

    def on_mount(self) -> None:
        self._refresh()
        self.query_one("#quotations-table", DataTable).focus()

    def on_key(self, event: Key) -> None:
        table = self.query_one("#quotations-table", DataTable)
        match event.key:
            case "j":
                table.action_cursor_down()
            case "k":
                table.action_cursor_up()
            case "enter":
                self.action_open()
            case _:
                return
        event.prevent_default()
        event.stop()

    def _refresh(self) -> None:
        self._load_companies()
        self._load_sequence()
        self._scan_quotations()

    # --- Data loading (threaded) ---

    @work(thread=True)
    def _load_companies(self) -> None:
        try:
            from gstinvoice.config import list_companies

            count = len(list_companies())
            text = str(count) if count else "[red]none[/red] (press c)"
        except Exception as e:
            text = f"error - {e}"
        self.app.call_from_thread(self._update_label, "companies-info", text)

    @work(thread=True)
    def _load_sequence(self) -> None:
        try:
            from gstinvoice.utils.sequence import peek_next_quotation_number

            text = peek_next_quotation_number()
        except Exception as e:
            text = f"error - {e}"
        self.app.call_from_thread(self._update_label, "seq-info", text)

    @work(thread=True)
    def _scan_quotations(self) -> None:
        try:
            from gstinvoice.utils.registry import check_registry_health, list_quotations

            entries = list_quotations()
            health = check_registry_health()
            text = str(len(entries))
            if health.corrupt_backups:
                text += f"\n[yellow]{len(health.corrupt_backups)} corrupt backup(s)[/yellow]"
        except Exception as e:
            entries = []
            text = f"error - {e}"
        self.app.call_from_thread(self._on_quotations_loaded, entries, text)

    def _on_quotations_loaded(self, entries: list[dict], text: str) -> None:
        self._all_quotations = entries
        self._update_label("registry-info", text)
        self._apply_filter()

    # --- Filtering ---

    def _apply_filter(self) -> None:
        status = self.query_one("#filter-status", Select).value
        filtered = self._all_quotations
        if status != "all":
            filtered = [q for q in filtered if q.get("status") == status]
        self._populate_table(filtered)

    def _populate_table(self, entries: list[dict]) -> None:
        table = self.query_one("#quotations-table", DataTable)
        table.clear(columns=True)
        table.add_columns("Date", "Number", "Status", "Buyer", "Total")

        for entry in entries:
            details = entry.get("invoice_details") or {}
            date_str = format_invoice_date(details.get("invoiceDate", "")) or (
                entry.get("created_at") or ""
            )[:10]
            status = entry.get("status", "")
            table.add_row(
                date_str,
                entry.get("quotation_no", ""),
                STATUS_STYLES.get(status, status),
                entry.get("buyer_name", ""),
                format_inr(entry.get("total_after_tax")),
                key=entry["id"],
            )

        has_rows = table.row_count > 0
        table.display = has_rows
        self.query_one("#empty-state", Static).display = not has_rows

    # --- Event handlers ---

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id == "filter-status":
            self._apply_filter()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        match event.button.id:
            case "btn-new":
                self.action_new_quotation()
            case "btn-open":
                self.action_open()
            case "btn-duplicate":
                self.action_duplicate()
            case "btn-convert":
                self.action_convert()
            case "btn-pdf":
                self.action_export_pdf()
            case "btn-delete":
                self.action_delete()

    def _selected_id(self) -> str | None:
        """Return the id of the currently selected row, or None if empty."""
        table = self.query_one("#quotations-table", DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return str(row_key.value)

    def _require_selection(self) -> str | None:
        quotation_id = self._selected_id()
        if not quotation_id:
            self.notify("No quotation selected", severity="warning", timeout=3)
        return quotation_id

    # --- Helpers ---

    def _update_label(self, label_id: str, text: str) -> None:
        self.query_one(f"#{label_id}", Label).update(text)

    def _on_action_done(self, message: str) -> None:
        self.notify(message, timeout=4)
        self._refresh()

    def _on_action_error(self, message: str) -> None:
        self.notify(message, severity="error", timeout=6)

    # --- Actions ---

    def action_new_quotation(self) -> None:
        from gstinvoice.tui.screens.invoice_form import InvoiceFormScreen

        self.app.push_screen(InvoiceFormScreen(), callback=self._on_form_closed)

    def action_open(self) -> None:
        quotation_id = self._require_selection()
        if not quotation_id:
            return
        from gstinvoice.tui.screens.invoice_form import InvoiceFormScreen

        self.app.push_screen(
            InvoiceFormScreen(quotation_id=quotation_id), callback=self._on_form_closed
        )

    def _on_form_closed(self, _changed: bool | None) -> None:
        self._refresh()

    def action_duplicate(self) -> None:
        quotation_id = self._require_selection()
        if quotation_id:
            self._run_duplicate(quotation_id)

    @work(thread=True)
    def _run_duplicate(self, quotation_id: str) -> None:
        try:
            from gstinvoice.utils.registry import duplicate_quotation
            from gstinvoice.utils.sequence import next_quotation_number

            entry = duplicate_quotation(quotation_id, next_quotation_number())
            if entry is None:
                raise LookupError("quotation no longer exists")
            self.app.call_from_thread(
                self._on_action_done, f"Duplicated as {entry['quotation_no']}"
            )
        except Exception as e:
            self.app.call_from_thread(self._on_action_error, f"Duplicate failed: {e}")

    def action_convert(self) -> None:
        quotation_id = self._require_selection()
        if quotation_id:
            self._run_convert(quotation_id)

    @work(thread=True)
    def _run_convert(self, quotation_id: str) -> None:
        try:
            from gstinvoice.utils.registry import convert_to_invoice

            entry = convert_to_invoice(quotation_id)
            if entry is None:
                raise LookupError("quotation no longer exists")
            self.app.call_from_thread(
                self._on_action_done, f"{entry['quotation_no']} marked as invoice"
            )
        except Exception as e:
            self.app.call_from_thread(self._on_action_error, f"Conversion failed: {e}")

    def action_delete(self) -> None:
        quotation_id = self._require_selection()
        if not quotation_id:
            return
        entry = next((q for q in self._all_quotations if q.get("id") == quotation_id), {})
        from gstinvoice.tui.screens.confirm import ConfirmScreen

        self.app.push_screen(
            ConfirmScreen(
                f"Delete {entry.get('quotation_no', 'this quotation')}?\n\n"
                "This cannot be undone.",
                confirm_label="Delete",
            ),
            callback=lambda confirmed: self._on_delete_confirmed(quotation_id, confirmed),
        )

    def _on_delete_confirmed(self, quotation_id: str, confirmed: bool | None) -> None:
        if confirmed:
            self._run_delete(quotation_id)

    @work(thread=True)
    def _run_delete(self, quotation_id: str) -> None:
        try:
            from gstinvoice.utils.registry import delete_quotation

            if not delete_quotation(quotation_id):
                raise LookupError("quotation no longer exists")
            self.app.call_from_thread(self._on_action_done, "Quotation deleted")
        except Exception as e:
            self.app.call_from_thread(self._on_action_error, f"Delete failed: {e}")

    def action_export_pdf(self) -> None:
        quotation_id = self._require_selection()
        if quotation_id:
            self.notify("Generating PDF…", severity="information", timeout=3)
            self._run_export(quotation_id)

    @work(thread=True)
    def _run_export(self, quotation_id: str) -> None:
        from gstinvoice.services import invoice as invoice_service
        from gstinvoice.services.exceptions import InvoiceValidationError

        try:
            entry = invoice_service.find_quotation(quotation_id)
            company = invoice_service.load_company_for(entry)
            if company is None:
                raise LookupError(f"company '{entry.get('company_slug')}' not found")
            draft = invoice_service.from_record(entry, company)
            path = invoice_service.export_pdf(draft)
            self.app.call_from_thread(self._on_action_done, f"PDF saved to: {path}")
        except InvoiceValidationError as e:
            self.app.call_from_thread(
                self._on_action_error, "Incomplete quotation: " + " | ".join(e.errors)
            )
        except Exception as e:
            self.app.call_from_thread(self._on_action_error, f"PDF failed: {e}")

    def action_companies(self) -> None:
        from gstinvoice.tui.screens.parties import CompaniesScreen

        self.app.push_screen(CompaniesScreen(), callback=lambda _: self._refresh())

    def action_buyers(self) -> None:
        from gstinvoice.tui.screens.parties import BuyersScreen

        self.app.push_screen(BuyersScreen())

    def action_help(self) -> None:
        from gstinvoice.tui.screens.help import HelpScreen

        self.app.push_screen(HelpScreen())

    def action_logout(self) -> None:
        self.app.logout()  # type: ignore[attr-defined]

    def action_quit(self) -> None:
        self.app.exit()
