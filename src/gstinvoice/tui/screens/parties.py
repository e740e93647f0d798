"""Companies and buyers: list → add/edit form, stored as YAML under the config dir."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from textual import work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, DataTable, Input, Label, Static, TextArea

from gstinvoice.utils.validators import (
    validate_email,
    validate_gstin,
    validate_pan,
    validate_phone,
    validate_required,
    validate_slug,
)

# (key, label, placeholder, multiline)
FieldSpec = tuple[str, str, str, bool]

_COMPANY_FIELDS: tuple[FieldSpec, ...] = (
    ("slug", "Identifier (slug)", "my-company", False),
    ("name", "Company name", "My Events Pvt Ltd", False),
    ("address", "Address", "12 MG Road\nBengaluru 560001", True),
    ("phone", "Phone", "+91 98450 00000", False),
    ("email", "Email", "billing@example.in", False),
    ("gstin", "GST number", "29ABCDE1234F1Z5", False),
    ("pan", "PAN (optional, derived from GSTIN)", "ABCDE1234F", False),
    ("tagline", "Tagline (optional)", "AN EVENT MANAGEMENT COMPANY", False),
    ("logo_path", "Logo image (optional)", "/path/to/logo.png", False),
    ("signature_path", "Signature image (optional)", "/path/to/signature.png", False),
)

_BUYER_FIELDS: tuple[FieldSpec, ...] = (
    ("slug", "Identifier (slug)", "acme-retail", False),
    ("name", "Buyer name", "Acme Retail LLP", False),
    ("address", "Address", "4th Floor, Tower B\nGurugram 122002", True),
    ("gstin", "GST number (optional)", "06AAACA1234B1Z2", False),
    ("phone", "Phone (optional)", "+91 124 400 0000", False),
    ("email", "Email (optional)", "accounts@acme.example", False),
)


class PartyScreen(ModalScreen[bool]):
    """Two-phase modal: list records → add/edit form. Subclasses bind it to a store."""

    TITLE_TEXT = ""
    NOUN = ""
    FIELDS: tuple[FieldSpec, ...] = ()
    COLUMNS: tuple[str, ...] = ()

    BINDINGS = [
        Binding("escape", "go_back", "Back"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._phase = "list"
        self._editing_slug: str | None = None
        self._confirm_delete: str | None = None
        self._changed = False

    # --- Store hooks ---

    def _list(self) -> list[str]:
        raise NotImplementedError

    def _load(self, slug: str) -> dict:
        raise NotImplementedError

    def _save(self, slug: str, data: dict) -> None:
        raise NotImplementedError

    def _delete(self, slug: str) -> None:
        raise NotImplementedError

    def _row(self, slug: str, data: dict) -> tuple[str, ...]:
        raise NotImplementedError

    def _validate(self, values: dict[str, str]) -> tuple[dict, list[str]]:
        raise NotImplementedError

    def _prepare(self, data: dict) -> dict:
        """Last step before saving; runs in the save worker."""
        return data

    # --- Layout ---

    def compose(self) -> ComposeResult:
        with Vertical(id="modal-dialog"):
            with Horizontal(id="modal-title-bar"):
                yield Static(self.TITLE_TEXT, id="header-bar")
                yield Button("✕", id="btn-modal-close")

            # Phase 1: List
            with Container(id="party-list-container"):
                yield DataTable(id="party-table", cursor_type="row")
                with Horizontal(classes="button-bar"):
                    yield Button("✕ Close", id="btn-party-close", variant="error")
                    yield Button(
                        "▶ Edit",
                        id="btn-party-edit",
                        tooltip=f"Edit selected {self.NOUN}",
                    )
                    yield Button(
                        "✖ Delete",
                        id="btn-party-delete",
                        variant="warning",
                        tooltip=f"Delete selected {self.NOUN}",
                    )
                    yield Button(
                        f"▶ New {self.NOUN}",
                        id="btn-party-new",
                        variant="primary",
                        tooltip=f"Add a new {self.NOUN}",
                    )

            # Phase 2: Form
            with VerticalScroll(id="party-form-container"):
                for key, label, placeholder, multiline in self.FIELDS:
                    yield Label(label, classes="form-label")
                    if multiline:
                        yield TextArea(id=f"field-{key}", classes="address-input")
                    else:
                        yield Input(placeholder=placeholder, id=f"field-{key}")
                yield Label("", id="party-error-label")
                with Horizontal(classes="button-bar"):
                    yield Button("← Back", id="btn-form-back", variant="error")
                    yield Button(
                        "✖ Delete",
                        id="btn-form-delete",
                        variant="warning",
                        tooltip=f"Delete this {self.NOUN} permanently",
                    )
                    yield Button("▶ Save", id="btn-party-save", variant="success")

    def on_mount(self) -> None:
        self._show_phase("list")
        self._load_rows()
        self.query_one("#party-table", DataTable).focus()

    def _show_phase(self, phase: str) -> None:
        self._phase = phase
        self.query_one("#party-list-container").display = phase == "list"
        self.query_one("#party-form-container").display = phase == "form"

    # --- List ---

    @work(thread=True)
    def _load_rows(self) -> None:
        rows = []
        try:
            for slug in self._list():
                try:
                    rows.append(self._row(slug, self._load(slug)))
                except Exception:
                    rows.append((slug, "error", *[""] * (len(self.COLUMNS) - 2)))
        except Exception:
            rows = []
        self.app.call_from_thread(self._populate_table, rows)

    def _populate_table(self, rows: list[tuple[str, ...]]) -> None:
        table = self.query_one("#party-table", DataTable)
        table.clear(columns=True)
        table.add_columns(*self.COLUMNS)
        for row in rows:
            table.add_row(*row, key=row[0])

    def on_button_pressed(self, event: Button.Pressed) -> None:
        match event.button.id:
            case "btn-party-close" | "btn-modal-close":
                self.dismiss(self._changed)
            case "btn-party-edit":
                self._edit_selected()
            case "btn-party-new":
                self._open_new_form()
            case "btn-form-back":
                self._show_phase("list")
            case "btn-party-save":
                self._do_save()
            case "btn-party-delete":
                self._delete_selected()
            case "btn-form-delete":
                if self._editing_slug:
                    self._request_delete(self._editing_slug)

    def on_data_table_row_selected(self, event: DataTable.RowSelected) -> None:
        self._open_edit_form(str(event.row_key.value))

    def _selected_slug(self) -> str | None:
        table = self.query_one("#party-table", DataTable)
        if table.row_count == 0:
            self.notify(f"No {self.NOUN} selected", severity="warning", timeout=3)
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return str(row_key.value)

    def _edit_selected(self) -> None:
        slug = self._selected_slug()
        if slug:
            self._open_edit_form(slug)

    # --- Form ---

    def _set_value(self, key: str, value: str) -> None:
        widget = self.query_one(f"#field-{key}")
        if isinstance(widget, TextArea):
            widget.text = value
        else:
            widget.value = value  # type: ignore[attr-defined]

    def _get_value(self, key: str) -> str:
        widget = self.query_one(f"#field-{key}")
        if isinstance(widget, TextArea):
            return widget.text.strip()
        return widget.value.strip()  # type: ignore[attr-defined]

    def _open_new_form(self) -> None:
        self._editing_slug = None
        self._confirm_delete = None
        self._clear_form()
        self.query_one("#field-slug", Input).disabled = False
        self.query_one("#btn-form-delete", Button).display = False
        self._show_phase("form")
        self.query_one("#field-slug", Input).focus()

    def _open_edit_form(self, slug: str) -> None:
        self._editing_slug = slug
        self._confirm_delete = None
        self._clear_form()
        self.query_one("#field-slug", Input).disabled = True
        self.query_one("#btn-form-delete", Button).display = True
        self._load_into_form(slug)

    @work(thread=True)
    def _load_into_form(self, slug: str) -> None:
        try:
            data = self._load(slug)
        except Exception:
            data = {}
        self.app.call_from_thread(self._fill_form, slug, data)

    def _fill_form(self, slug: str, data: dict) -> None:
        merged = {**data, "slug": slug}
        for key, *_ in self.FIELDS:
            self._set_value(key, str(merged.get(key) or ""))
        self._show_phase("form")
        self.query_one("#field-name", Input).focus()

    def _clear_form(self) -> None:
        for key, *_ in self.FIELDS:
            self._set_value(key, "")
        self.query_one("#party-error-label", Label).update("")

    def _do_save(self) -> None:
        error_label = self.query_one("#party-error-label", Label)
        error_label.update("")

        values = {key: self._get_value(key) for key, *_ in self.FIELDS}
        data, errors = self._validate(values)

        slug = self._editing_slug or values["slug"]
        if not self._editing_slug:
            try:
                validate_slug(slug)
                if slug in self._list():
                    errors.insert(0, "Slug already exists")
            except ValueError as e:
                errors.insert(0, str(e))

        if errors:
            error_label.update(" | ".join(errors))
            return
        self._run_save(slug, data)

    @work(thread=True)
    def _run_save(self, slug: str, data: dict) -> None:
        try:
            self._save(slug, self._prepare(data))
            self.app.call_from_thread(self._on_save_done, slug)
        except Exception as e:
            self.app.call_from_thread(self._on_save_error, str(e))

    def _on_save_done(self, slug: str) -> None:
        self._changed = True
        self.notify(f"{self.NOUN.capitalize()} '{slug}' saved", timeout=3)
        self._show_phase("list")
        self._load_rows()

    def _on_save_error(self, msg: str) -> None:
        self.query_one("#party-error-label", Label).update(f"Error: {msg}")

    # --- Delete ---

    def _delete_selected(self) -> None:
        slug = self._selected_slug()
        if slug:
            self._request_delete(slug)

    def _request_delete(self, slug: str) -> None:
        """First press = ask confirmation; second press = execute delete."""
        if self._confirm_delete == slug:
            self._run_delete(slug)
        else:
            self._confirm_delete = slug
            self.notify(
                f"Press again to confirm deleting '{slug}'",
                severity="warning",
                timeout=4,
            )

    @work(thread=True)
    def _run_delete(self, slug: str) -> None:
        try:
            self._delete(slug)
            self.app.call_from_thread(self._on_delete_done, slug)
        except Exception as e:
            self.app.call_from_thread(self._on_delete_error, str(e))

    def _on_delete_done(self, slug: str) -> None:
        self._confirm_delete = None
        self._changed = True
        self.notify(f"{self.NOUN.capitalize()} '{slug}' deleted", timeout=3)
        self._show_phase("list")
        self._load_rows()

    def _on_delete_error(self, msg: str) -> None:
        self._confirm_delete = None
        self.notify(f"Delete failed: {msg}", severity="error", timeout=5)

    def action_go_back(self) -> None:
        self._confirm_delete = None
        if self._phase == "form":
            self._show_phase("list")
        else:
            self.dismiss(self._changed)


def _collect(checks: list[tuple[str, Callable[[], str]]], errors: list[str]) -> dict:
    """Run (key, thunk) validators, gathering messages instead of stopping at the first."""
    data = {}
    for key, check in checks:
        try:
            data[key] = check()
        except ValueError as e:
            errors.append(str(e))
    return data


class CompaniesScreen(PartyScreen):
    TITLE_TEXT = "Companies"
    NOUN = "company"
    FIELDS = _COMPANY_FIELDS
    COLUMNS = ("Slug", "Name", "GSTIN", "Phone")

    def _list(self) -> list[str]:
        from gstinvoice.config import list_companies

        return list_companies()

    def _load(self, slug: str) -> dict:
        from gstinvoice.config import load_company

        return load_company(slug)

    def _save(self, slug: str, data: dict) -> None:
        from gstinvoice.config import save_company

        save_company(slug, data)

    def _delete(self, slug: str) -> None:
        from gstinvoice.config import delete_company

        delete_company(slug)

    def _row(self, slug: str, data: dict) -> tuple[str, ...]:
        return (slug, data.get("name", ""), data.get("gstin", ""), str(data.get("phone", "")))

    def _validate(self, v: dict[str, str]) -> tuple[dict, list[str]]:
        errors: list[str] = []
        data = _collect(
            [
                ("name", lambda: validate_required(v["name"], "Company name")),
                ("address", lambda: validate_required(v["address"], "Company address")),
                ("phone", lambda: validate_phone(v["phone"])),
                ("email", lambda: validate_email(v["email"])),
                ("gstin", lambda: validate_gstin(v["gstin"])),
            ],
            errors,
        )
        if v["pan"]:
            data.update(_collect([("pan", lambda: validate_pan(v["pan"]))], errors))
        if v["tagline"]:
            data["tagline"] = v["tagline"]
        for key in ("logo_path", "signature_path"):
            if v[key]:
                if Path(v[key]).expanduser().is_file():
                    data[key] = v[key]
                else:
                    errors.append(f"File not found: {v[key]}")
        return data, errors

    def _prepare(self, data: dict) -> dict:
        """Copy newly picked images into the data dir so the YAML never points elsewhere."""
        from gstinvoice.config import ASSETS_DIR_NAME, get_data_dir, store_asset

        assets = (get_data_dir() / ASSETS_DIR_NAME).resolve()
        for key, prefix in (("logo_path", "logo_"), ("signature_path", "signature_")):
            path = data.get(key)
            if path and Path(path).expanduser().resolve().parent != assets:
                data[key] = str(store_asset(path, prefix=prefix))
        return data


class BuyersScreen(PartyScreen):
    TITLE_TEXT = "Buyers"
    NOUN = "buyer"
    FIELDS = _BUYER_FIELDS
    COLUMNS = ("Slug", "Name", "GSTIN", "Phone")

    def _list(self) -> list[str]:
        from gstinvoice.config import list_buyers

        return list_buyers()

    def _load(self, slug: str) -> dict:
        from gstinvoice.config import load_buyer

        return load_buyer(slug)

    def _save(self, slug: str, data: dict) -> None:
        from gstinvoice.config import save_buyer

        save_buyer(slug, data)

    def _delete(self, slug: str) -> None:
        from gstinvoice.config import delete_buyer

        delete_buyer(slug)

    def _row(self, slug: str, data: dict) -> tuple[str, ...]:
        return (slug, data.get("name", ""), data.get("gstin", ""), str(data.get("phone", "")))

    def _validate(self, v: dict[str, str]) -> tuple[dict, list[str]]:
        errors: list[str] = []
        data = _collect(
            [
                ("name", lambda: validate_required(v["name"], "Buyer name")),
                ("address", lambda: validate_required(v["address"], "Buyer address")),
            ],
            errors,
        )
        optional = (("gstin", validate_gstin), ("phone", validate_phone), ("email", validate_email))
        for key, check in optional:
            if v[key]:
                data.update(_collect([(key, lambda c=check, k=key: c(v[k]))], errors))
        return data, errors
