from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, RichLog, Static


class HelpScreen(ModalScreen):
    """Keyboard shortcuts and a short guide to the GST options."""

    BINDINGS = [
        Binding("escape", "go_back", "Back"),
    ]

    def compose(self) -> ComposeResult:
        with Vertical(id="modal-dialog"):
            with Horizontal(id="modal-title-bar"):
                yield Static("Help", id="header-bar")
                yield Button("✕", id="btn-modal-close")
            yield RichLog(id="help-content", wrap=True, markup=True)
            with Horizontal(classes="button-bar"):
                yield Button("✕ Close", id="btn-help-close")

    def on_mount(self) -> None:
        log = self.query_one("#help-content", RichLog)

        log.write("[bold]GST Invoice Maker[/bold]")
        log.write("")
        log.write(
            "Prepare quotations and GST tax invoices for your companies, keep them "
            "locally and print them as A4 PDFs."
        )
        log.write("")

        log.write("[bold]Keyboard shortcuts[/bold]")
        log.write("")
        log.write("  [bold cyan]n[/bold cyan]      New            Start a new quotation")
        log.write("  [bold cyan]enter[/bold cyan]  Open           Edit the selected quotation")
        log.write("  [bold cyan]r[/bold cyan]      Duplicate      Copy under a new number")
        log.write("  [bold cyan]i[/bold cyan]      To invoice     Mark the selected quotation as invoiced")
        log.write("  [bold cyan]p[/bold cyan]      PDF            Save as invoice and write the PDF")
        log.write("  [bold cyan]d[/bold cyan]      Delete         Delete the selected quotation")
        log.write("  [bold cyan]c[/bold cyan]      Companies      Manage seller companies")
        log.write("  [bold cyan]b[/bold cyan]      Buyers         Manage saved buyers")
        log.write("  [bold cyan]h[/bold cyan]      Help           This screen")
        log.write("  [bold cyan]o[/bold cyan]      Logout         Back to the login screen")
        log.write("  [bold cyan]q[/bold cyan]      Quit           Exit the application")
        log.write("")
        log.write("[bold]Table navigation[/bold]")
        log.write("")
        log.write("  [bold cyan]j / ↓[/bold cyan]  Next row")
        log.write("  [bold cyan]k / ↑[/bold cyan]  Previous row")
        log.write("")

        log.write("[bold]GST type[/bold]")
        log.write("")
        log.write("  [bold]Intra-State[/bold]  tax is shown as CGST + SGST, half the rate each")
        log.write("  [bold]Inter-State[/bold]  tax is shown as a single IGST line")
        log.write("  [bold]None[/bold]         no tax is charged")
        log.write("")
        log.write(
            "Items marked as exempt never carry tax. Amounts are rounded half-up to "
            "two decimals per line before they are totalled."
        )
        log.write("")

        log.write("[bold yellow]Disclaimer[/bold yellow]")
        log.write("")
        log.write(
            "This software is provided \"as is\", without warranty of any kind. "
            "You are responsible for checking that your invoices comply with GST "
            "rules. Ask your accountant when in doubt."
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id in ("btn-help-close", "btn-modal-close"):
            self.app.pop_screen()

    def action_go_back(self) -> None:
        self.app.pop_screen()
