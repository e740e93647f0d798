from __future__ import annotations

from textual.app import App
from textual.binding import Binding


class GstInvoiceApp(App):
    """GST Invoice Maker TUI application."""

    CSS_PATH = "app.tcss"
    TITLE = "GST Invoice Maker"
    ENABLE_COMMAND_PALETTE = False

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit", priority=True),
    ]

    def __init__(self, require_login: bool = True):
        super().__init__()
        self.require_login = require_login
        self.user_email: str | None = None

    def on_mount(self) -> None:
        if self.require_login:
            self._show_login()
        else:
            self._show_dashboard()

    def _show_login(self) -> None:
        from gstinvoice.tui.screens.login import LoginScreen

        self.push_screen(LoginScreen(), callback=self._on_login)

    def _on_login(self, email: str | None) -> None:
        if email:
            self.user_email = email
            self._show_dashboard()

    def _show_dashboard(self) -> None:
        from gstinvoice.tui.screens.dashboard import DashboardScreen

        self.push_screen(DashboardScreen())

    def logout(self) -> None:
        """Drop back to the login screen, closing everything above it."""
        self.user_email = None
        while len(self.screen_stack) > 1:
            self.pop_screen()
        if self.require_login:
            self._show_login()
        else:
            self.exit()
