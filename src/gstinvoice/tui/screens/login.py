from __future__ import annotations

from textual import work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Button, Input, Label, Static

LOGIN_ERROR = "Invalid email or password"


class LoginScreen(Screen[str]):
    """Login gate. Dismisses with the e-mail that signed in."""

    def compose(self) -> ComposeResult:
        with Vertical(id="login-dialog"):
            yield Static("GST Invoice Maker", id="login-title")
            yield Label("Email", classes="form-label")
            yield Input(placeholder="you@example.in", id="login-email")
            yield Label("Password", classes="form-label")
            yield Input(placeholder="Password", password=True, id="login-password")
            yield Label("", id="login-error")
            with Horizontal(classes="button-bar"):
                yield Button("✕ Quit", id="btn-login-quit")
                yield Button("▶ Login", id="btn-login", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#login-email", Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "login-email":
            self.query_one("#login-password", Input).focus()
        else:
            self._do_login()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        match event.button.id:
            case "btn-login":
                self._do_login()
            case "btn-login-quit":
                self.app.exit()

    def _do_login(self) -> None:
        email = self.query_one("#login-email", Input).value.strip()
        password = self.query_one("#login-password", Input).value
        self.query_one("#login-error", Label).update("")
        if not email or not password:
            self._on_failure()
            return
        self.query_one("#btn-login", Button).disabled = True
        self._run_login(email, password)

    @work(thread=True)
    def _run_login(self, email: str, password: str) -> None:
        from gstinvoice.services.auth import authenticate

        if authenticate(email, password):
            self.app.call_from_thread(self.dismiss, email)
        else:
            self.app.call_from_thread(self._on_failure)

    def _on_failure(self) -> None:
        self.query_one("#login-error", Label).update(LOGIN_ERROR)
        self.query_one("#btn-login", Button).disabled = False
        password = self.query_one("#login-password", Input)
        password.value = ""
        password.focus()
