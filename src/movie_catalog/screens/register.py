"""Account registration modal."""

from __future__ import annotations

from textual import on
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Select, Static

from movie_catalog.auth import PASSWORD_MIN_LENGTH, register
from movie_catalog.messages import escape_rich_text
from movie_catalog.screens.common import notify_outcome


class RegisterModal(ModalScreen[bool]):
    """Create an account. Dismisses with True when the user ends up signed in."""

    BINDINGS = [
        Binding("escape", "cancel", "Cancel"),
    ]

    CSS = """
    RegisterModal {
        align: center middle;
    }
    """

    def __init__(self) -> None:
        super().__init__()
        self._busy = False

    def compose(self) -> ComposeResult:
        with Vertical(id="register-form", classes="form"):
            yield Label("Create an account", classes="screen-title")
            yield Input(placeholder="Username", id="register-username")
            yield Input(placeholder="Email", id="register-email")
            yield Input(
                placeholder=f"Password (at least {PASSWORD_MIN_LENGTH} characters)",
                password=True,
                id="register-password",
            )
            yield Select(
                [("Regular user", "user"), ("Critic", "critic")],
                value="user",
                allow_blank=False,
                id="register-role",
            )
            yield Static("", id="register-status", classes="status-line")
            with Horizontal(classes="button-row"):
                yield Button("Cancel (Esc)", variant="default", id="register-cancel")
                yield Button("Register", variant="primary", id="register-submit")

    def on_mount(self) -> None:
        self.query_one("#register-username", Input).focus()

    @on(Button.Pressed, "#register-submit")
    def on_submit(self) -> None:
        if self._busy:
            return
        role_value = self.query_one("#register-role", Select).value
        role = role_value if isinstance(role_value, str) else ""
        self._busy = True
        self.app._track_task(  # type: ignore[attr-defined]
            self._register(
                self.query_one("#register-username", Input).value,
                self.query_one("#register-email", Input).value,
                self.query_one("#register-password", Input).value,
                role,
            )
        )

    @on(Button.Pressed, "#register-cancel")
    def action_cancel(self) -> None:
        self.dismiss(False)

    async def _register(self, username: str, email: str, password: str, role: str) -> None:
        try:
            outcome = await register(
                api=self.app.api,  # type: ignore[attr-defined]
                session_store=self.app.session_store,  # type: ignore[attr-defined]
                username=username,
                email=email,
                password=password,
                role=role,
            )
        finally:
            self._busy = False
        if not outcome.ok:
            status = self.query_one("#register-status", Static)
            status.update(escape_rich_text(outcome.message))
            status.add_class("error")
            return
        notify_outcome(self, outcome, title="Registration")
        self.dismiss(self.app.session_store.is_authenticated)  # type: ignore[attr-defined]


__all__ = ["RegisterModal"]
