"""Sign-in screen."""

from __future__ import annotations

import logging

from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Input, Label, Static

from movie_catalog.auth import login
from movie_catalog.messages import escape_rich_text
from movie_catalog.screens.catalog import CatalogScreen
from movie_catalog.screens.common import notify_outcome
from movie_catalog.screens.register import RegisterModal

logger = logging.getLogger(__name__)


class LoginScreen(Screen):
    """Sign in with an email address or a username."""

    CSS = """
    LoginScreen {
        align: center middle;
    }
    """

    def __init__(self) -> None:
        super().__init__()
        self._busy = False

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="login-form", classes="form"):
            yield Label("Sign in", classes="screen-title")
            yield Input(placeholder="Email or username", id="login-identifier")
            yield Input(placeholder="Password", password=True, id="login-password")
            yield Static("", id="login-status", classes="status-line")
            with Horizontal(classes="button-row"):
                yield Button("Register", variant="default", id="login-register")
                yield Button("Sign in", variant="primary", id="login-submit")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#login-identifier", Input).focus()

    @on(Button.Pressed, "#login-submit")
    @on(Input.Submitted, "#login-password")
    def on_submit(self) -> None:
        if self._busy:
            return
        identifier = self.query_one("#login-identifier", Input).value
        password = self.query_one("#login-password", Input).value
        self._set_busy(True)
        self.app._track_task(self._sign_in(identifier, password))  # type: ignore[attr-defined]

    @on(Input.Submitted, "#login-identifier")
    def on_identifier_submitted(self) -> None:
        self.query_one("#login-password", Input).focus()

    @on(Button.Pressed, "#login-register")
    def on_register(self) -> None:
        self.app.push_screen(RegisterModal(), self._on_registered)

    def _on_registered(self, signed_in: bool | None) -> None:
        if signed_in:
            self._open_catalog()

    async def _sign_in(self, identifier: str, password: str) -> None:
        try:
            outcome = await login(
                api=self.app.api,  # type: ignore[attr-defined]
                session_store=self.app.session_store,  # type: ignore[attr-defined]
                identifier=identifier,
                password=password,
            )
        finally:
            self._set_busy(False)
        if outcome.ok:
            self.query_one("#login-password", Input).value = ""
            notify_outcome(self, outcome, title="Signed in")
            self._open_catalog()
            return
        self.query_one("#login-status", Static).update(escape_rich_text(outcome.message))
        self.query_one("#login-status", Static).add_class("error")

    def _set_busy(self, busy: bool) -> None:
        self._busy = busy
        self.query_one("#login-submit", Button).disabled = busy

    def _open_catalog(self) -> None:
        self.app.switch_screen(CatalogScreen())


__all__ = ["LoginScreen"]
