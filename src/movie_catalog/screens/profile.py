"""Profile screen: edit username/role, browse both lists, sign out."""

from __future__ import annotations

from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Input, Label, OptionList, Select
from textual.widgets.option_list import Option

from movie_catalog.messages import escape_rich_text
from movie_catalog.models import USER_ROLES
from movie_catalog.profile import ProfileController
from movie_catalog.screens.common import notify_outcome
from movie_catalog.ui_constants import PROFILE_BINDINGS

_TAB_TITLES = {"watchlist": "Watch later", "seenlist": "Seen"}


class ProfileScreen(Screen):
    """The signed-in user's profile and lists."""

    BINDINGS = PROFILE_BINDINGS

    def __init__(self) -> None:
        super().__init__()
        self._controller: ProfileController | None = None

    @property
    def controller(self) -> ProfileController | None:
        return self._controller

    def compose(self) -> ComposeResult:
        yield Header()
        with Vertical(id="profile-form", classes="form"):
            yield Label("Profile", classes="screen-title")
            yield Label("", id="profile-email", classes="status-line")
            yield Input(placeholder="Username", id="profile-username")
            yield Select(
                [("Regular user", "user"), ("Critic", "critic")],
                value="user",
                allow_blank=False,
                id="profile-role",
            )
            with Horizontal(classes="button-row"):
                yield Button("Sign out", variant="error", id="profile-sign-out")
                yield Button("Save", variant="primary", id="profile-save")
        with Horizontal(classes="button-row"):
            yield Button("Watch later", id="tab-watchlist")
            yield Button("Seen", id="tab-seenlist")
        yield Label("", id="profile-list-title", classes="screen-title")
        yield OptionList(id="profile-list")
        yield Footer()

    def on_mount(self) -> None:
        self._controller = ProfileController(
            self.app.api,  # type: ignore[attr-defined]
            self.app.session_store,  # type: ignore[attr-defined]
        )
        self._render_form()
        self._render_list()
        self.app._track_task(self._load())  # type: ignore[attr-defined]

    async def _load(self) -> None:
        if self._controller is None:
            return
        outcome = await self._controller.load()
        if not outcome.ok:
            notify_outcome(self, outcome, title="Profile")
            return
        self._render_form()
        self._render_list()

    def _render_form(self) -> None:
        profile = self._controller.profile if self._controller else None
        if profile is None:
            return
        self.query_one("#profile-email", Label).update(escape_rich_text(profile.email))
        self.query_one("#profile-username", Input).value = profile.username
        self.query_one("#profile-role", Select).value = (
            profile.role if profile.role in USER_ROLES else "user"
        )

    def _render_list(self) -> None:
        if self._controller is None:
            return
        tab = self._controller.selected_tab
        movies = self._controller.active_list
        self.query_one("#profile-list-title", Label).update(
            f"{_TAB_TITLES[tab]} ({len(movies)})"
        )
        option_list = self.query_one("#profile-list", OptionList)
        option_list.clear_options()
        option_list.add_options([Option(escape_rich_text(movie.title)) for movie in movies])

    @on(Button.Pressed, "#profile-save")
    def on_save(self) -> None:
        if self._controller is None:
            return
        username = self.query_one("#profile-username", Input).value
        role_value = self.query_one("#profile-role", Select).value
        role = role_value if isinstance(role_value, str) else ""
        self.app._track_task(self._save(username, role))  # type: ignore[attr-defined]

    async def _save(self, username: str, role: str) -> None:
        if self._controller is None:
            return
        outcome = await self._controller.save(username, role)
        notify_outcome(self, outcome, title="Profile")
        if outcome.ok:
            self._render_form()

    @on(Button.Pressed, "#profile-sign-out")
    def on_sign_out(self) -> None:
        if self._controller is not None:
            self._controller.sign_out()

    @on(Button.Pressed, "#tab-watchlist")
    def on_watchlist_tab(self) -> None:
        self.action_select_tab("watchlist")

    @on(Button.Pressed, "#tab-seenlist")
    def on_seenlist_tab(self) -> None:
        self.action_select_tab("seenlist")

    def action_select_tab(self, tab: str) -> None:
        if self._controller is None:
            return
        self._controller.select_tab(tab)
        self._render_list()

    def action_back(self) -> None:
        self.app.pop_screen()


__all__ = ["ProfileScreen"]
