"""Catalog screen: debounced search over the popular listing."""

from __future__ import annotations

import logging

from textual import on
from textual.app import ComposeResult
from textual.screen import Screen
from textual.widgets import Footer, Header, Input, Label, OptionList, Static
from textual.widgets.option_list import Option

from movie_catalog.messages import escape_rich_text, format_rating_average
from movie_catalog.models import Movie
from movie_catalog.outcomes import Outcome
from movie_catalog.screens.common import notify_outcome
from movie_catalog.screens.detail import MovieDetailScreen
from movie_catalog.screens.profile import ProfileScreen
from movie_catalog.search import SearchController
from movie_catalog.ui_constants import CATALOG_BINDINGS

logger = logging.getLogger(__name__)


def format_movie_option(movie: Movie) -> str:
    """One list row: title, release year, and both rating averages."""
    year = movie.release_date[:4] if movie.release_date else "----"
    return (
        f"{escape_rich_text(movie.title)} [dim]({year})[/]  "
        f"users {format_rating_average(movie.average_user_rating)}  "
        f"critics {format_rating_average(movie.average_critic_rating)}"
    )


class CatalogScreen(Screen):
    """Search box plus the movie list it drives."""

    BINDINGS = CATALOG_BINDINGS

    def __init__(self) -> None:
        super().__init__()
        self._controller: SearchController | None = None
        self._rendered: list[Movie] | None = None

    @property
    def controller(self) -> SearchController | None:
        return self._controller

    def compose(self) -> ComposeResult:
        yield Header()
        yield Label("Popular movies", id="catalog-title", classes="screen-title")
        yield Input(placeholder="Search movies by title", id="search-input")
        yield OptionList(id="movie-list")
        yield Static("", id="catalog-status", classes="status-line")
        yield Footer()

    def on_mount(self) -> None:
        self._controller = SearchController(
            self.app.api,  # type: ignore[attr-defined]
            debounce_seconds=self.app.config.search_debounce_seconds,  # type: ignore[attr-defined]
            on_change=self._render_state,
            on_error=self._on_search_error,
        )
        self.app._track_task(self._controller.load_default())  # type: ignore[attr-defined]
        self.query_one("#search-input", Input).focus()

    def on_unmount(self) -> None:
        if self._controller is not None:
            self._controller.dispose()

    @on(Input.Changed, "#search-input")
    def on_search_changed(self, event: Input.Changed) -> None:
        if self._controller is not None:
            self._controller.on_text_changed(event.value)

    @on(OptionList.OptionSelected, "#movie-list")
    def on_movie_selected(self, event: OptionList.OptionSelected) -> None:
        if self._controller is None:
            return
        index = event.option_index
        if not 0 <= index < len(self._controller.results):
            return
        movie = self._controller.results[index]
        if movie.tmdb_id is None:
            self.notify("This movie cannot be opened.", severity="warning")
            return
        self.app.push_screen(MovieDetailScreen(movie.tmdb_id))

    def action_focus_search(self) -> None:
        self.query_one("#search-input", Input).focus()

    def action_clear_search(self) -> None:
        self.query_one("#search-input", Input).value = ""

    def action_show_profile(self) -> None:
        self.app.push_screen(ProfileScreen())

    def _render_state(self, controller: SearchController) -> None:
        query = controller.query_text.strip()
        title = f"Results for {escape_rich_text(query)}" if query else "Popular movies"
        self.query_one("#catalog-title", Label).update(title)

        status = self.query_one("#catalog-status", Static)
        if controller.is_loading:
            status.update("Loading...")
        elif not controller.results:
            status.update("No movies found.")
        else:
            status.update(f"{len(controller.results)} movie(s)")

        if controller.results is self._rendered:
            return
        self._rendered = controller.results
        option_list = self.query_one("#movie-list", OptionList)
        option_list.clear_options()
        option_list.add_options(
            [Option(format_movie_option(movie)) for movie in controller.results]
        )

    def _on_search_error(self, outcome: Outcome) -> None:
        notify_outcome(self, outcome, title="Search")


__all__ = ["CatalogScreen", "format_movie_option"]
