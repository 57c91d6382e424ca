"""Movie detail screen: list membership and comments for one movie."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable

from textual import on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Input, Label, Select, Static

from movie_catalog.detail import MovieDetailController
from movie_catalog.messages import (
    escape_rich_text,
    format_rating_average,
    format_stars,
)
from movie_catalog.models import COMMENT_MAX_LENGTH, RATING_MAX, RATING_MIN, Comment, Movie
from movie_catalog.outcomes import OUTCOME_AUTH_EXPIRED, Outcome
from movie_catalog.screens.common import notify_outcome
from movie_catalog.ui_constants import DETAIL_BINDINGS

logger = logging.getLogger(__name__)


def format_comment(comment: Comment) -> str:
    role = " (critic)" if comment.role == "critic" else ""
    return (
        f"[b]{escape_rich_text(comment.username)}[/]{role}  {format_stars(comment.rating)}\n"
        f"{escape_rich_text(comment.content)}"
    )


def format_movie_meta(movie: Movie) -> str:
    lines = []
    if movie.release_date:
        lines.append(f"Released: {escape_rich_text(movie.release_date)}")
    if movie.categories:
        lines.append(f"Genres: {escape_rich_text(', '.join(movie.categories))}")
    if movie.cast:
        lines.append(f"Cast: {escape_rich_text(', '.join(movie.cast))}")
    lines.append(
        f"Users {format_rating_average(movie.average_user_rating)}  "
        f"Critics {format_rating_average(movie.average_critic_rating)}"
    )
    return "\n".join(lines)


class MovieDetailScreen(Screen):
    """Shows one movie and lets the user file it and rate it."""

    BINDINGS = DETAIL_BINDINGS

    def __init__(self, tmdb_id: int) -> None:
        super().__init__()
        self._tmdb_id = tmdb_id
        self._controller: MovieDetailController | None = None
        self._busy = False

    @property
    def controller(self) -> MovieDetailController | None:
        return self._controller

    def compose(self) -> ComposeResult:
        yield Header()
        with VerticalScroll(id="detail-scroll"):
            yield Label("Loading...", id="detail-title", classes="screen-title")
            yield Static("", id="detail-meta")
            yield Static("", id="detail-description")
            with Horizontal(classes="button-row"):
                yield Button("Watch later", id="detail-watchlist", disabled=True)
                yield Button("Mark as seen", variant="primary", id="detail-seen", disabled=True)
            yield Static("", id="detail-membership", classes="status-line")
            yield Label("Your comment", classes="screen-title")
            yield Static("", id="own-comment", classes="comment own")
            with Vertical(id="comment-form"):
                yield Input(
                    placeholder=f"Your comment (max {COMMENT_MAX_LENGTH} characters)",
                    max_length=COMMENT_MAX_LENGTH,
                    id="comment-content",
                )
                yield Select(
                    [(format_stars(n), n) for n in range(RATING_MIN, RATING_MAX + 1)],
                    prompt="Rating",
                    id="comment-rating",
                )
                with Horizontal(classes="button-row"):
                    yield Button("Publish", variant="primary", id="comment-submit")
            yield Label("Comments", classes="screen-title")
            yield Vertical(id="other-comments")
        yield Footer()

    def on_mount(self) -> None:
        self._controller = MovieDetailController(
            self.app.api,  # type: ignore[attr-defined]
            self.app.session_store,  # type: ignore[attr-defined]
        )
        self.app._track_task(self._load())  # type: ignore[attr-defined]

    async def _load(self) -> None:
        controller = self._controller
        if controller is None:
            return
        outcome = await controller.load(self._tmdb_id)
        if outcome.kind == OUTCOME_AUTH_EXPIRED:
            return
        if not outcome.ok:
            self.query_one("#detail-title", Label).update("Movie unavailable")
            notify_outcome(self, outcome, title="Movie")
            return
        for step in (controller.lists_outcome, controller.comments_outcome):
            if step is not None and not step.ok:
                notify_outcome(self, step, title="Movie")
        await self._render_all()

    async def _render_all(self) -> None:
        controller = self._controller
        if controller is None or controller.movie is None:
            return
        movie = controller.movie
        self.query_one("#detail-title", Label).update(escape_rich_text(movie.title))
        self.query_one("#detail-meta", Static).update(format_movie_meta(movie))
        self.query_one("#detail-description", Static).update(
            escape_rich_text(movie.description)
        )
        self._render_membership()
        await self._render_comments()

    def _render_membership(self) -> None:
        engagement = self._controller.engagement if self._controller else None
        watch_button = self.query_one("#detail-watchlist", Button)
        seen_button = self.query_one("#detail-seen", Button)
        status = self.query_one("#detail-membership", Static)
        if engagement is None or not engagement.is_known:
            watch_button.disabled = True
            seen_button.disabled = True
            status.update("List membership unavailable.")
            return
        watch_button.label = (
            "Remove from Watch later" if engagement.in_watchlist else "Watch later"
        )
        watch_button.disabled = self._busy or engagement.in_seenlist
        seen_button.disabled = self._busy or engagement.in_seenlist
        if engagement.in_seenlist:
            status.update("You have seen this movie.")
        elif engagement.in_watchlist:
            status.update("In your Watch later list.")
        else:
            status.update("")

    async def _render_comments(self) -> None:
        comments = self._controller.comments if self._controller else None
        own = self.query_one("#own-comment", Static)
        form = self.query_one("#comment-form", Vertical)
        container = self.query_one("#other-comments", Vertical)
        await container.remove_children()
        if comments is None:
            own.update("")
            form.display = False
            return
        if comments.own_comment is not None:
            own.update(format_comment(comments.own_comment))
            own.display = True
            form.display = False
        else:
            own.display = False
            form.display = True
        if not comments.other_comments:
            await container.mount(Static("No comments yet.", classes="status-line"))
            return
        await container.mount_all(
            Static(format_comment(comment), classes="comment")
            for comment in comments.other_comments
        )

    def _run(self, operation: Callable[[], Awaitable[Outcome]], title: str) -> None:
        if self._busy or self._controller is None:
            return
        self._busy = True
        self._render_membership()
        self.app._track_task(self._perform(operation, title))  # type: ignore[attr-defined]

    async def _perform(self, operation: Callable[[], Awaitable[Outcome]], title: str) -> None:
        try:
            outcome = await operation()
        finally:
            self._busy = False
        if outcome.kind == OUTCOME_AUTH_EXPIRED:
            return
        notify_outcome(self, outcome, title=title)
        await self._render_all()

    @on(Button.Pressed, "#detail-watchlist")
    def action_toggle_watchlist(self) -> None:
        if self._controller is not None:
            self._run(self._controller.toggle_watchlist, "Watch later")

    @on(Button.Pressed, "#detail-seen")
    def action_mark_seen(self) -> None:
        if self._controller is not None:
            self._run(self._controller.mark_seen, "Seen")

    @on(Button.Pressed, "#comment-submit")
    @on(Input.Submitted, "#comment-content")
    def on_comment_submit(self) -> None:
        controller = self._controller
        if controller is None:
            return
        content = self.query_one("#comment-content", Input).value
        rating_value = self.query_one("#comment-rating", Select).value
        rating = rating_value if isinstance(rating_value, int) else None

        async def _submit() -> Outcome:
            outcome = await controller.submit_comment(content, rating)
            if outcome.ok:
                self.query_one("#comment-content", Input).value = ""
            return outcome

        self._run(_submit, "Comment")

    def action_back(self) -> None:
        self.app.pop_screen()


__all__ = ["MovieDetailScreen", "format_comment", "format_movie_meta"]
