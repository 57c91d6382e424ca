"""Movie detail screen state: movie, list membership, and comments."""

from __future__ import annotations

import asyncio
import logging

from movie_catalog.api_client import ApiClient
from movie_catalog.comments import CommentReconciler
from movie_catalog.engagement import EngagementStateMachine
from movie_catalog.errors import ApiError, ApiStatusError
from movie_catalog.messages import build_actionable_error
from movie_catalog.models import Movie, UserProfile
from movie_catalog.outcomes import (
    OUTCOME_AUTH_EXPIRED,
    OUTCOME_ERROR,
    Outcome,
    outcome_from_error,
    refused,
    succeeded,
)
from movie_catalog.session import SessionStore

logger = logging.getLogger(__name__)


class MovieDetailController:
    """Loads one movie and wires its engagement and comment state."""

    def __init__(self, api: ApiClient, session_store: SessionStore) -> None:
        self._api = api
        self._session_store = session_store
        self.tmdb_id: int | None = None
        self.movie: Movie | None = None
        self.user: UserProfile | None = None
        self.engagement: EngagementStateMachine | None = None
        self.comments: CommentReconciler | None = None
        self.lists_outcome: Outcome | None = None
        self.comments_outcome: Outcome | None = None

    async def _fetch_movie(self, tmdb_id: int) -> Movie:
        try:
            return await self._api.get_movie_by_tmdb_id(tmdb_id)
        except ApiStatusError as exc:
            if exc.status_code != 404:
                raise
        logger.info("Movie %s not in the catalog yet; importing it", tmdb_id)
        return await self._api.save_movie_from_tmdb(tmdb_id)

    async def load(self, tmdb_id: int) -> Outcome:
        """Fetch profile and movie together, then memberships, then comments.

        A failure of the lists or comments step does not fail the load; the
        step's outcome is kept on ``lists_outcome`` / ``comments_outcome``.
        """
        self.tmdb_id = tmdb_id
        try:
            user, movie = await asyncio.gather(
                self._api.get_profile(), self._fetch_movie(tmdb_id)
            )
        except ApiError as exc:
            return outcome_from_error("load the movie", exc)

        self.user = user
        self.movie = movie
        self._session_store.update_user(user)

        if not movie.id:
            logger.warning("Movie %s has no internal id; lists and comments disabled", tmdb_id)
            self.engagement = None
            self.comments = None
            return succeeded()

        self.engagement = EngagementStateMachine(self._api, movie.id)
        self.comments = CommentReconciler(
            self._api, session_store=self._session_store, engagement=self.engagement
        )

        self.lists_outcome = await self.engagement.load()
        if self.lists_outcome.kind == OUTCOME_AUTH_EXPIRED:
            return self.lists_outcome
        self.comments_outcome = await self.comments.load(movie.id, user.id)
        if self.comments_outcome.kind == OUTCOME_AUTH_EXPIRED:
            return self.comments_outcome
        return succeeded()

    def _not_ready(self) -> Outcome:
        return refused("The movie is still loading.")

    async def toggle_watchlist(self) -> Outcome:
        if self.engagement is None:
            return self._not_ready()
        return await self.engagement.toggle_watchlist()

    async def mark_seen(self) -> Outcome:
        if self.engagement is None:
            return self._not_ready()
        return await self.engagement.mark_seen()

    async def submit_comment(self, content: str, rating: int | None) -> Outcome:
        if self.comments is None or self.movie is None or not self.movie.id:
            return self._not_ready()
        return await self.comments.submit(self.movie.id, content, rating)

    async def reload(self) -> Outcome:
        """Re-run ``load`` for the current movie."""
        if self.tmdb_id is None:
            return Outcome(
                OUTCOME_ERROR,
                build_actionable_error("reload the movie", next_step="open a movie first"),
            )
        return await self.load(self.tmdb_id)


__all__ = ["MovieDetailController"]
