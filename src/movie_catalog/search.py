"""Debounced catalog search.

Keystrokes update ``query_text`` immediately; the request itself is only
dispatched once the input has been quiet for the debounce delay. An empty
(or whitespace-only) query falls back to the default popular listing.

Responses are sequenced: every dispatch takes a new request token, and a
response whose token is no longer the latest is discarded, so a slow
stale search can never overwrite the results of a newer one. In-flight
HTTP requests are not cancelled.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from movie_catalog.api_client import ApiClient
from movie_catalog.errors import ApiError
from movie_catalog.models import SEARCH_DEBOUNCE_SECONDS, Movie
from movie_catalog.outcomes import Outcome, outcome_from_error, succeeded

logger = logging.getLogger(__name__)


class Debouncer:
    """Single pending timer on the running event loop.

    ``schedule(value)`` replaces any pending timer; only the value from the
    last call within a quiet period reaches ``callback``.
    """

    def __init__(self, delay: float, callback: Callable[[str], None]) -> None:
        self._delay = delay
        self._callback = callback
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def schedule(self, value: str) -> None:
        # Atomic swap: capture and clear before cancelling
        old_handle = self._handle
        self._handle = None
        if old_handle is not None:
            old_handle.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self._delay, self._fire, value)

    def cancel_pending(self) -> None:
        handle = self._handle
        self._handle = None
        if handle is not None:
            handle.cancel()

    def _fire(self, value: str) -> None:
        self._handle = None
        self._callback(value)


class SearchController:
    """State holder for the catalog search screen."""

    def __init__(
        self,
        api: ApiClient,
        *,
        debounce_seconds: float = SEARCH_DEBOUNCE_SECONDS,
        on_change: Callable[[SearchController], None] | None = None,
        on_error: Callable[[Outcome], None] | None = None,
    ) -> None:
        self._api = api
        self._on_change = on_change
        self._on_error = on_error
        self._debouncer = Debouncer(debounce_seconds, self._on_quiet_period)
        self._request_token = 0
        self._background_tasks: set[asyncio.Task[Any]] = set()
        self._disposed = False

        self.query_text = ""
        self.results: list[Movie] = []
        self.is_loading = False
        self.last_outcome: Outcome | None = None

    @property
    def disposed(self) -> bool:
        return self._disposed

    def on_text_changed(self, text: str) -> None:
        """Record a keystroke and (re)start the quiet-period timer."""
        if self._disposed:
            return
        self.query_text = text
        self._notify_change()
        self._debouncer.schedule(text)

    async def load_default(self) -> Outcome:
        """Fetch the default popular listing (initial load and empty queries)."""
        return await self._dispatch("", self._api.get_popular_movies, "load popular movies")

    async def search(self, text: str) -> Outcome:
        """Dispatch immediately: trimmed text searches, empty text loads the default."""
        trimmed = text.strip()
        if not trimmed:
            return await self.load_default()

        async def _fetch() -> list[Movie]:
            return await self._api.search_movies(trimmed)

        return await self._dispatch(trimmed, _fetch, "search movies")

    async def wait_idle(self) -> None:
        """Wait until every dispatched request has settled."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    def dispose(self) -> None:
        """Cancel the pending debounce timer; late responses are ignored."""
        self._disposed = True
        self._debouncer.cancel_pending()

    def _on_quiet_period(self, text: str) -> None:
        if self._disposed:
            return
        task = asyncio.create_task(self.search(text))
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        task.add_done_callback(self._on_task_done)

    @staticmethod
    def _on_task_done(task: asyncio.Task[Any]) -> None:
        """Log unhandled exceptions from background tasks."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unhandled exception in search task: %s", exc, exc_info=exc)

    async def _dispatch(
        self,
        query: str,
        fetch: Callable[[], Awaitable[list[Movie]]],
        action: str,
    ) -> Outcome:
        self._request_token += 1
        request_token = self._request_token
        self.is_loading = True
        self._notify_change()
        logger.debug("Dispatching %s (token=%d, query=%r)", action, request_token, query)

        try:
            movies = await fetch()
        except ApiError as exc:
            outcome = outcome_from_error(action, exc)
            if request_token != self._request_token:
                logger.debug("Dropping stale failure for token %d", request_token)
                return outcome
            self.is_loading = False
            self.last_outcome = outcome
            self._notify_change()
            if self._on_error is not None and not self._disposed:
                self._on_error(outcome)
            return outcome

        # Ignore stale responses after newer requests.
        if request_token != self._request_token:
            logger.debug("Dropping stale response for token %d", request_token)
            return succeeded()

        self.results = movies
        self.is_loading = False
        self.last_outcome = succeeded()
        self._notify_change()
        return self.last_outcome

    def _notify_change(self) -> None:
        if self._on_change is not None and not self._disposed:
            self._on_change(self)


__all__ = [
    "Debouncer",
    "SearchController",
]
