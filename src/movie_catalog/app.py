"""Textual application shell: session restore and screen navigation."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from textual.app import App, ComposeResult
from textual.widgets import Footer, Header

from movie_catalog.api_client import ApiClient
from movie_catalog.auth import restore_session
from movie_catalog.models import ClientConfig
from movie_catalog.outcomes import OUTCOME_INFO
from movie_catalog.screens import CatalogScreen, LoginScreen
from movie_catalog.session import SessionStore
from movie_catalog.ui_constants import APP_BINDINGS, APP_CSS

logger = logging.getLogger(__name__)


class MovieCatalogApp(App):
    """Terminal client for the movie catalog service."""

    TITLE = "Movie Catalog"

    CSS = APP_CSS

    BINDINGS = APP_BINDINGS

    def __init__(
        self,
        config: ClientConfig | None = None,
        session_store: SessionStore | None = None,
        api: ApiClient | None = None,
    ) -> None:
        super().__init__()
        self._config = config or ClientConfig()
        self.session_store = session_store or SessionStore()
        self._api = api
        self._owns_api = api is None
        self._background_tasks: set[asyncio.Task[Any]] = set()
        self._remove_clear_listener: Callable[[], None] | None = None

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def api(self) -> ApiClient:
        if self._api is None:
            self._api = ApiClient(
                self._config.api_url,
                self.session_store,
                timeout=self._config.request_timeout_seconds,
                max_retries=self._config.max_retries,
            )
        return self._api

    def compose(self) -> ComposeResult:
        yield Header()
        yield Footer()

    async def on_mount(self) -> None:
        """Restore a saved session, then open the catalog or the sign-in screen."""
        if self._config.config_defaulted:
            self.notify(
                "Config file was unreadable. Using defaults.",
                severity="warning",
                timeout=8,
            )
        self._remove_clear_listener = self.session_store.add_clear_listener(
            self._on_session_cleared
        )

        outcome = await restore_session(api=self.api, session_store=self.session_store)
        if outcome.ok:
            await self.push_screen(CatalogScreen())
            return
        if outcome.kind != OUTCOME_INFO:
            self.notify(outcome.message, title="Session", severity="warning")
        await self.push_screen(LoginScreen())

    async def on_unmount(self) -> None:
        if self._remove_clear_listener is not None:
            self._remove_clear_listener()
            self._remove_clear_listener = None
        for task in list(self._background_tasks):
            task.cancel()
        if self._owns_api and self._api is not None:
            await self._api.aclose()

    def _on_session_cleared(self, reason: str) -> None:
        logger.debug("Session cleared (%s); returning to sign-in", reason or "no reason")
        self.call_later(self.reset_to_login)

    async def reset_to_login(self) -> None:
        """Drop every screen and show the sign-in screen."""
        if len(self.screen_stack) == 2 and isinstance(self.screen, LoginScreen):
            return
        while len(self.screen_stack) > 1:
            await self.pop_screen()
        await self.push_screen(LoginScreen())

    def _track_task(self, coro: Any) -> asyncio.Task[None]:
        """Create an asyncio task and track it to prevent garbage collection."""
        task = asyncio.create_task(coro)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        task.add_done_callback(self._on_task_done)
        return task

    @staticmethod
    def _on_task_done(task: asyncio.Task[None]) -> None:
        """Log unhandled exceptions from background tasks."""
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Unhandled exception in background task: %s", exc, exc_info=exc)


__all__ = ["MovieCatalogApp"]
