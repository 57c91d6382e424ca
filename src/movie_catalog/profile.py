"""Profile screen state: the signed-in user plus their two lists."""

from __future__ import annotations

import logging

from movie_catalog.api_client import ApiClient
from movie_catalog.engagement import fetch_lists
from movie_catalog.errors import ApiError
from movie_catalog.messages import build_actionable_success
from movie_catalog.models import PROFILE_TABS, USER_ROLES, ListSnapshot, Movie, UserProfile
from movie_catalog.outcomes import Outcome, outcome_from_error, succeeded, validation_failed
from movie_catalog.session import SessionStore

logger = logging.getLogger(__name__)


class ProfileController:
    """Loads and edits the profile; exposes the watchlist/seenlist tabs."""

    def __init__(self, api: ApiClient, session_store: SessionStore) -> None:
        self._api = api
        self._session_store = session_store
        self.profile: UserProfile | None = session_store.user
        self.lists = ListSnapshot()
        self.selected_tab = "watchlist"

    @property
    def active_list(self) -> list[Movie]:
        if self.selected_tab == "seenlist":
            return self.lists.seenlist
        return self.lists.watchlist

    def select_tab(self, tab: str) -> None:
        if tab not in PROFILE_TABS:
            raise ValueError(f"Unknown profile tab {tab!r}; expected one of {PROFILE_TABS}")
        self.selected_tab = tab

    async def load(self) -> Outcome:
        """Fetch the profile, then both lists together."""
        try:
            profile = await self._api.get_profile()
            lists = await fetch_lists(self._api)
        except ApiError as exc:
            return outcome_from_error("load your profile", exc)
        self.profile = profile
        self.lists = lists
        self._session_store.update_user(profile)
        return succeeded()

    async def save(self, username: str, role: str) -> Outcome:
        """Update username and role, then refresh the cached profile."""
        reasons: list[str] = []
        if not username.strip():
            reasons.append("Username cannot be empty")
        if role not in USER_ROLES:
            reasons.append("Choose a role")
        if reasons:
            return validation_failed(reasons)

        try:
            profile = await self._api.update_profile(username=username.strip(), role=role)
        except ApiError as exc:
            return outcome_from_error("update your profile", exc)
        self.profile = profile
        self._session_store.update_user(profile)
        logger.info("Profile updated for %s", profile.id)
        return succeeded(build_actionable_success("Profile updated"))

    def sign_out(self) -> None:
        self._session_store.clear("signed out")


__all__ = ["ProfileController"]
