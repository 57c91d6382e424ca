"""Per-movie list membership: watch later vs. seen.

Membership is never stored. It is derived from the user's watchlist and
seenlist, which are always fetched together and re-fetched after every
mutation so the server stays the source of truth. If the server ever
returns a movie in both sets, ``seen`` wins.

Transitions:

    none      --toggle_watchlist-->  watchlist   (add to watchlist)
    watchlist --toggle_watchlist-->  none        (remove from watchlist)
    seen      --toggle_watchlist-->  refused, no request
    none      --mark_seen-------->   seen        (add to seenlist)
    watchlist --mark_seen-------->   seen        (remove from watchlist, then add to seenlist)
    seen      --mark_seen-------->   no-op

The two-step ``watchlist -> seen`` move is not rolled back: if the add fails
after the remove succeeded, the re-fetched server state is what callers see.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from movie_catalog.api_client import ApiClient
from movie_catalog.errors import ApiError, AuthExpiredError
from movie_catalog.messages import build_actionable_error, build_actionable_success
from movie_catalog.models import (
    MEMBERSHIP_NONE,
    MEMBERSHIP_SEEN,
    MEMBERSHIP_WATCHLIST,
    ListSnapshot,
    Membership,
)
from movie_catalog.outcomes import (
    OUTCOME_AUTH_EXPIRED,
    OUTCOME_ERROR,
    OUTCOME_PARTIAL,
    Outcome,
    auth_expired,
    outcome_from_error,
    refused,
    succeeded,
)

logger = logging.getLogger(__name__)


def classify_membership(
    movie_id: str,
    watchlist_ids: Iterable[str],
    seenlist_ids: Iterable[str],
) -> Membership:
    """Classify a movie by set membership; the seenlist wins ties."""
    if movie_id in set(seenlist_ids):
        return MEMBERSHIP_SEEN
    if movie_id in set(watchlist_ids):
        return MEMBERSHIP_WATCHLIST
    return MEMBERSHIP_NONE


async def fetch_lists(api: ApiClient) -> ListSnapshot:
    """Fetch watchlist and seenlist concurrently; either failure fails both."""
    watchlist, seenlist = await asyncio.gather(api.get_watchlist(), api.get_seenlist())
    return ListSnapshot(watchlist=watchlist, seenlist=seenlist)


class EngagementStateMachine:
    """Watch-later / seen membership of one movie for the signed-in user."""

    def __init__(self, api: ApiClient, movie_id: str) -> None:
        self._api = api
        self.movie_id = movie_id
        self.state: Membership = MEMBERSHIP_NONE
        self.is_known = False
        self.lists = ListSnapshot()
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def in_watchlist(self) -> bool:
        return self.state == MEMBERSHIP_WATCHLIST

    @property
    def in_seenlist(self) -> bool:
        return self.state == MEMBERSHIP_SEEN

    async def load(self) -> Outcome:
        """Fetch both lists and recompute membership."""
        try:
            await self._refresh()
        except ApiError as exc:
            return outcome_from_error("load your lists", exc)
        return succeeded()

    async def _refresh(self) -> None:
        snapshot = await fetch_lists(self._api)
        watch_ids = snapshot.watchlist_ids()
        seen_ids = snapshot.seenlist_ids()
        if self.movie_id in watch_ids and self.movie_id in seen_ids:
            logger.warning(
                "Movie %s is in both watchlist and seenlist; treating as seen", self.movie_id
            )
        self.lists = snapshot
        self.state = classify_membership(self.movie_id, watch_ids, seen_ids)
        self.is_known = True
        logger.debug("Membership for %s is %s", self.movie_id, self.state)

    async def _ensure_known(self) -> Outcome | None:
        if self.is_known:
            return None
        outcome = await self.load()
        return None if outcome.ok else outcome

    async def _refresh_after_mutation(self, action: str) -> Outcome | None:
        """Re-fetch after a successful mutation; returns a failure outcome or None."""
        try:
            await self._refresh()
        except ApiError as exc:
            self.is_known = False
            if isinstance(exc, AuthExpiredError):
                return auth_expired()
            return Outcome(
                OUTCOME_ERROR,
                build_actionable_error(
                    f"refresh your lists after {action}",
                    why="the change was saved but the lists could not be reloaded",
                    next_step="reopen the movie to see the current state",
                ),
            )
        return None

    async def toggle_watchlist(self) -> Outcome:
        """Add to or remove from the watch-later list."""
        if self._busy:
            return refused("Another list update is still in progress.")
        self._busy = True
        try:
            failure = await self._ensure_known()
            if failure is not None:
                return failure

            if self.state == MEMBERSHIP_SEEN:
                return refused("This movie is already in your seen list.")

            if self.state == MEMBERSHIP_WATCHLIST:
                action = "remove the movie from Watch later"
                mutate = self._api.remove_from_watchlist
                done = "Removed from Watch later"
            else:
                action = "add the movie to Watch later"
                mutate = self._api.add_to_watchlist
                done = "Added to Watch later"

            try:
                await mutate(self.movie_id)
            except ApiError as exc:
                return outcome_from_error(action, exc)

            failure = await self._refresh_after_mutation(action)
            if failure is not None:
                return failure
            return succeeded(build_actionable_success(done))
        finally:
            self._busy = False

    async def mark_seen(self) -> Outcome:
        """Move the movie to the seen list, leaving the watch-later list first."""
        if self._busy:
            return refused("Another list update is still in progress.")
        self._busy = True
        try:
            failure = await self._ensure_known()
            if failure is not None:
                return failure

            if self.state == MEMBERSHIP_SEEN:
                return refused("This movie is already in your seen list.")

            removed_from_watchlist = False
            if self.state == MEMBERSHIP_WATCHLIST:
                try:
                    await self._api.remove_from_watchlist(self.movie_id)
                except ApiError as exc:
                    return outcome_from_error("move the movie to your seen list", exc)
                removed_from_watchlist = True

            try:
                await self._api.add_to_seenlist(self.movie_id)
            except ApiError as exc:
                if not removed_from_watchlist or isinstance(exc, AuthExpiredError):
                    return outcome_from_error("add the movie to your seen list", exc)
                logger.warning(
                    "Movie %s left Watch later but was not added to the seen list",
                    self.movie_id,
                )
                # No rollback: show whatever the server now holds.
                refresh_failure = await self._refresh_after_mutation("a partial update")
                if refresh_failure is not None and refresh_failure.kind == OUTCOME_AUTH_EXPIRED:
                    return refresh_failure
                return Outcome(
                    OUTCOME_PARTIAL,
                    build_actionable_error(
                        "add the movie to your seen list",
                        why="it left Watch later, but the seen-list update failed",
                        next_step="try Mark as seen again",
                    ),
                )

            failure = await self._refresh_after_mutation("marking the movie as seen")
            if failure is not None:
                return failure
            return succeeded(build_actionable_success("Added to your seen list"))
        finally:
            self._busy = False


__all__ = [
    "EngagementStateMachine",
    "classify_membership",
    "fetch_lists",
]
