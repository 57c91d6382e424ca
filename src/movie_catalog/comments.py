"""Comment loading, own-comment reconciliation, and submission gating."""

from __future__ import annotations

import logging
from typing import Any

from movie_catalog.api_client import ApiClient
from movie_catalog.engagement import EngagementStateMachine
from movie_catalog.errors import ApiError
from movie_catalog.messages import build_actionable_error, build_actionable_success
from movie_catalog.models import COMMENT_MAX_LENGTH, RATING_MAX, RATING_MIN, Comment
from movie_catalog.outcomes import (
    OUTCOME_AUTH_EXPIRED,
    OUTCOME_ERROR,
    Outcome,
    outcome_from_error,
    succeeded,
    validation_failed,
)
from movie_catalog.session import SessionStore

logger = logging.getLogger(__name__)


def partition_comments(
    comments: list[Comment], user_id: str | None
) -> tuple[Comment | None, list[Comment]]:
    """Split comments into (own comment, other comments) in one pass.

    The first comment authored by ``user_id`` is the own comment. Server
    order is preserved for the rest; further comments by the same author
    are dropped rather than shown as someone else's.
    """
    own: Comment | None = None
    others: list[Comment] = []
    for comment in comments:
        if user_id and comment.user_id == user_id:
            if own is None:
                own = comment
            else:
                logger.warning(
                    "User %s has more than one comment (%s); hiding the extra one",
                    user_id,
                    comment.id,
                )
            continue
        others.append(comment)
    return own, others


def validate_comment(content: Any, rating: Any) -> list[str]:
    """Return every reason the comment cannot be submitted (empty when valid)."""
    reasons: list[str] = []
    text = content.strip() if isinstance(content, str) else ""
    if not text:
        reasons.append("Write a comment before publishing")
    elif len(text) > COMMENT_MAX_LENGTH:
        reasons.append(f"Comments are limited to {COMMENT_MAX_LENGTH} characters")
    if rating is None:
        reasons.append("Choose a rating")
    elif isinstance(rating, bool) or not isinstance(rating, int):
        reasons.append(f"Rating must be a whole number from {RATING_MIN} to {RATING_MAX}")
    elif not RATING_MIN <= rating <= RATING_MAX:
        reasons.append(f"Rating must be between {RATING_MIN} and {RATING_MAX}")
    return reasons


class CommentReconciler:
    """Comments of one movie, split into the user's own comment and everyone else's."""

    def __init__(
        self,
        api: ApiClient,
        *,
        session_store: SessionStore | None = None,
        engagement: EngagementStateMachine | None = None,
    ) -> None:
        self._api = api
        self._session_store = session_store
        self._engagement = engagement
        self.movie_id: str | None = None
        self.user_id: str | None = None
        self.own_comment: Comment | None = None
        self.other_comments: list[Comment] = []

    @property
    def has_commented(self) -> bool:
        return self.own_comment is not None

    def _current_user_id(self) -> str | None:
        if self.user_id:
            return self.user_id
        if self._session_store is not None and self._session_store.user is not None:
            return self._session_store.user.id
        return None

    async def load(self, movie_id: str, user_id: str | None) -> Outcome:
        """Fetch the movie's comments and partition them by author."""
        try:
            comments = await self._api.get_comments(movie_id)
        except ApiError as exc:
            return outcome_from_error("load comments", exc)
        self.movie_id = movie_id
        self.user_id = user_id
        self.own_comment, self.other_comments = partition_comments(comments, user_id)
        logger.debug(
            "Loaded %d comment(s) for %s (own=%s)",
            len(comments),
            movie_id,
            self.own_comment is not None,
        )
        return succeeded()

    async def submit(self, movie_id: str, content: str, rating: int | None) -> Outcome:
        """Publish the user's single comment, then reload comments and lists."""
        reasons = validate_comment(content, rating)
        if self.has_commented:
            reasons.append("You have already commented on this movie")
        if reasons:
            return validation_failed(reasons)

        text = content.strip()
        try:
            await self._api.create_comment(movie_id=movie_id, content=text, rating=rating)
        except ApiError as exc:
            return outcome_from_error("publish your comment", exc)
        logger.info("Comment published for movie %s", movie_id)

        reload_outcome = await self.load(movie_id, self._current_user_id())
        if reload_outcome.kind == OUTCOME_AUTH_EXPIRED:
            return reload_outcome
        if self._engagement is not None:
            lists_outcome = await self._engagement.load()
            if lists_outcome.kind == OUTCOME_AUTH_EXPIRED:
                return lists_outcome
        if not reload_outcome.ok:
            return Outcome(
                OUTCOME_ERROR,
                build_actionable_error(
                    "refresh comments",
                    why="your comment was published but the list could not be reloaded",
                    next_step="reopen the movie to see it",
                ),
            )
        return succeeded(build_actionable_success("Comment published"))


__all__ = [
    "CommentReconciler",
    "partition_comments",
    "validate_comment",
]
