"""Tests for the movie detail controller."""

from __future__ import annotations

import pytest

from movie_catalog.detail import MovieDetailController
from movie_catalog.errors import ApiStatusError, ApiTransportError, AuthExpiredError
from movie_catalog.models import MEMBERSHIP_WATCHLIST
from movie_catalog.outcomes import OUTCOME_AUTH_EXPIRED, OUTCOME_ERROR, OUTCOME_INFO


class TestLoad:
    @pytest.mark.asyncio
    async def test_load_wires_membership_and_comments(
        self, fake_api, session_store, make_movie, make_comment
    ) -> None:
        fake_api.movies_by_tmdb[700] = make_movie("7", tmdb_id=700)
        fake_api.watchlist = [make_movie("7")]
        fake_api.comments["7"] = [make_comment("c1", user_id="42"), make_comment("c2")]
        controller = MovieDetailController(fake_api, session_store)

        outcome = await controller.load(700)

        assert outcome.ok
        assert controller.movie is not None and controller.movie.id == "7"
        assert controller.engagement is not None
        assert controller.engagement.state == MEMBERSHIP_WATCHLIST
        assert controller.comments is not None
        assert controller.comments.own_comment is not None
        assert [c.id for c in controller.comments.other_comments] == ["c2"]
        names = fake_api.call_names()
        assert set(names[:2]) == {"get_profile", "get_movie_by_tmdb_id"}
        assert names[-1] == "get_comments"

    @pytest.mark.asyncio
    async def test_movie_missing_from_database_is_imported(
        self, fake_api, session_store, make_movie
    ) -> None:
        fake_api.failures["get_movie_by_tmdb_id"] = ApiStatusError(404, "Movie not found")
        fake_api.imported[700] = make_movie("new-id", tmdb_id=700)
        controller = MovieDetailController(fake_api, session_store)

        outcome = await controller.load(700)

        assert outcome.ok
        assert controller.movie is not None and controller.movie.id == "new-id"
        assert ("save_movie_from_tmdb", (700,)) in fake_api.calls

    @pytest.mark.asyncio
    async def test_movie_without_internal_id_skips_lists_and_comments(
        self, fake_api, session_store, make_movie
    ) -> None:
        fake_api.movies_by_tmdb[700] = make_movie("", tmdb_id=700)
        controller = MovieDetailController(fake_api, session_store)

        outcome = await controller.load(700)

        assert outcome.ok
        assert controller.engagement is None
        assert "get_comments" not in fake_api.call_names()
        assert (await controller.toggle_watchlist()).kind == OUTCOME_INFO
        assert (await controller.submit_comment("Hi", 3)).kind == OUTCOME_INFO

    @pytest.mark.asyncio
    async def test_profile_or_movie_failure_fails_load(
        self, fake_api, session_store, make_movie
    ) -> None:
        fake_api.movies_by_tmdb[700] = make_movie()
        fake_api.failures["get_profile"] = ApiTransportError("offline")
        controller = MovieDetailController(fake_api, session_store)

        outcome = await controller.load(700)

        assert outcome.kind == OUTCOME_ERROR
        assert controller.movie is None

    @pytest.mark.asyncio
    async def test_list_failure_does_not_fail_load(
        self, fake_api, session_store, make_movie
    ) -> None:
        fake_api.movies_by_tmdb[700] = make_movie()
        fake_api.failures["get_seenlist"] = ApiStatusError(500)
        controller = MovieDetailController(fake_api, session_store)

        outcome = await controller.load(700)

        assert outcome.ok
        assert controller.lists_outcome is not None
        assert controller.lists_outcome.kind == OUTCOME_ERROR
        assert controller.comments_outcome is not None and controller.comments_outcome.ok

    @pytest.mark.asyncio
    async def test_expired_session_during_load(self, fake_api, session_store, make_movie) -> None:
        fake_api.movies_by_tmdb[700] = make_movie()
        fake_api.failures["get_watchlist"] = AuthExpiredError("expired")
        controller = MovieDetailController(fake_api, session_store)

        outcome = await controller.load(700)

        assert outcome.kind == OUTCOME_AUTH_EXPIRED
        assert session_store.get() is None


class TestActions:
    @pytest.mark.asyncio
    async def test_actions_before_load_are_refused(self, fake_api, session_store) -> None:
        controller = MovieDetailController(fake_api, session_store)

        assert (await controller.toggle_watchlist()).kind == OUTCOME_INFO
        assert (await controller.mark_seen()).kind == OUTCOME_INFO
        assert (await controller.reload()).kind == OUTCOME_ERROR
        assert fake_api.calls == []

    @pytest.mark.asyncio
    async def test_submit_comment_then_mark_seen(self, fake_api, session_store, make_movie):
        fake_api.movies_by_tmdb[700] = make_movie()
        controller = MovieDetailController(fake_api, session_store)
        await controller.load(700)

        published = await controller.submit_comment("Great", 5)
        seen = await controller.mark_seen()

        assert published.ok
        assert controller.comments is not None and controller.comments.has_commented
        assert seen.ok
        assert controller.engagement is not None and controller.engagement.in_seenlist
