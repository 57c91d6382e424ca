"""Wire-level tests for ApiClient using httpx.MockTransport."""

from __future__ import annotations

import json
from collections.abc import Callable
from unittest.mock import AsyncMock

import httpx
import pytest

from movie_catalog.api_client import ApiClient
from movie_catalog.errors import (
    ApiResponseError,
    ApiStatusError,
    ApiTransportError,
    AuthExpiredError,
)
from movie_catalog.session import MemoryKeyValueStore, SessionStore

BASE_URL = "http://api.test/api"

Handler = Callable[[httpx.Request], httpx.Response]


def _client(handler: Handler, session_store: SessionStore, **kwargs) -> ApiClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ApiClient(BASE_URL, session_store, client=http_client, **kwargs)


class _Recorder:
    """Handler that answers from a queue of responses and records requests."""

    def __init__(self, *responses: httpx.Response) -> None:
        self._responses = list(responses)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        template = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        return httpx.Response(
            template.status_code, content=template.content, headers=template.headers
        )


class TestAuthHeaders:
    @pytest.mark.asyncio
    async def test_authenticated_call_sends_bearer_token(self, session_store) -> None:
        recorder = _Recorder(httpx.Response(200, json=[]))
        api = _client(recorder, session_store)

        await api.get_watchlist()

        request = recorder.requests[0]
        assert request.headers["Authorization"] == "Bearer tok-42"
        assert str(request.url) == f"{BASE_URL}/users/watchlist"

    @pytest.mark.asyncio
    async def test_public_call_sends_no_token(self, session_store) -> None:
        recorder = _Recorder(httpx.Response(200, json=[]))
        api = _client(recorder, session_store)

        await api.get_popular_movies()

        assert "Authorization" not in recorder.requests[0].headers

    @pytest.mark.asyncio
    async def test_token_is_read_at_call_time(self, session_store) -> None:
        recorder = _Recorder(httpx.Response(200, json=[]))
        api = _client(recorder, session_store)
        session_store.clear()

        with pytest.raises(AuthExpiredError):
            await api.get_seenlist()

        assert recorder.requests == []

    @pytest.mark.asyncio
    async def test_explicit_token_overrides_session(self) -> None:
        store = SessionStore(MemoryKeyValueStore())
        recorder = _Recorder(httpx.Response(200, json={"_id": "42", "username": "ana"}))
        api = _client(recorder, store)

        profile = await api.get_profile(token="restored")

        assert recorder.requests[0].headers["Authorization"] == "Bearer restored"
        assert profile.id == "42"


class TestUnauthorized:
    @pytest.mark.parametrize(
        "call",
        [
            lambda api: api.get_watchlist(),
            lambda api: api.get_seenlist(),
            lambda api: api.add_to_watchlist("7"),
            lambda api: api.remove_from_watchlist("7"),
            lambda api: api.add_to_seenlist("7"),
            lambda api: api.get_profile(),
            lambda api: api.update_profile(username="x", role="user"),
            lambda api: api.create_comment(movie_id="7", content="hi", rating=3),
            lambda api: api.get_popular_movies(),
            lambda api: api.search_movies("matrix"),
            lambda api: api.get_movie_by_tmdb_id(550),
            lambda api: api.save_movie_from_tmdb(550),
            lambda api: api.get_comments("7"),
        ],
    )
    @pytest.mark.asyncio
    async def test_401_clears_session_and_raises(self, call, session_store) -> None:
        cleared: list[str] = []
        session_store.add_clear_listener(cleared.append)
        recorder = _Recorder(httpx.Response(401, json={"message": "jwt expired"}))
        api = _client(recorder, session_store)

        with pytest.raises(AuthExpiredError):
            await call(api)

        assert session_store.get() is None
        assert session_store.stored_token() is None
        assert cleared == ["authentication failed"]

    @pytest.mark.asyncio
    async def test_401_on_login_is_a_plain_status_error(self) -> None:
        store = SessionStore(MemoryKeyValueStore())
        cleared: list[str] = []
        store.add_clear_listener(cleared.append)
        api = _client(
            _Recorder(httpx.Response(401, json={"message": "Invalid credentials"})), store
        )

        with pytest.raises(ApiStatusError) as excinfo:
            await api.login("ana", "wrong")

        assert excinfo.value.status_code == 401
        assert excinfo.value.server_message == "Invalid credentials"
        assert cleared == []

    @pytest.mark.asyncio
    async def test_401_on_profile_read_after_login_is_a_status_error(self) -> None:
        store = SessionStore(MemoryKeyValueStore())
        cleared: list[str] = []
        store.add_clear_listener(cleared.append)
        recorder = _Recorder(
            httpx.Response(200, json={"token": "new"}),
            httpx.Response(401, json={"message": "jwt malformed"}),
        )
        api = _client(recorder, store)

        with pytest.raises(ApiStatusError) as excinfo:
            await api.login("ana", "secret")

        assert excinfo.value.status_code == 401
        assert recorder.requests[1].headers["Authorization"] == "Bearer new"
        assert cleared == []


class TestRetries:
    @pytest.mark.asyncio
    async def test_get_retries_transient_status_with_injected_sleep(self, session_store) -> None:
        recorder = _Recorder(
            httpx.Response(503),
            httpx.Response(502),
            httpx.Response(200, json=[{"_id": "1", "title": "Heat"}]),
        )
        sleep = AsyncMock()
        api = _client(recorder, session_store, sleep=sleep, max_retries=3)

        movies = await api.get_popular_movies()

        assert [movie.title for movie in movies] == ["Heat"]
        assert len(recorder.requests) == 3
        assert sleep.await_count == 2

    @pytest.mark.asyncio
    async def test_get_gives_up_after_max_retries(self, session_store) -> None:
        recorder = _Recorder(httpx.Response(500, json={"message": "boom"}))
        sleep = AsyncMock()
        api = _client(recorder, session_store, sleep=sleep, max_retries=2)

        with pytest.raises(ApiStatusError) as excinfo:
            await api.get_popular_movies()

        assert excinfo.value.status_code == 500
        assert len(recorder.requests) == 2

    @pytest.mark.asyncio
    async def test_mutations_are_sent_once(self, session_store) -> None:
        recorder = _Recorder(httpx.Response(503))
        sleep = AsyncMock()
        api = _client(recorder, session_store, sleep=sleep, max_retries=3)

        with pytest.raises(ApiStatusError):
            await api.add_to_watchlist("7")

        assert len(recorder.requests) == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_timeout_becomes_transport_error(self, session_store) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        sleep = AsyncMock()
        api = _client(handler, session_store, sleep=sleep, max_retries=2)

        with pytest.raises(ApiTransportError):
            await api.get_watchlist()

        assert sleep.await_count == 1

    @pytest.mark.asyncio
    async def test_connection_error_is_not_retried(self, session_store) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("refused", request=request)

        api = _client(handler, session_store, sleep=AsyncMock())

        with pytest.raises(ApiTransportError):
            await api.get_popular_movies()

        assert len(calls) == 1


class TestOperations:
    @pytest.mark.parametrize(
        ("identifier", "field"),
        [("ana@example.com", "email"), ("ana", "username")],
    )
    @pytest.mark.asyncio
    async def test_login_sends_email_or_username(self, identifier, field) -> None:
        store = SessionStore(MemoryKeyValueStore())
        recorder = _Recorder(
            httpx.Response(200, json={"token": "t1", "user": {"_id": "42", "username": "ana"}})
        )
        api = _client(recorder, store)

        session = await api.login(identifier, "secret")

        body = json.loads(recorder.requests[0].content)
        assert body == {field: identifier, "password": "secret"}
        assert session.token == "t1"
        assert session.user.id == "42"
        # login does not store the session itself
        assert store.get() is None

    @pytest.mark.asyncio
    async def test_login_without_user_fetches_profile(self) -> None:
        store = SessionStore(MemoryKeyValueStore())
        recorder = _Recorder(
            httpx.Response(200, json={"token": "t1"}),
            httpx.Response(200, json={"_id": "42", "username": "ana"}),
        )
        api = _client(recorder, store)

        session = await api.login("ana", "secret")

        assert session.user.username == "ana"
        assert recorder.requests[1].headers["Authorization"] == "Bearer t1"

    @pytest.mark.asyncio
    async def test_login_without_token_is_a_response_error(self) -> None:
        api = _client(_Recorder(httpx.Response(200, json={})), SessionStore())

        with pytest.raises(ApiResponseError):
            await api.login("ana", "secret")

    @pytest.mark.asyncio
    async def test_search_passes_query_parameter(self, session_store) -> None:
        recorder = _Recorder(httpx.Response(200, json=[]))
        api = _client(recorder, session_store)

        await api.search_movies("blade runner")

        request = recorder.requests[0]
        assert request.url.path == "/api/tmdb/search"
        assert request.url.params["query"] == "blade runner"

    @pytest.mark.asyncio
    async def test_list_mutation_endpoints(self, session_store) -> None:
        recorder = _Recorder(httpx.Response(200, json={"message": "ok"}))
        api = _client(recorder, session_store)

        await api.add_to_watchlist("7")
        await api.remove_from_watchlist("7")
        await api.add_to_seenlist("7")

        assert [(r.method, r.url.path) for r in recorder.requests] == [
            ("POST", "/api/users/watchlist"),
            ("POST", "/api/users/watchlist/remove"),
            ("POST", "/api/users/mylist"),
        ]
        assert all(json.loads(r.content) == {"movieId": "7"} for r in recorder.requests)

    @pytest.mark.asyncio
    async def test_create_comment_body(self, session_store) -> None:
        recorder = _Recorder(httpx.Response(201, json={}))
        api = _client(recorder, session_store)

        await api.create_comment(movie_id="7", content="Loved it", rating=5)

        request = recorder.requests[0]
        assert request.url.path == "/api/comments"
        assert json.loads(request.content) == {"movieId": "7", "content": "Loved it", "rating": 5}

    @pytest.mark.asyncio
    async def test_comments_are_public(self, session_store) -> None:
        recorder = _Recorder(
            httpx.Response(
                200,
                json=[
                    {
                        "_id": "c1",
                        "userId": {"_id": "42", "username": "ana"},
                        "rating": 4,
                        "content": "Nice",
                    }
                ],
            )
        )
        api = _client(recorder, session_store)

        comments = await api.get_comments("7")

        assert recorder.requests[0].url.path == "/api/comments/movie/7"
        assert "Authorization" not in recorder.requests[0].headers
        assert comments[0].user_id == "42"

    @pytest.mark.asyncio
    async def test_error_message_is_kept(self, session_store) -> None:
        api = _client(
            _Recorder(httpx.Response(400, json={"message": "Already commented"})), session_store
        )

        with pytest.raises(ApiStatusError) as excinfo:
            await api.create_comment(movie_id="7", content="again", rating=2)

        assert excinfo.value.server_message == "Already commented"

    @pytest.mark.asyncio
    async def test_invalid_json_is_a_response_error(self, session_store) -> None:
        api = _client(_Recorder(httpx.Response(200, content=b"<html>")), session_store)

        with pytest.raises(ApiResponseError):
            await api.get_popular_movies()

    @pytest.mark.asyncio
    async def test_import_movie_from_catalog(self, session_store) -> None:
        recorder = _Recorder(httpx.Response(201, json={"_id": "m1", "tmdbId": 603}))
        api = _client(recorder, session_store)

        movie = await api.save_movie_from_tmdb(603)

        assert (recorder.requests[0].method, recorder.requests[0].url.path) == (
            "POST",
            "/api/movies/from-tmdb/603",
        )
        assert movie.id == "m1"

    @pytest.mark.asyncio
    async def test_context_manager_closes_owned_client(self, session_store) -> None:
        async with ApiClient(BASE_URL, session_store) as api:
            assert api.base_url == BASE_URL
        assert api._client is None
