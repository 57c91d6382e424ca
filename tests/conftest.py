"""Shared test fixtures for movie catalog tests."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from movie_catalog.errors import ApiError, AuthExpiredError
from movie_catalog.models import Comment, Movie, Session, UserProfile
from movie_catalog.session import MemoryKeyValueStore, SessionStore

# ── In-memory API double ─────────────────────────────────────────────────────


class FakeApi:
    """Stands in for ApiClient; records every call and simulates the server lists.

    ``failures`` maps an operation name to the exception it raises (every
    call, until removed). ``gates`` maps a search query to an Event the
    search waits on before answering, to simulate slow responses.
    """

    def __init__(self, session_store: SessionStore | None = None) -> None:
        self.session_store = session_store
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.failures: dict[str, ApiError] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.popular: list[Movie] = []
        self.search_results: dict[str, list[Movie]] = {}
        self.movies_by_tmdb: dict[int, Movie] = {}
        self.imported: dict[int, Movie] = {}
        self.watchlist: list[Movie] = []
        self.seenlist: list[Movie] = []
        self.comments: dict[str, list[Comment]] = {}
        self.profile = UserProfile(id="42", username="ana", role="user", email="ana@example.com")
        self.login_session: Session | None = None
        self.register_result: tuple[str, UserProfile | None] = ("", None)

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, args))
        exc = self.failures.get(name)
        if exc is not None:
            if isinstance(exc, AuthExpiredError) and self.session_store is not None:
                self.session_store.clear("authentication failed")
            raise exc

    def call_names(self) -> list[str]:
        return [name for name, _ in self.calls]

    def mutation_calls(self) -> list[tuple[str, tuple[Any, ...]]]:
        reads = {
            "get_popular_movies",
            "search_movies",
            "get_movie_by_tmdb_id",
            "get_profile",
            "get_watchlist",
            "get_seenlist",
            "get_comments",
        }
        return [call for call in self.calls if call[0] not in reads]

    # Catalog

    async def get_popular_movies(self) -> list[Movie]:
        self._record("get_popular_movies")
        return list(self.popular)

    async def search_movies(self, query: str) -> list[Movie]:
        self._record("search_movies", query)
        gate = self.gates.get(query)
        if gate is not None:
            await gate.wait()
        return list(self.search_results.get(query, []))

    async def get_movie_by_tmdb_id(self, tmdb_id: int) -> Movie:
        self._record("get_movie_by_tmdb_id", tmdb_id)
        return self.movies_by_tmdb[tmdb_id]

    async def save_movie_from_tmdb(self, tmdb_id: int) -> Movie:
        self._record("save_movie_from_tmdb", tmdb_id)
        return self.imported[tmdb_id]

    # Auth / profile

    async def login(self, identifier: str, password: str) -> Session:
        self._record("login", identifier, password)
        assert self.login_session is not None
        return self.login_session

    async def register(
        self, *, username: str, email: str, password: str, role: str
    ) -> tuple[str, UserProfile | None]:
        self._record("register", username, email, password, role)
        return self.register_result

    async def get_profile(self, *, token: str | None = None) -> UserProfile:
        self._record("get_profile", token)
        return self.profile

    async def update_profile(self, *, username: str, role: str, **extra: str) -> UserProfile:
        self._record("update_profile", username, role)
        self.profile = UserProfile(
            id=self.profile.id, username=username, role=role, email=self.profile.email
        )
        return self.profile

    # Lists

    async def get_watchlist(self) -> list[Movie]:
        self._record("get_watchlist")
        return list(self.watchlist)

    async def get_seenlist(self) -> list[Movie]:
        self._record("get_seenlist")
        return list(self.seenlist)

    async def add_to_watchlist(self, movie_id: str) -> None:
        self._record("add_to_watchlist", movie_id)
        self.watchlist.append(Movie(id=movie_id, tmdb_id=None, title=movie_id))

    async def remove_from_watchlist(self, movie_id: str) -> None:
        self._record("remove_from_watchlist", movie_id)
        self.watchlist = [movie for movie in self.watchlist if movie.id != movie_id]

    async def add_to_seenlist(self, movie_id: str) -> None:
        self._record("add_to_seenlist", movie_id)
        self.seenlist.append(Movie(id=movie_id, tmdb_id=None, title=movie_id))

    # Comments

    async def get_comments(self, movie_id: str) -> list[Comment]:
        self._record("get_comments", movie_id)
        return list(self.comments.get(movie_id, []))

    async def create_comment(self, *, movie_id: str, content: str, rating: int) -> Comment | None:
        self._record("create_comment", movie_id, content, rating)
        comment = Comment(
            id=f"c{len(self.comments.get(movie_id, [])) + 100}",
            movie_id=movie_id,
            user_id=self.profile.id,
            username=self.profile.username,
            role=self.profile.role,
            rating=rating,
            content=content,
        )
        self.comments.setdefault(movie_id, []).append(comment)
        return comment


# ── Factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def make_movie():
    """Factory fixture for Movie instances with sensible defaults."""

    def _make(
        movie_id: str = "7",
        tmdb_id: int | None = 700,
        title: str = "Test Movie",
        **kwargs: Any,
    ) -> Movie:
        return Movie(id=movie_id, tmdb_id=tmdb_id, title=title, **kwargs)

    return _make


@pytest.fixture
def make_comment():
    """Factory fixture for Comment instances."""

    def _make(
        comment_id: str = "c1",
        user_id: str = "99",
        movie_id: str = "7",
        rating: int = 4,
        content: str = "Great",
        username: str = "someone",
        role: str = "user",
    ) -> Comment:
        return Comment(
            id=comment_id,
            movie_id=movie_id,
            user_id=user_id,
            username=username,
            role=role,
            rating=rating,
            content=content,
        )

    return _make


@pytest.fixture
def make_profile():
    def _make(user_id: str = "42", username: str = "ana", role: str = "user") -> UserProfile:
        return UserProfile(
            id=user_id, username=username, role=role, email=f"{username}@example.com"
        )

    return _make


@pytest.fixture
def storage() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def session_store(storage, make_profile) -> SessionStore:
    """A SessionStore holding an active session for user 42."""
    store = SessionStore(storage)
    store.set(Session(token="tok-42", user=make_profile()))
    return store


@pytest.fixture
def fake_api(session_store) -> FakeApi:
    return FakeApi(session_store)


@pytest.fixture
def make_fake_api():
    """Factory fixture for a FakeApi bound to a given SessionStore."""
    return FakeApi
