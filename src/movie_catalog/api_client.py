"""HTTP client for the movie catalog REST API.

Every operation the client exposes is listed in ``ApiClient``; there is no
generic request method in the public surface. Authenticated operations read
the bearer token from ``SessionStore`` at call time, so a ``clear()`` that
happens mid-session takes effect on the very next request.

Failure mapping:

    401 on any call but sign-in    -> SessionStore.clear(), AuthExpiredError
    401 on sign-in / registration  -> ApiStatusError (credentials rejected)
    any other 4xx/5xx              -> ApiStatusError (server ``message`` kept)
    timeout / connection failure   -> ApiTransportError
    undecodable 2xx body           -> ApiResponseError

Idempotent GETs retry on 429/5xx and timeouts with exponential backoff;
mutations are sent exactly once.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from movie_catalog.errors import (
    ApiResponseError,
    ApiStatusError,
    ApiTransportError,
    AuthExpiredError,
)
from movie_catalog.models import Comment, Movie, Session, UserProfile
from movie_catalog.parsing import (
    parse_comment,
    parse_comment_list,
    parse_login_response,
    parse_movie,
    parse_movie_list,
    parse_user_profile,
)
from movie_catalog.session import SessionStore

logger = logging.getLogger(__name__)

# ============================================================================
# Constants
# ============================================================================

DEFAULT_REQUEST_TIMEOUT = 15  # seconds
DEFAULT_MAX_RETRIES = 3
INITIAL_BACKOFF = 1.0  # seconds, doubles each retry
RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
USER_AGENT = "movie-catalog-client/0.3"


class ApiClient:
    """Async client for the catalog, list, comment, profile, and auth endpoints."""

    def __init__(
        self,
        base_url: str,
        session_store: SessionStore,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._session_store = session_store
        self._client = client
        self._owns_client = client is None
        self._timeout = timeout
        self._max_retries = max(1, max_retries)
        self._sleep = sleep

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def session_store(self) -> SessionStore:
        return self._session_store

    async def __aenter__(self) -> ApiClient:
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        await self.aclose()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"User-Agent": USER_AGENT},
            )
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        client = self._client
        if client is not None and self._owns_client:
            self._client = None
            await client.aclose()

    # ------------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------------

    def _auth_headers(self, token_override: str | None) -> dict[str, str]:
        token = token_override or self._session_store.token
        if not token:
            self._session_store.clear("no active session")
            raise AuthExpiredError("No active session")
        return {"Authorization": f"Bearer {token}"}

    async def _send(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        headers: dict[str, str],
        json_body: Any = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Send one request, retrying idempotent GETs on transient failures."""
        client = self._ensure_client()
        url = f"{self._base_url}{path}"
        attempts = self._max_retries if method == "GET" else 1
        backoff = INITIAL_BACKOFF
        for attempt in range(attempts):
            is_last = attempt == attempts - 1
            try:
                response = await client.request(
                    method,
                    url,
                    headers=headers,
                    json=json_body,
                    params=params,
                    timeout=self._timeout,
                )
            except httpx.TimeoutException as exc:
                if not is_last:
                    delay = backoff + random.uniform(0, backoff * 0.5)
                    logger.info(
                        "%s timed out, retrying in %.1fs (attempt %d/%d)",
                        operation,
                        delay,
                        attempt + 1,
                        attempts,
                    )
                    await self._sleep(delay)
                    backoff *= 2
                    continue
                logger.warning("%s timed out after %d attempt(s)", operation, attempts)
                raise ApiTransportError(f"{operation} timed out") from exc
            except httpx.HTTPError as exc:
                logger.warning("%s failed with a network error", operation, exc_info=True)
                raise ApiTransportError(f"{operation} failed: {exc}") from exc

            if response.status_code in RETRYABLE_STATUS_CODES and not is_last:
                delay = backoff + random.uniform(0, backoff * 0.5)
                logger.info(
                    "%s got HTTP %d, retrying in %.1fs (attempt %d/%d)",
                    operation,
                    response.status_code,
                    delay,
                    attempt + 1,
                    attempts,
                )
                await self._sleep(delay)
                backoff *= 2
                continue
            return response

        raise ApiTransportError(f"{operation} exhausted its retries")

    async def _request(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        auth: bool,
        json_body: Any = None,
        params: dict[str, str] | None = None,
        token: str | None = None,
        credentials: bool = False,
    ) -> Any:
        """Send a request and return the decoded JSON body (None when empty).

        A 401 clears the session and raises ``AuthExpiredError`` for every
        request except credential exchanges (``credentials=True``), where it
        means the credentials were rejected.
        """
        headers = {"Accept": "application/json"}
        if auth:
            headers.update(self._auth_headers(token))

        response = await self._send(
            method,
            path,
            operation=operation,
            headers=headers,
            json_body=json_body,
            params=params,
        )
        status = response.status_code

        if status == 401 and not credentials:
            logger.warning("%s rejected the session token", operation)
            self._session_store.clear("authentication failed")
            raise AuthExpiredError(f"{operation}: session expired")

        if status >= 400:
            message = _error_message(response)
            logger.warning("%s failed with HTTP %d %s", operation, status, message)
            raise ApiStatusError(status, message, operation=operation)

        if status == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            logger.warning("%s returned invalid JSON", operation, exc_info=True)
            raise ApiResponseError(f"{operation} returned invalid JSON") from exc

    # ------------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------------

    async def get_popular_movies(self) -> list[Movie]:
        data = await self._request("GET", "/tmdb/popular", operation="popular movies", auth=False)
        return parse_movie_list(data)

    async def search_movies(self, query: str) -> list[Movie]:
        data = await self._request(
            "GET",
            "/tmdb/search",
            operation="movie search",
            auth=False,
            params={"query": query},
        )
        return parse_movie_list(data)

    async def get_movie_by_tmdb_id(self, tmdb_id: int) -> Movie:
        data = await self._request(
            "GET", f"/movies/tmdb/{tmdb_id}", operation="movie lookup", auth=False
        )
        movie = parse_movie(data)
        if movie is None:
            raise ApiResponseError(f"movie lookup returned no usable movie for {tmdb_id}")
        return movie

    async def save_movie_from_tmdb(self, tmdb_id: int) -> Movie:
        """Import a catalog movie into the server database."""
        data = await self._request(
            "POST", f"/movies/from-tmdb/{tmdb_id}", operation="movie import", auth=False
        )
        movie = parse_movie(data)
        if movie is None:
            raise ApiResponseError(f"movie import returned no usable movie for {tmdb_id}")
        return movie

    # ------------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------------

    async def login(self, identifier: str, password: str) -> Session:
        """Authenticate and return a new session (does not store it)."""
        id_field = "email" if "@" in identifier else "username"
        data = await self._request(
            "POST",
            "/users/login",
            operation="sign in",
            auth=False,
            credentials=True,
            json_body={id_field: identifier, "password": password},
        )
        token, user = parse_login_response(data)
        if not token:
            raise ApiResponseError("sign in response carried no token")
        if user is None:
            data = await self._request(
                "GET",
                "/users/profile",
                operation="sign in",
                auth=True,
                token=token,
                credentials=True,
            )
            user = parse_user_profile(data)
            if user is None:
                raise ApiResponseError("sign in profile read returned no usable user")
        return Session(token=token, user=user)

    async def register(
        self, *, username: str, email: str, password: str, role: str
    ) -> tuple[str, UserProfile | None]:
        """Create an account. Returns (token, user); the token may be empty."""
        data = await self._request(
            "POST",
            "/users/register",
            operation="registration",
            auth=False,
            credentials=True,
            json_body={"username": username, "email": email, "password": password, "role": role},
        )
        return parse_login_response(data)

    # ------------------------------------------------------------------------
    # Profile
    # ------------------------------------------------------------------------

    async def get_profile(self, *, token: str | None = None) -> UserProfile:
        """Read the signed-in profile; ``token`` overrides the stored session."""
        data = await self._request(
            "GET", "/users/profile", operation="profile read", auth=True, token=token
        )
        profile = parse_user_profile(data)
        if profile is None:
            raise ApiResponseError("profile read returned no usable user")
        return profile

    async def update_profile(self, *, username: str, role: str, **extra: str) -> UserProfile:
        data = await self._request(
            "PATCH",
            "/users/profile",
            operation="profile update",
            auth=True,
            json_body={"username": username, "role": role, **extra},
        )
        profile = parse_user_profile(data)
        if profile is None:
            raise ApiResponseError("profile update returned no usable user")
        return profile

    # ------------------------------------------------------------------------
    # Lists
    # ------------------------------------------------------------------------

    async def get_watchlist(self) -> list[Movie]:
        data = await self._request("GET", "/users/watchlist", operation="watchlist read", auth=True)
        return parse_movie_list(data)

    async def get_seenlist(self) -> list[Movie]:
        data = await self._request("GET", "/users/seenlist", operation="seenlist read", auth=True)
        return parse_movie_list(data)

    async def add_to_watchlist(self, movie_id: str) -> None:
        await self._request(
            "POST",
            "/users/watchlist",
            operation="watchlist add",
            auth=True,
            json_body={"movieId": movie_id},
        )

    async def remove_from_watchlist(self, movie_id: str) -> None:
        await self._request(
            "POST",
            "/users/watchlist/remove",
            operation="watchlist remove",
            auth=True,
            json_body={"movieId": movie_id},
        )

    async def add_to_seenlist(self, movie_id: str) -> None:
        await self._request(
            "POST",
            "/users/mylist",
            operation="seenlist add",
            auth=True,
            json_body={"movieId": movie_id},
        )

    # ------------------------------------------------------------------------
    # Comments
    # ------------------------------------------------------------------------

    async def get_comments(self, movie_id: str) -> list[Comment]:
        data = await self._request(
            "GET", f"/comments/movie/{movie_id}", operation="comments read", auth=False
        )
        return parse_comment_list(data)

    async def create_comment(self, *, movie_id: str, content: str, rating: int) -> Comment | None:
        data = await self._request(
            "POST",
            "/comments",
            operation="comment create",
            auth=True,
            json_body={"movieId": movie_id, "content": content, "rating": rating},
        )
        return parse_comment(data)


def _error_message(response: httpx.Response) -> str:
    """Extract the server's ``message`` field from an error body, if any."""
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict):
        message = body.get("message")
        if isinstance(message, str):
            return message
    return ""


__all__ = [
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_REQUEST_TIMEOUT",
    "RETRYABLE_STATUS_CODES",
    "ApiClient",
]
