"""Data models and constants for the movie catalog client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

# Application identity used for platformdirs config paths
CONFIG_APP_NAME = "movie-catalog"

DEFAULT_API_URL = "http://localhost:4000/api"

# User roles accepted by the server
USER_ROLES = ("user", "critic")

# Comment constraints
COMMENT_MAX_LENGTH = 70
RATING_MIN = 1
RATING_MAX = 5

# Search input quiet period before a request is dispatched
SEARCH_DEBOUNCE_SECONDS = 0.5

# List membership states for a (user, movie) pair
MEMBERSHIP_NONE = "none"
MEMBERSHIP_WATCHLIST = "watchlist"
MEMBERSHIP_SEEN = "seen"

Membership = Literal["none", "watchlist", "seen"]

# Profile list tabs
PROFILE_TABS = ("watchlist", "seenlist")


@dataclass(slots=True)
class UserProfile:
    """Cached copy of the signed-in user's server profile."""

    id: str
    username: str
    role: str = "user"  # "user" | "critic"
    email: str = ""


@dataclass(slots=True, frozen=True)
class Session:
    """Authenticated session: opaque bearer token plus the user it belongs to."""

    token: str
    user: UserProfile


@dataclass(slots=True)
class Movie:
    """A catalog movie as returned by the server."""

    id: str  # Internal id; empty for catalog entries not yet imported
    tmdb_id: int | None
    title: str
    poster_url: str = ""
    description: str = ""
    release_date: str = ""
    categories: tuple[str, ...] = ()
    cast: tuple[str, ...] = ()
    average_user_rating: float | None = None
    average_critic_rating: float | None = None


@dataclass(slots=True)
class Comment:
    """A single rating/comment left by a user on a movie."""

    id: str
    movie_id: str
    user_id: str
    username: str
    role: str
    rating: int
    content: str


@dataclass(slots=True)
class ListSnapshot:
    """The user's watchlist and seenlist, fetched together."""

    watchlist: list[Movie] = field(default_factory=list)
    seenlist: list[Movie] = field(default_factory=list)

    def watchlist_ids(self) -> set[str]:
        return {movie.id for movie in self.watchlist if movie.id}

    def seenlist_ids(self) -> set[str]:
        return {movie.id for movie in self.seenlist if movie.id}


@dataclass(slots=True)
class ClientConfig:
    """User-adjustable client settings persisted to config.json."""

    api_url: str = DEFAULT_API_URL
    request_timeout_seconds: int = 15
    max_retries: int = 3
    search_debounce_seconds: float = SEARCH_DEBOUNCE_SECONDS
    version: int = 1
    # Set at load time when the file was unreadable; never persisted
    config_defaulted: bool = False


__all__ = [
    "COMMENT_MAX_LENGTH",
    "CONFIG_APP_NAME",
    "DEFAULT_API_URL",
    "MEMBERSHIP_NONE",
    "MEMBERSHIP_SEEN",
    "MEMBERSHIP_WATCHLIST",
    "PROFILE_TABS",
    "RATING_MAX",
    "RATING_MIN",
    "SEARCH_DEBOUNCE_SECONDS",
    "USER_ROLES",
    "ClientConfig",
    "Comment",
    "ListSnapshot",
    "Membership",
    "Movie",
    "Session",
    "UserProfile",
]
