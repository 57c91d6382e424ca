"""Response parsing for catalog, user, and comment payloads.

The server speaks MongoDB-flavoured JSON (``_id`` keys, populated
references). Every parser here tolerates missing or mistyped fields and
returns None only when a record has no usable identity.
"""

from __future__ import annotations

import logging
from typing import Any

from movie_catalog.models import Comment, Movie, UserProfile

logger = logging.getLogger(__name__)


def _coerce_id(value: Any) -> str:
    """Coerce an id that may arrive as str or int (never bool) into str."""
    if isinstance(value, bool):
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    return ""


def _coerce_str(value: Any, default: str = "") -> str:
    if isinstance(value, str):
        return value
    return default


def _coerce_rating_average(value: Any) -> float | None:
    """Server averages are absent, null, or numeric."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _coerce_tmdb_id(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None


def _str_tuple(value: Any) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(item for item in value if isinstance(item, str))


def _record_id(data: dict[str, Any]) -> str:
    return _coerce_id(data.get("_id")) or _coerce_id(data.get("id"))


def parse_user_profile(data: Any) -> UserProfile | None:
    """Parse a user object. Returns None without an id."""
    if not isinstance(data, dict):
        return None
    user_id = _record_id(data)
    if not user_id:
        return None
    return UserProfile(
        id=user_id,
        username=_coerce_str(data.get("username")),
        role=_coerce_str(data.get("role"), "user") or "user",
        email=_coerce_str(data.get("email")),
    )


def parse_movie(data: Any) -> Movie | None:
    """Parse a movie. Needs at least an internal id or a TMDB id."""
    if not isinstance(data, dict):
        return None
    movie_id = _record_id(data)
    tmdb_id = _coerce_tmdb_id(data.get("tmdbId"))
    if not movie_id and tmdb_id is None:
        return None
    return Movie(
        id=movie_id,
        tmdb_id=tmdb_id,
        title=_coerce_str(data.get("title")),
        poster_url=_coerce_str(data.get("posterUrl")),
        description=_coerce_str(data.get("description")),
        release_date=_coerce_str(data.get("releaseDate")),
        categories=_str_tuple(data.get("categories")),
        cast=_str_tuple(data.get("cast")),
        average_user_rating=_coerce_rating_average(data.get("averageUserRating")),
        average_critic_rating=_coerce_rating_average(data.get("averageCriticRating")),
    )


def parse_comment(data: Any) -> Comment | None:
    """Parse a comment whose ``userId`` may be populated or a bare id."""
    if not isinstance(data, dict):
        return None
    comment_id = _record_id(data)
    author = data.get("userId")
    if isinstance(author, dict):
        user_id = _record_id(author)
        username = _coerce_str(author.get("username"))
        role = _coerce_str(author.get("role"), "user")
    else:
        user_id = _coerce_id(author)
        username = _coerce_str(data.get("username"))
        role = _coerce_str(data.get("role"), "user")
    if not comment_id or not user_id:
        return None

    movie = data.get("movieId")
    movie_id = _record_id(movie) if isinstance(movie, dict) else _coerce_id(movie)

    rating = data.get("rating")
    if isinstance(rating, bool) or not isinstance(rating, int):
        rating = 0

    return Comment(
        id=comment_id,
        movie_id=movie_id,
        user_id=user_id,
        username=username,
        role=role or "user",
        rating=rating,
        content=_coerce_str(data.get("content")),
    )


def parse_movie_list(data: Any) -> list[Movie]:
    """Parse a JSON array of movies, skipping unusable items."""
    if not isinstance(data, list):
        logger.warning("Expected a movie list, got %s", type(data).__name__)
        return []
    movies: list[Movie] = []
    for item in data:
        movie = parse_movie(item)
        if movie is None:
            logger.warning("Skipping movie entry without an id")
            continue
        movies.append(movie)
    return movies


def parse_comment_list(data: Any) -> list[Comment]:
    """Parse a JSON array of comments, preserving server order."""
    if not isinstance(data, list):
        logger.warning("Expected a comment list, got %s", type(data).__name__)
        return []
    comments: list[Comment] = []
    for item in data:
        comment = parse_comment(item)
        if comment is None:
            logger.warning("Skipping comment entry without an id or author")
            continue
        comments.append(comment)
    return comments


def parse_login_response(data: Any) -> tuple[str, UserProfile | None]:
    """Extract (token, user) from a login/register response.

    The token is empty when the server did not issue one.
    """
    if not isinstance(data, dict):
        return "", None
    token = _coerce_str(data.get("token"))
    return token, parse_user_profile(data.get("user"))


__all__ = [
    "parse_comment",
    "parse_comment_list",
    "parse_login_response",
    "parse_movie",
    "parse_movie_list",
    "parse_user_profile",
]
