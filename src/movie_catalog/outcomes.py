"""Structured results returned by every controller entry point.

Controllers never raise into the presentation layer. Each async operation
returns an ``Outcome`` whose ``kind`` says how the screen should react:

    ok            success; ``message`` may carry a confirmation
    info          business-rule refusal, not a failure
    validation    rejected locally before any network call; see ``reasons``
    error         network/server failure; state kept at last-known-good
    partial       multi-step mutation failed after an earlier step succeeded
    auth_expired  session cleared; navigation reset already signalled
"""

from __future__ import annotations

from dataclasses import dataclass

from movie_catalog.errors import (
    ApiError,
    ApiResponseError,
    ApiStatusError,
    ApiTransportError,
    AuthExpiredError,
)
from movie_catalog.messages import build_actionable_error, build_validation_message

OUTCOME_OK = "ok"
OUTCOME_INFO = "info"
OUTCOME_VALIDATION = "validation"
OUTCOME_ERROR = "error"
OUTCOME_PARTIAL = "partial"
OUTCOME_AUTH_EXPIRED = "auth_expired"

OUTCOME_KINDS = (
    OUTCOME_OK,
    OUTCOME_INFO,
    OUTCOME_VALIDATION,
    OUTCOME_ERROR,
    OUTCOME_PARTIAL,
    OUTCOME_AUTH_EXPIRED,
)


@dataclass(slots=True, frozen=True)
class Outcome:
    """Result of a controller operation."""

    kind: str
    message: str = ""
    reasons: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.kind not in OUTCOME_KINDS:
            raise ValueError(f"Unknown outcome kind: {self.kind!r}")

    @property
    def ok(self) -> bool:
        return self.kind == OUTCOME_OK

    @property
    def is_failure(self) -> bool:
        return self.kind not in (OUTCOME_OK, OUTCOME_INFO)


def succeeded(message: str = "") -> Outcome:
    return Outcome(OUTCOME_OK, message)


def refused(message: str) -> Outcome:
    return Outcome(OUTCOME_INFO, message)


def validation_failed(reasons: list[str]) -> Outcome:
    return Outcome(OUTCOME_VALIDATION, build_validation_message(reasons), tuple(reasons))


def auth_expired() -> Outcome:
    return Outcome(
        OUTCOME_AUTH_EXPIRED,
        build_actionable_error(
            "complete the request",
            why="your session has expired",
            next_step="sign in again",
        ),
    )


def outcome_from_error(action: str, exc: ApiError, *, next_step: str = "retry") -> Outcome:
    """Convert an API exception into the matching outcome kind."""
    if isinstance(exc, AuthExpiredError):
        return auth_expired()
    if isinstance(exc, ApiStatusError):
        if exc.server_message:
            why = exc.server_message
        elif exc.status_code == 429:
            why = "the server is rate limiting requests (HTTP 429)"
        elif exc.status_code >= 500:
            why = f"the server is unavailable right now (HTTP {exc.status_code})"
        else:
            why = f"the server rejected the request (HTTP {exc.status_code})"
    elif isinstance(exc, ApiTransportError):
        why = "a network error occurred"
        next_step = "check connectivity and retry"
    elif isinstance(exc, ApiResponseError):
        why = "the server sent an unreadable response"
    else:
        why = str(exc) or None
    return Outcome(OUTCOME_ERROR, build_actionable_error(action, why=why, next_step=next_step))


__all__ = [
    "OUTCOME_AUTH_EXPIRED",
    "OUTCOME_ERROR",
    "OUTCOME_INFO",
    "OUTCOME_KINDS",
    "OUTCOME_OK",
    "OUTCOME_PARTIAL",
    "OUTCOME_VALIDATION",
    "Outcome",
    "auth_expired",
    "outcome_from_error",
    "refused",
    "succeeded",
    "validation_failed",
]
