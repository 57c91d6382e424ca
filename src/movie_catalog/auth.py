"""Sign-in, registration, session restore, and sign-out."""

from __future__ import annotations

import logging
import re

from movie_catalog.api_client import ApiClient
from movie_catalog.errors import ApiError, ApiStatusError
from movie_catalog.messages import build_actionable_error, build_actionable_success
from movie_catalog.models import USER_ROLES, Session
from movie_catalog.outcomes import (
    OUTCOME_ERROR,
    Outcome,
    outcome_from_error,
    refused,
    succeeded,
    validation_failed,
)
from movie_catalog.session import SessionStore

logger = logging.getLogger(__name__)

PASSWORD_MIN_LENGTH = 6
_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def validate_registration(username: str, email: str, password: str, role: str) -> list[str]:
    """Return every reason the registration form is invalid."""
    reasons: list[str] = []
    if not username.strip():
        reasons.append("Username is required")
    if not email.strip():
        reasons.append("Email is required")
    elif not _EMAIL_PATTERN.match(email.strip()):
        reasons.append("Email address is invalid")
    if not password:
        reasons.append("Password is required")
    elif len(password) < PASSWORD_MIN_LENGTH:
        reasons.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if role not in USER_ROLES:
        reasons.append("Choose a role")
    return reasons


async def login(
    *,
    api: ApiClient,
    session_store: SessionStore,
    identifier: str,
    password: str,
) -> Outcome:
    """Authenticate with an email or username and populate the session."""
    reasons: list[str] = []
    if not identifier.strip():
        reasons.append("Email or username is required")
    if not password:
        reasons.append("Password is required")
    if reasons:
        return validation_failed(reasons)

    try:
        session = await api.login(identifier.strip(), password)
    except ApiStatusError as exc:
        if exc.status_code in (400, 401, 404):
            return Outcome(
                OUTCOME_ERROR,
                build_actionable_error(
                    "sign in",
                    why=exc.server_message or "the credentials were not accepted",
                    next_step="check your email/username and password",
                ),
            )
        return outcome_from_error("sign in", exc)
    except ApiError as exc:
        return outcome_from_error("sign in", exc)

    session_store.set(session)
    logger.info("Signed in as %s", session.user.username)
    return succeeded(build_actionable_success(f"Welcome, {session.user.username}"))


async def register(
    *,
    api: ApiClient,
    session_store: SessionStore,
    username: str,
    email: str,
    password: str,
    role: str,
) -> Outcome:
    """Create an account; signs in directly when the server issues a token."""
    reasons = validate_registration(username, email, password, role)
    if reasons:
        return validation_failed(reasons)

    try:
        token, user = await api.register(
            username=username.strip(), email=email.strip(), password=password, role=role
        )
    except ApiError as exc:
        return outcome_from_error("register", exc, next_step="review the form and try again")

    if token and user is not None:
        session_store.set(Session(token=token, user=user))
        return succeeded(
            build_actionable_success("Registration complete", detail="You are signed in")
        )
    return succeeded(
        build_actionable_success(
            "Registration complete", next_step="sign in with your new account"
        )
    )


async def restore_session(*, api: ApiClient, session_store: SessionStore) -> Outcome:
    """Rebuild the session from a token persisted by a previous run."""
    token = session_store.stored_token()
    if not token:
        return refused("No saved session.")
    try:
        user = await api.get_profile(token=token)
    except ApiError as exc:
        # A 401 has already cleared the stored token.
        return outcome_from_error("restore your session", exc, next_step="sign in again")
    session_store.set(Session(token=token, user=user))
    logger.info("Restored session for %s", user.username)
    return succeeded()


def sign_out(session_store: SessionStore) -> None:
    session_store.clear("signed out")


__all__ = [
    "PASSWORD_MIN_LENGTH",
    "login",
    "register",
    "restore_session",
    "sign_out",
    "validate_registration",
]
