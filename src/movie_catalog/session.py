"""Session state and token persistence.

``SessionStore`` is the one piece of process-wide mutable state. It is
injected into the API client and every controller that needs auth context;
nothing looks it up ambiently.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Protocol, runtime_checkable

from movie_catalog.config import atomic_write_text, get_config_dir
from movie_catalog.models import Session, UserProfile

logger = logging.getLogger(__name__)

SESSION_FILENAME = "session.json"
TOKEN_KEY = "token"

ClearListener = Callable[[str], None]


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal string key-value storage used to persist the session token."""

    def get_item(self, key: str) -> str | None:
        """Return the stored value or None."""
        ...

    def set_item(self, key: str, value: str) -> None:
        """Store a value under ``key``."""
        ...

    def clear(self) -> None:
        """Remove every stored value."""
        ...


class MemoryKeyValueStore:
    """In-process key-value store (tests, ephemeral sessions)."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def clear(self) -> None:
        self._data.clear()


class JsonFileKeyValueStore:
    """Key-value store backed by a small JSON object on disk.

    Reads are tolerant: a missing, unreadable, or corrupt file behaves as an
    empty store. Writes are atomic.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path if path is not None else get_config_dir() / SESSION_FILENAME

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Could not read session file %s", self._path, exc_info=True)
            return {}
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if isinstance(k, str) and isinstance(v, str)}

    def get_item(self, key: str) -> str | None:
        return self._read().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        try:
            atomic_write_text(self._path, json.dumps(data, ensure_ascii=False))
        except OSError:
            logger.warning("Could not persist session to %s", self._path, exc_info=True)

    def clear(self) -> None:
        try:
            self._path.unlink(missing_ok=True)
        except OSError:
            logger.warning("Could not remove session file %s", self._path, exc_info=True)


class SessionStore:
    """Holds the current session; persists its token through a key-value store.

    ``clear()`` is idempotent. Every call notifies the registered clear
    listeners, which is how the presentation layer learns it must reset to
    the sign-in entry point.
    """

    def __init__(self, storage: KeyValueStore | None = None) -> None:
        self._storage: KeyValueStore = storage if storage is not None else MemoryKeyValueStore()
        self._session: Session | None = None
        self._clear_listeners: list[ClearListener] = []

    def get(self) -> Session | None:
        return self._session

    @property
    def token(self) -> str | None:
        """Token of the active session, read at call time."""
        session = self._session
        return session.token if session is not None else None

    @property
    def user(self) -> UserProfile | None:
        session = self._session
        return session.user if session is not None else None

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def set(self, session: Session) -> None:
        self._session = session
        self._storage.set_item(TOKEN_KEY, session.token)
        logger.debug("Session set for user %s", session.user.id)

    def update_user(self, user: UserProfile) -> None:
        """Replace the cached profile after a server-side profile mutation."""
        session = self._session
        if session is None:
            return
        self._session = Session(token=session.token, user=user)

    def stored_token(self) -> str | None:
        """Token persisted by a previous run, if any."""
        token = self._storage.get_item(TOKEN_KEY)
        return token or None

    def clear(self, reason: str = "") -> None:
        had_session = self._session is not None
        self._session = None
        self._storage.clear()
        if had_session:
            logger.info("Session cleared%s", f" ({reason})" if reason else "")
        for listener in list(self._clear_listeners):
            try:
                listener(reason)
            except Exception:
                logger.error("Session clear listener failed", exc_info=True)

    def add_clear_listener(self, listener: ClearListener) -> Callable[[], None]:
        """Register a callback run after every ``clear()``; returns an unsubscriber."""
        self._clear_listeners.append(listener)

        def _remove() -> None:
            if listener in self._clear_listeners:
                self._clear_listeners.remove(listener)

        return _remove


__all__ = [
    "SESSION_FILENAME",
    "TOKEN_KEY",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SessionStore",
]
