"""CLI/bootstrap helpers for the movie catalog client."""

from __future__ import annotations

import argparse
import logging
import logging.handlers
import sys
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path
from typing import Any

from movie_catalog.config import (
    _coerce_api_url,
    get_config_dir,
    load_config,
    save_config,
)
from movie_catalog.messages import build_actionable_error
from movie_catalog.models import ClientConfig
from movie_catalog.session import JsonFileKeyValueStore, KeyValueStore, SessionStore

logger = logging.getLogger(__name__)


def _configure_logging(debug: bool) -> None:
    """Configure logging. When debug=True, logs to file at DEBUG level."""
    if not debug:
        # Default: suppress all logging (TUI captures stderr)
        logging.disable(logging.CRITICAL)
        return

    log_dir = get_config_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "debug.log"

    handler = logging.handlers.RotatingFileHandler(
        log_file,
        maxBytes=5 * 1024 * 1024,
        backupCount=3,
        encoding="utf-8",
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    logging.root.addHandler(handler)
    logging.root.setLevel(logging.DEBUG)


def _validate_interactive_tty() -> bool:
    """Return True when stdin/stdout are interactive terminals."""
    return bool(sys.stdin.isatty() and sys.stdout.isatty())


def _resolve_api_url(raw: str) -> str | None:
    """Normalize a URL given on the command line; None when it is not http(s)."""
    if not raw.strip().startswith(("http://", "https://")):
        return None
    return _coerce_api_url(raw)


def main(
    argv: list[str] | None = None,
    *,
    load_config_fn: Callable[[], ClientConfig] = load_config,
    save_config_fn: Callable[[ClientConfig], bool] = save_config,
    storage_factory: Callable[[], KeyValueStore] = JsonFileKeyValueStore,
    configure_logging_fn: Callable[[bool], None] = _configure_logging,
    validate_interactive_tty_fn: Callable[[], bool] = _validate_interactive_tty,
    app_factory: Callable[..., Any] | None = None,
) -> int:
    """Main entry point. Returns exit code."""
    parser = argparse.ArgumentParser(
        description="Search movies, keep watch-later and seen lists, and rate them"
    )
    parser.add_argument(
        "--api-url",
        type=str,
        default=None,
        help="Base URL of the movie catalog API for this run (overrides config and env)",
    )
    parser.add_argument(
        "--set-api-url",
        type=str,
        default=None,
        metavar="URL",
        help="Save URL as the default API base URL and exit",
    )
    parser.add_argument(
        "--sign-out",
        action="store_true",
        help="Forget the saved session token and exit",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging to file (~/.config/movie-catalog/debug.log)",
    )
    args = parser.parse_args(argv)

    configure_logging_fn(args.debug)
    logger.debug("movie-catalog starting, cwd=%s", Path.cwd())

    config = load_config_fn()

    if args.set_api_url is not None:
        url = _resolve_api_url(args.set_api_url)
        if url is None:
            print(
                build_actionable_error(
                    "save the API URL",
                    why=f"{args.set_api_url!r} is not an http(s) URL",
                    next_step="pass a URL such as http://localhost:4000/api",
                ),
                file=sys.stderr,
            )
            return 1
        if not save_config_fn(replace(config, api_url=url)):
            print(
                build_actionable_error(
                    "save the API URL",
                    why="the config file could not be written",
                    next_step="check permissions on the config directory",
                ),
                file=sys.stderr,
            )
            return 1
        print(f"API URL saved: {url}")
        return 0

    session_store = SessionStore(storage_factory())

    if args.sign_out:
        session_store.clear("signed out from the command line")
        print("Signed out.")
        return 0

    if args.api_url is not None:
        url = _resolve_api_url(args.api_url)
        if url is None:
            print(
                build_actionable_error(
                    "start movie-catalog",
                    why=f"--api-url {args.api_url!r} is not an http(s) URL",
                    next_step="pass a URL such as http://localhost:4000/api",
                ),
                file=sys.stderr,
            )
            return 1
        config = replace(config, api_url=url)

    if not validate_interactive_tty_fn():
        print(
            "Error: movie-catalog requires an interactive TTY for the full UI.",
            file=sys.stderr,
        )
        print("Next steps:", file=sys.stderr)
        print("  - Run movie-catalog directly in a terminal session", file=sys.stderr)
        print("  - Use --sign-out or --set-api-url for non-interactive use", file=sys.stderr)
        print("  - Use --help for command documentation", file=sys.stderr)
        return 2

    if app_factory is None:
        from movie_catalog.app import MovieCatalogApp as _MovieCatalogApp

        app_factory = _MovieCatalogApp

    logger.info("Using API at %s", config.api_url)
    app = app_factory(config=config, session_store=session_store)
    app.run()
    return 0


__all__ = [
    "_configure_logging",
    "_validate_interactive_tty",
    "main",
]
