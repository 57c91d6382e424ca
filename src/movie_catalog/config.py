"""Configuration persistence: load, save, and environment overrides."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from platformdirs import user_config_dir

from movie_catalog.models import (
    CONFIG_APP_NAME,
    DEFAULT_API_URL,
    SEARCH_DEBOUNCE_SECONDS,
    ClientConfig,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Configuration Persistence
# ============================================================================
#
# Validation contract: _dict_to_config() guarantees valid output for any input:
#
#   Field                      Rule                          Handler
#   ─────────────────────────  ────────────────────────────  ─────────────────────
#   api_url                    non-empty http(s) URL         _coerce_api_url
#   request_timeout_seconds    1 ≤ x ≤ 120                   _clamp_int
#   max_retries                1 ≤ x ≤ 5                     _clamp_int
#   search_debounce_seconds    0.05 ≤ x ≤ 5.0                _coerce_debounce
#
CONFIG_FILENAME = "config.json"
API_URL_ENV_VAR = "MOVIE_CATALOG_API_URL"

TIMEOUT_LIMITS = (1, 120)
RETRY_LIMITS = (1, 5)
DEBOUNCE_LIMITS = (0.05, 5.0)


def get_config_dir() -> Path:
    """Get the platform config directory shared by config, session, and logs."""
    return Path(user_config_dir(CONFIG_APP_NAME))


def get_config_path() -> Path:
    """Get the path to the configuration file.

    Uses platformdirs for cross-platform config directory:
    - Linux: ~/.config/movie-catalog/config.json
    - macOS: ~/Library/Application Support/movie-catalog/config.json
    - Windows: %APPDATA%/movie-catalog/config.json
    """
    return get_config_dir() / CONFIG_FILENAME


def _safe_get(data: dict, key: str, default: Any, expected_type: type | tuple[type, ...]) -> Any:
    """Safely get a value from dict with type validation.

    Returns the default if key is missing or value has wrong type.
    """
    value = data.get(key, default)
    if isinstance(value, bool) and expected_type is not bool:
        return default
    if not isinstance(value, expected_type):
        return default
    return value


def _clamp_int(value: int, limits: tuple[int, int]) -> int:
    low, high = limits
    return max(low, min(value, high))


def _coerce_debounce(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return SEARCH_DEBOUNCE_SECONDS
    low, high = DEBOUNCE_LIMITS
    return max(low, min(float(value), high))


def _coerce_api_url(value: Any) -> str:
    """Accept only absolute http(s) URLs; strip the trailing slash."""
    if not isinstance(value, str):
        return DEFAULT_API_URL
    cleaned = value.strip().rstrip("/")
    if not cleaned.startswith(("http://", "https://")):
        if cleaned:
            logger.warning("Ignoring invalid api_url %r, using default", value)
        return DEFAULT_API_URL
    return cleaned


def _config_to_dict(config: ClientConfig) -> dict[str, Any]:
    """Serialize ClientConfig to a JSON-compatible dictionary."""
    return {
        "version": config.version,
        "api_url": _coerce_api_url(config.api_url),
        "request_timeout_seconds": _clamp_int(config.request_timeout_seconds, TIMEOUT_LIMITS),
        "max_retries": _clamp_int(config.max_retries, RETRY_LIMITS),
        "search_debounce_seconds": _coerce_debounce(config.search_debounce_seconds),
    }


def _dict_to_config(data: dict[str, Any]) -> ClientConfig:
    """Deserialize a dictionary to ClientConfig with type validation."""
    defaults = ClientConfig()
    return ClientConfig(
        api_url=_coerce_api_url(data.get("api_url", DEFAULT_API_URL)),
        request_timeout_seconds=_clamp_int(
            _safe_get(data, "request_timeout_seconds", defaults.request_timeout_seconds, int),
            TIMEOUT_LIMITS,
        ),
        max_retries=_clamp_int(
            _safe_get(data, "max_retries", defaults.max_retries, int),
            RETRY_LIMITS,
        ),
        search_debounce_seconds=_coerce_debounce(
            data.get("search_debounce_seconds", SEARCH_DEBOUNCE_SECONDS)
        ),
        version=_safe_get(data, "version", 1, int),
    )


def apply_env_overrides(
    config: ClientConfig, environ: Mapping[str, str] | None = None
) -> ClientConfig:
    """Apply environment variable overrides in place and return the config."""
    env = os.environ if environ is None else environ
    override = env.get(API_URL_ENV_VAR, "").strip()
    if override:
        config.api_url = _coerce_api_url(override)
    return config


def load_config() -> ClientConfig:
    """Load configuration from disk.

    Returns default config if file doesn't exist or is corrupted.
    Logs specific errors to help diagnose config issues.
    """
    config_path = get_config_path()

    if not config_path.exists():
        return apply_env_overrides(ClientConfig())

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise TypeError(f"expected an object, got {type(data).__name__}")
        return apply_env_overrides(_dict_to_config(data))
    except json.JSONDecodeError as e:
        logger.warning("Config file has invalid JSON, using defaults: %s", e)
    except (KeyError, TypeError) as e:
        logger.warning("Config file has invalid structure, using defaults: %s", e)
    except OSError as e:
        logger.warning("Could not read config file, using defaults: %s", e)
    return apply_env_overrides(ClientConfig(config_defaulted=True))


def atomic_write_text(path: Path, text: str) -> None:
    """Write text to ``path`` via tempfile + os.replace().

    Prevents partial writes on crash/interrupt from corrupting the file.
    Creates the parent directory if needed.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp", prefix=f".{path.stem}-")
    closed = False
    try:
        os.write(fd, text.encode("utf-8"))
        os.close(fd)
        closed = True
        os.replace(tmp_path, path)
    except BaseException:
        if not closed:
            os.close(fd)
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def save_config(config: ClientConfig) -> bool:
    """Save configuration to disk atomically. Returns True on success."""
    try:
        data = _config_to_dict(config)
        atomic_write_text(get_config_path(), json.dumps(data, indent=2, ensure_ascii=False))
        return True
    except OSError as e:
        logger.error("Failed to save config: %s", e)
        return False


__all__ = [
    "API_URL_ENV_VAR",
    "CONFIG_FILENAME",
    "apply_env_overrides",
    "atomic_write_text",
    "get_config_dir",
    "get_config_path",
    "load_config",
    "save_config",
]
