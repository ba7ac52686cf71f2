"""Configuration for the notification service.

Settings are read from the environment first, then from the ``Values`` section
of ``local.settings.json`` when running under the Functions host locally.
"""
import json
import os
from pathlib import Path
from typing import Any


def _load_local_settings() -> dict[str, Any]:
    """Load the Values section of local.settings.json if it exists."""
    settings_path = Path(__file__).resolve().parent.parent / "local.settings.json"
    if not settings_path.is_file():
        return {}
    try:
        with settings_path.open(encoding="utf-8") as settings_file:
            return json.load(settings_file).get("Values", {})
    except (OSError, ValueError):
        return {}


_local_settings: dict[str, Any] = _load_local_settings()


def _get_setting(name: str, required: bool = False, default: Any = None) -> Any:
    """Get a setting from the environment or local settings.

    Args:
        name (str): Setting name
        required (bool): Raise if the setting is missing
        default (Any): Value returned for a missing optional setting

    Returns:
        Any: Setting value
    """
    value = os.getenv(name)
    if value is None:
        value = _local_settings.get(name)
    if value is None:
        if required:
            raise ValueError(f"Missing required setting: '{name}'")
        return default
    return value


def _get_int_setting(name: str, default: int) -> int:
    """Get an integer setting, falling back to the default on bad input."""
    value = _get_setting(name, default=default)
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _get_bool_setting(name: str, default: bool) -> bool:
    """Get a boolean setting ("true", "1" and "yes" are truthy)."""
    value = _get_setting(name)
    if value is None:
        return default
    return str(value).strip().lower() in ("true", "1", "yes")


# Database
SQLALCHEMY_CONNECTION_STRING: str = _get_setting("SQLALCHEMY_CONNECTION_STRING", required=True)

# Providers, in priority order
ENABLED_PROVIDERS: list[str] = [
    name.strip().lower()
    for name in str(_get_setting("ENABLED_PROVIDERS", default="tvmaze,tmdb")).split(",")
    if name.strip()
]

TVMAZE_BASE_URL: str = _get_setting("TVMAZE_BASE_URL", default="https://api.tvmaze.com")
TVMAZE_TIMEOUT: int = _get_int_setting("TVMAZE_TIMEOUT", 10)
TVMAZE_MAX_RETRIES: int = _get_int_setting("TVMAZE_MAX_RETRIES", 3)

TMDB_API_KEY: str | None = _get_setting("TMDB_API_KEY")
TMDB_BASE_URL: str = _get_setting("TMDB_BASE_URL", default="https://api.themoviedb.org/3")
TMDB_IMAGE_BASE_URL: str = _get_setting("TMDB_IMAGE_BASE_URL", default="https://image.tmdb.org/t/p/w500")
TMDB_TIMEOUT: int = _get_int_setting("TMDB_TIMEOUT", 10)
TMDB_MAX_RETRIES: int = _get_int_setting("TMDB_MAX_RETRIES", 3)

# Delivery
TELEGRAM_TOKEN: str | None = _get_setting("TELEGRAM_TOKEN")
TELEGRAM_API_BASE_URL: str = _get_setting("TELEGRAM_API_BASE_URL", default="https://api.telegram.org")

# Scheduler
NOTIFICATIONS_ENABLED: bool = _get_bool_setting("NOTIFICATIONS_ENABLED", True)
CHECK_INTERVAL_NCRON: str = _get_setting("CHECK_INTERVAL_NCRON", default="0 0 */6 * * *")
EPISODE_NOTIFICATION_THRESHOLD_HOURS: int = _get_int_setting("EPISODE_NOTIFICATION_THRESHOLD_HOURS", 168)
UPCOMING_WINDOW_DAYS: int = _get_int_setting("UPCOMING_WINDOW_DAYS", 30)
SWEEP_MAX_WORKERS: int = _get_int_setting("SWEEP_MAX_WORKERS", 4)

# Search and subscriptions
MAX_RESULTS: int = _get_int_setting("MAX_RESULTS", 5)
MAX_FOLLOWED_SHOWS: int = _get_int_setting("MAX_FOLLOWED_SHOWS", 100)

LOG_LEVEL: str = str(_get_setting("LOG_LEVEL", default="INFO")).upper()
