"""
Runtime settings for the Liberator to Trakt import.

Values come from ``config.ini`` next to this file (or the file named by the
``LIBERATOR2TRAKT_CONFIG`` environment variable). Every key can be overridden
by an environment variable with the same upper-case name.
"""

import configparser
import logging
import os

CONFIG_FILENAME = os.environ.get(
    "LIBERATOR2TRAKT_CONFIG",
    os.path.join(os.path.dirname(os.path.abspath(__file__)), "config.ini"),
)

_parser = configparser.ConfigParser()
_parser.read(CONFIG_FILENAME, encoding="utf-8")


def _get(section: str, key: str, default: str) -> str:
    env_value = os.environ.get(key)
    if env_value is not None:
        return env_value
    return _parser.get(section, key, fallback=default)


def _get_bool(section: str, key: str, default: bool) -> bool:
    value = _get(section, key, str(default))
    return value.strip().lower() in ("1", "true", "yes", "on")


def _get_float(section: str, key: str, default: float) -> float:
    return float(_get(section, key, str(default)))


# Liberator export
LIBERATOR_EXPORT_PATH = _get("Liberator", "LIBERATOR_EXPORT_PATH", ".")
SHOWS_FILENAME = "shows.json"
MOVIES_FILENAME = "movies.json"

# Trakt API
TRAKT_API_CLIENT_ID = _get("Trakt", "TRAKT_API_CLIENT_ID", "")
TRAKT_API_CLIENT_SECRET = _get("Trakt", "TRAKT_API_CLIENT_SECRET", "")
TRAKT_API_MIN_DELAY = _get_float("Trakt", "TRAKT_API_MIN_DELAY", 1.0)
TRAKT_API_DRY_RUN = _get_bool("Trakt", "TRAKT_API_DRY_RUN", False)
TRAKT_API_VERBOSE = _get_bool("Trakt", "TRAKT_API_VERBOSE", False)
TRAKT_AUTH_FILE = _get("Trakt", "TRAKT_AUTH_FILE", "traktAuth.json")
NOT_FOUND_FILE = _get("Trakt", "NOT_FOUND_FILE", "not_found.csv")

# Logging
LOG_FILENAME = _get("Logging", "LOG_FILENAME", "Liberator2TraktImportLog.log")
LOG_LEVEL = logging.getLevelName(_get("Logging", "LOG_LEVEL", "INFO").upper())
