"""Static configuration for mediavault.

Non-secret settings (database, digest schedule, API, logging) live in a single
JSON file for quick edits without touching Python. Secrets stay in .env.
"""

import json
import logging
import os
from zoneinfo import ZoneInfo

from core.config import DigestConfig, DigestSchedule, parse_clock, parse_weekday

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# MEDIAVAULT_CONFIG points an installed copy at a config outside the checkout.
CONFIG_PATH = os.getenv("MEDIAVAULT_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _resolve_path(path: str) -> str:
    if os.path.isabs(path):
        return path
    return os.path.join(PROJECT_ROOT, path)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Where to store the SQLite database.
DB_PATH = _resolve_path(_CONFIG.get("database", {}).get("path", "mediavault.db"))

# Digest rendering limits and the weekly schedule.
# - weekday: day name, e.g. "sunday"
# - time: "HH:MM" in the given timezone
# - timezone: IANA name, "UTC" by default
_digest = _CONFIG.get("digest", {})
DIGEST_CONFIG = DigestConfig(
    max_messages_per_group=int(_digest.get("max_messages_per_group", 10)),
    max_post_chars=int(_digest.get("max_post_chars", 4000)),
    post_delay_seconds=float(_digest.get("post_delay_seconds", 1.0)),
)
DIGEST_SCHEDULE = DigestSchedule(
    enabled=bool(_digest.get("enabled", True)),
    weekday=parse_weekday(_digest.get("weekday", "sunday")),
    at=parse_clock(_digest.get("time", "00:00")),
    timezone=ZoneInfo(_digest.get("timezone", "UTC")),
)

# Dashboard API bind address.
_api = _CONFIG.get("api", {})
API_HOST = _api.get("host", "127.0.0.1")
API_PORT = int(_api.get("port", 5000))

# Logging configuration (optional).
# - redact.patterns: names of environment variables whose values are masked
#   in every log line
LOGGING = _CONFIG.get("logging", {})
LOGGING_ENABLED = bool(LOGGING.get("enabled", True))
LOG_LEVEL = getattr(logging, str(LOGGING.get("level", "INFO")).upper(), logging.INFO)
LOG_TO_CONSOLE = bool(LOGGING.get("console", True))

_log_file = LOGGING.get("file", {})
LOG_FILE_PATH = _resolve_path(_log_file.get("path", "logs/mediavault.log")) if _log_file.get("enabled", False) else None
LOG_FILE_MAX_BYTES = int(_log_file.get("max_bytes", 5 * 1024 * 1024))
LOG_FILE_BACKUP_COUNT = int(_log_file.get("backup_count", 5))

SECRET_ENV_VARS = ["DISCORD_BOT_TOKEN", "SITE_PASSWORD", "SESSION_SECRET"]
_redact = LOGGING.get("redact", {})
REDACT_ENV_VARS = list(_redact.get("patterns", SECRET_ENV_VARS)) if _redact.get("enabled", True) else []
