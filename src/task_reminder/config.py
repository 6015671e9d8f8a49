# src/task_reminder/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time (CalDAV credentials are only read when sync is enabled).
- Local overrides via a gitignored config_local.py for a few safe switches.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "TASK_REMINDER"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Connector flags ----
    console_enabled: bool

    # ---- Reminder lead times (minutes before start / before end) ----
    start_reminder_minutes: int
    end_reminder_minutes: int

    # ---- Calendar (CalDAV) ----
    calendar_enabled: bool
    caldav_url: str
    caldav_username: str
    caldav_password: str
    caldav_calendar: Optional[str]
    calendar_push_on_add: bool
    calendar_lookahead_days: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "task-reminder") or "task-reminder"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/task_reminder"))

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        start_reminder_minutes = max(0, _env_int(_k("START_REMINDER_MINUTES"), 5))
        end_reminder_minutes = max(0, _env_int(_k("END_REMINDER_MINUTES"), 2))

        calendar_enabled = _env_bool(_k("CALENDAR_ENABLED"), False)
        caldav_url = (_first_env(_k("CALDAV_URL"), "CALDAV_URL", default="") or "").strip()
        caldav_username = (_first_env(_k("CALDAV_USERNAME"), "CALDAV_USERNAME", default="") or "").strip()
        caldav_password = _first_env(_k("CALDAV_PASSWORD"), "CALDAV_PASSWORD", default="") or ""
        caldav_calendar = (_env(_k("CALDAV_CALENDAR"), "").strip() or None)
        calendar_push_on_add = _env_bool(_k("CALENDAR_PUSH_ON_ADD"), True)
        calendar_lookahead_days = max(1, _env_int(_k("CALENDAR_LOOKAHEAD_DAYS"), 30))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            console_enabled=console_enabled,
            start_reminder_minutes=start_reminder_minutes,
            end_reminder_minutes=end_reminder_minutes,
            calendar_enabled=calendar_enabled,
            caldav_url=caldav_url,
            caldav_username=caldav_username,
            caldav_password=caldav_password,
            caldav_calendar=caldav_calendar,
            calendar_push_on_add=calendar_push_on_add,
            calendar_lookahead_days=calendar_lookahead_days,
        )


SETTINGS = Settings.from_env()

# ---- Optional local overrides (never committed) ----
# Prefer .env for secrets; use config_local.py only for safe overrides.
try:
    import config_local as _config_local  # type: ignore

    # Simple overrides for selected switches. Keep it explicit.
    if hasattr(_config_local, "CONSOLE_ENABLED"):
        object.__setattr__(SETTINGS, "console_enabled", bool(_config_local.CONSOLE_ENABLED))  # type: ignore[misc]
    if hasattr(_config_local, "CALENDAR_ENABLED"):
        object.__setattr__(SETTINGS, "calendar_enabled", bool(_config_local.CALENDAR_ENABLED))  # type: ignore[misc]
except ImportError:
    pass


def get_settings() -> Settings:
    return SETTINGS
