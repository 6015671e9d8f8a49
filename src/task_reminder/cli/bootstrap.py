# src/task_reminder/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local (gitignored) data directory exists,
- wires concrete implementations into AppState (store/scheduler/notifier/calendar).
"""

from __future__ import annotations

import logging

from ..calendar_sync.caldav_bridge import CalDavCalendarBridge
from ..config import get_settings
from ..connectors.console_connector import ConsoleNotifier
from ..core.clock import SystemClock
from ..core.ports import CalendarBridge, Clock, Notifier
from ..core.state import AppState
from ..tasks.task_scheduler import ReminderScheduler
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)


def build_calendar_bridge(settings) -> CalendarBridge | None:
    """CalDAV bridge if enabled and configured, else None (sync disabled)."""
    if not getattr(settings, "calendar_enabled", False):
        return None
    if not settings.caldav_url:
        logger.warning("Calendar sync enabled but TASK_REMINDER_CALDAV_URL is empty; disabling it.")
        return None
    return CalDavCalendarBridge(
        url=settings.caldav_url,
        username=settings.caldav_username,
        password=settings.caldav_password,
        calendar_name=settings.caldav_calendar,
        lookahead_days=settings.calendar_lookahead_days,
    )


def create_initial_state(
    *,
    settings=None,
    notifier: Notifier | None = None,
    clock: Clock | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    The scheduler is not attached to an event loop yet; see connectors/scheduler_runner.py.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    clock = clock or SystemClock()
    notifier = notifier or ConsoleNotifier()
    task_store = TaskStore()

    scheduler = ReminderScheduler(
        task_store,
        notifier,
        clock=clock,
        start_lead_minutes=settings.start_reminder_minutes,
        end_lead_minutes=settings.end_reminder_minutes,
    )

    return AppState(
        settings=settings,
        task_store=task_store,
        scheduler=scheduler,
        notifier=notifier,
        clock=clock,
        calendar=build_calendar_bridge(settings),
    )
