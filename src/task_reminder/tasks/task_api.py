# src/task_reminder/tasks/task_api.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime

from ..calendar_sync.caldav_bridge import CalendarSyncError
from ..core.state import AppState
from .task_models import UNASSIGNED_ID, Task, new_task

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class AddResult:
    task: Task
    # None when no calendar push was attempted.
    calendar_pushed: bool | None = None
    calendar_message: str | None = None


@dataclass(slots=True)
class SyncReport:
    imported: list[Task] = field(default_factory=list)
    duplicates: int = 0
    finished: int = 0


def add_task(
    state: AppState,
    *,
    title: str,
    details: str,
    start_time: datetime,
    end_time: datetime,
    is_recurring: bool = False,
    frequency_minutes: int | None = None,
) -> AddResult:
    """
    Validate, store, optionally mirror to the calendar, and start reminders.

    Raises TaskValidationError before touching the store if the input is rejected.
    A failed calendar push is reported in the result; the local task is kept.
    """
    task = new_task(
        title=title,
        details=details,
        start_time=start_time,
        end_time=end_time,
        now=state.clock.now(),
        is_recurring=is_recurring,
        frequency_minutes=frequency_minutes,
    )
    task_id = state.task_store.add_task(task)
    task = replace(task, id=task_id)
    logger.debug("Task %r added with ID: %s", task.title, task_id)

    state.scheduler.schedule(task)

    pushed: bool | None = None
    message: str | None = None
    push_enabled = bool(getattr(state.settings, "calendar_push_on_add", True))
    if state.calendar is not None and push_enabled:
        try:
            pushed, message = state.calendar.push(task)
        except Exception as e:
            logger.exception("Calendar push crashed task_id=%s", task_id)
            pushed, message = False, f"Calendar push failed: {e}"
        if pushed:
            task = state.task_store.set_external_id(task_id, message) or task

    return AddResult(task=task, calendar_pushed=pushed, calendar_message=message)


def list_tasks(state: AppState) -> list[Task]:
    return state.task_store.list_tasks()


def remove_task(state: AppState, task_id: int) -> Task | None:
    """Remove a task; if it is the live occurrence of a reminder chain, the chain stops."""
    task = state.task_store.remove_task(task_id)
    if task is None:
        return None
    state.scheduler.cancel(task_id)
    logger.debug("Task %s removed.", task_id)
    return task


def sync_from_calendar(state: AppState) -> SyncReport:
    """
    Import upcoming calendar events as non-recurring tasks.

    Merge key is the event's external id (UID, plus RECURRENCE-ID for expanded occurrences).
    Events the store has ever held are skipped, including ones removed since.
    Events that have already ended are skipped as well.
    Raises CalendarSyncError if calendar sync is not configured or the pull fails.
    """
    if state.calendar is None:
        raise CalendarSyncError("Calendar sync is not configured (set TASK_REMINDER_CALENDAR_ENABLED).")

    events = state.calendar.pull()
    report = SyncReport()
    now = state.clock.now()

    for event in events:
        if state.task_store.knows_external_id(event.external_id):
            report.duplicates += 1
            continue
        if event.end_time <= now:
            report.finished += 1
            continue

        details = "Imported from calendar"
        if event.description.strip():
            details = f"{details}: {event.description.strip()}"

        task = Task(
            id=UNASSIGNED_ID,
            title=event.title,
            details=details,
            start_time=event.start_time,
            end_time=event.end_time,
            external_id=event.external_id,
        )
        task_id = state.task_store.add_task(task)
        stored = replace(task, id=task_id)
        state.scheduler.schedule(stored)
        report.imported.append(stored)

    logger.info(
        "Calendar sync: imported=%d duplicates=%d finished=%d",
        len(report.imported),
        report.duplicates,
        report.finished,
    )
    return report
