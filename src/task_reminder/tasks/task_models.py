# src/task_reminder/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import StrEnum

# Placeholder id of a task that has not been inserted into a store yet.
UNASSIGNED_ID = 0


class TaskValidationError(ValueError):
    """Rejected user input (bad timestamp, start not in the future, ...)."""


class NotificationKind(StrEnum):
    STARTS_SOON = "starts_soon"
    ENDS_SOON = "ends_soon"
    COMPLETED = "completed"
    NEXT_SCHEDULED = "next_scheduled"


@dataclass(slots=True, frozen=True)
class Task:
    """
    One occurrence of a (possibly recurring) task.

    Frozen: a scheduler activity keeps its own value, later store changes never reach it.
    """

    id: int
    title: str
    details: str
    start_time: datetime
    end_time: datetime
    is_recurring: bool = False
    frequency_minutes: int | None = None

    # Calendar event UID (pushed or pulled); used as the pull merge key.
    external_id: str | None = None

    def successor(self) -> Task:
        """
        Next occurrence of a recurring task: both bounds shifted by frequency_minutes.

        Raises ValueError for non-recurring tasks and OverflowError when the shift leaves
        the datetime range.
        """
        if not self.is_recurring or not self.frequency_minutes:
            raise ValueError(f"task {self.id} is not recurring")
        shift = timedelta(minutes=self.frequency_minutes)
        return replace(
            self,
            id=UNASSIGNED_ID,
            start_time=self.start_time + shift,
            end_time=self.end_time + shift,
            external_id=None,
        )


@dataclass(slots=True, frozen=True)
class Notification:
    kind: NotificationKind
    task: Task
    text: str
    at: datetime


def parse_timestamp(raw: str) -> datetime:
    """
    Parse an ISO 8601 date-time ("2024-12-31T15:00:06", "...Z", "...+02:00").

    Naive values are taken as UTC. The result is always converted to UTC.
    """
    value = (raw or "").strip()
    if not value:
        raise TaskValidationError("Empty timestamp.")
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        raise TaskValidationError(
            f"Invalid time format: {raw!r}. Use ISO 8601, e.g. '2024-12-31T15:00:06'."
        ) from None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def new_task(
    *,
    title: str,
    details: str,
    start_time: datetime,
    end_time: datetime,
    now: datetime,
    is_recurring: bool = False,
    frequency_minutes: int | None = None,
) -> Task:
    """Build an unassigned Task from user input, enforcing the creation rules."""
    if not title or not title.strip():
        raise TaskValidationError("Title is required.")
    if start_time <= now:
        raise TaskValidationError("Start time must be in the future.")
    if end_time <= start_time:
        raise TaskValidationError("End time must be after the start time.")

    if is_recurring:
        if frequency_minutes is None:
            raise TaskValidationError("Recurring tasks need a frequency in minutes.")
        if frequency_minutes <= 0:
            raise TaskValidationError("Frequency must be a positive number of minutes.")
    elif frequency_minutes is not None:
        raise TaskValidationError("Frequency is only allowed for recurring tasks (use --recurring).")

    return Task(
        id=UNASSIGNED_ID,
        title=title.strip(),
        details=details,
        start_time=start_time,
        end_time=end_time,
        is_recurring=is_recurring,
        frequency_minutes=frequency_minutes if is_recurring else None,
    )
