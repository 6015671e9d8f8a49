# src/task_reminder/calendar_sync/caldav_bridge.py

"""
CalDAV calendar bridge.

Two one-directional operations:
- push(task): best-effort mirror of a new local task as a VEVENT
- pull():     events in [now, now + lookahead] as ExternalEvent records

The connection is opened lazily on first use and reused afterwards.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Callable

import caldav
from caldav.lib import error

from ..core.clock import utc_now
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

UID_PREFIX = "task-reminder-"


class CalendarSyncError(RuntimeError):
    """Calendar unreachable, credentials rejected, or no usable calendar."""


@dataclass(slots=True, frozen=True)
class ExternalEvent:
    external_id: str
    title: str
    description: str
    start_time: datetime
    end_time: datetime


def _as_utc(value: date | datetime) -> datetime:
    # All-day events carry a plain date.
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def occurrence_key(comp: Any) -> str:
    """
    Merge key of one VEVENT.

    Expanded occurrences of a recurring event share the UID, so each one is keyed by
    UID plus its RECURRENCE-ID (UTC, ISO 8601). Single events keep the bare UID, which is
    also what push() records for mirrored tasks.
    """
    uid = str(comp["UID"])
    if "RECURRENCE-ID" not in comp:
        return uid
    recurrence_id = _as_utc(comp["RECURRENCE-ID"].dt)
    return f"{uid}#{recurrence_id.isoformat()}"


def event_from_component(comp: Any) -> ExternalEvent | None:
    """
    Convert an icalendar VEVENT component into an ExternalEvent.

    Returns None for events without UID or DTSTART. A missing DTEND falls back to
    DURATION, then to one hour after the start.
    """
    if "UID" not in comp or "DTSTART" not in comp:
        return None

    start = _as_utc(comp["DTSTART"].dt)
    if "DTEND" in comp:
        end = _as_utc(comp["DTEND"].dt)
    elif "DURATION" in comp:
        end = start + comp["DURATION"].dt
    else:
        end = start + timedelta(hours=1)

    if end <= start:
        end = start + timedelta(minutes=1)

    return ExternalEvent(
        external_id=occurrence_key(comp),
        title=str(comp.get("SUMMARY", "") or "(untitled event)"),
        description=str(comp.get("DESCRIPTION", "") or ""),
        start_time=start,
        end_time=end,
    )


class CalDavCalendarBridge:
    """CalendarBridge backed by a CalDAV server (Nextcloud, Radicale, iCloud, ...)."""

    def __init__(
        self,
        *,
        url: str,
        username: str,
        password: str,
        calendar_name: str | None = None,
        lookahead_days: int = 30,
        client_factory: Callable[..., Any] = caldav.DAVClient,
    ) -> None:
        if not url:
            raise ValueError("CalDAV url is required")
        self._url = url
        self._username = username
        self._password = password
        self._calendar_name = calendar_name
        self._lookahead = timedelta(days=max(1, int(lookahead_days)))
        self._client_factory = client_factory
        self._calendar: Any | None = None

    def _get_calendar(self) -> Any:
        if self._calendar is not None:
            return self._calendar

        try:
            client = self._client_factory(
                url=self._url,
                username=self._username,
                password=self._password,
            )
            calendars = client.principal().calendars()
        except error.AuthorizationError as e:
            raise CalendarSyncError(f"CalDAV authorization failed: {e}") from e
        except (error.DAVError, OSError) as e:
            raise CalendarSyncError(f"Unable to connect to CalDAV at {self._url}: {e}") from e

        if not calendars:
            raise CalendarSyncError("No calendars found on the CalDAV server.")

        if self._calendar_name:
            matching = [c for c in calendars if getattr(c, "name", None) == self._calendar_name]
            if not matching:
                raise CalendarSyncError(f"Calendar {self._calendar_name!r} not found.")
            self._calendar = matching[0]
        else:
            self._calendar = calendars[0]

        logger.info("CalDAV calendar selected: %s", getattr(self._calendar, "name", "?"))
        return self._calendar

    def push(self, task: Task) -> tuple[bool, str]:
        """
        Mirror a task as a calendar event.

        :returns: (True, event UID) on success, (False, error message) on failure.
        """
        uid = f"{UID_PREFIX}{uuid.uuid4()}"
        try:
            calendar = self._get_calendar()
            calendar.save_event(
                uid=uid,
                dtstart=task.start_time,
                dtend=task.end_time,
                summary=task.title,
                description=task.details,
            )
        except CalendarSyncError as e:
            logger.warning("Calendar push failed task_id=%s: %s", task.id, e)
            return False, str(e)
        except (error.DAVError, OSError) as e:
            logger.warning("Calendar push failed task_id=%s: %s", task.id, e)
            return False, f"Failed to push task {task.id} to calendar: {e}"

        logger.debug("Calendar push ok task_id=%s uid=%s", task.id, uid)
        return True, uid

    def pull(self) -> list[ExternalEvent]:
        calendar = self._get_calendar()
        start = utc_now()
        end = start + self._lookahead

        try:
            found = calendar.search(start=start, end=end, event=True, expand=True)
        except (error.DAVError, OSError) as e:
            raise CalendarSyncError(f"Failed to fetch calendar events: {e}") from e

        events: list[ExternalEvent] = []
        for obj in found:
            try:
                event = event_from_component(obj.icalendar_component)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping unreadable calendar event: %r", obj, exc_info=True)
                continue
            if event is not None:
                events.append(event)

        logger.info("Calendar pull: %d events between %s and %s", len(events), start, end)
        return events
