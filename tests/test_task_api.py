# tests/test_task_api.py

from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from task_reminder.calendar_sync.caldav_bridge import CalendarSyncError, ExternalEvent
from task_reminder.tasks import task_api
from task_reminder.tasks.task_models import NotificationKind, TaskValidationError

from .conftest import T0
from .fakes import FakeCalendarBridge, settle


def _add(state, **overrides):
    kwargs = dict(
        title="Stand-up",
        details="Daily sync",
        start_time=T0 + timedelta(minutes=10),
        end_time=T0 + timedelta(minutes=20),
    )
    kwargs.update(overrides)
    return task_api.add_task(state, **kwargs)


def _event(uid: str, *, start_in: float, end_in: float, description: str = "") -> ExternalEvent:
    return ExternalEvent(
        external_id=uid,
        title=f"Event {uid}",
        description=description,
        start_time=T0 + timedelta(minutes=start_in),
        end_time=T0 + timedelta(minutes=end_in),
    )


@pytest.mark.asyncio
async def test_add_stores_and_schedules(state, clock, notifier) -> None:
    state.scheduler.attach(asyncio.get_running_loop())

    result = _add(state)
    await settle()

    assert result.task.id == 1
    assert result.calendar_pushed is None
    assert state.task_store.list_tasks() == [result.task]
    assert state.scheduler.active_chains() == 1

    await clock.advance(minutes=20)
    assert notifier.kinds() == [
        NotificationKind.STARTS_SOON,
        NotificationKind.ENDS_SOON,
        NotificationKind.COMPLETED,
    ]


def test_add_rejects_past_start_and_leaves_store_empty(state) -> None:
    with pytest.raises(TaskValidationError):
        _add(state, start_time=T0 - timedelta(minutes=1))
    with pytest.raises(TaskValidationError):
        _add(state, end_time=T0 + timedelta(minutes=10))

    assert state.task_store.count_tasks() == 0


@pytest.mark.asyncio
async def test_concurrent_adds_get_distinct_ids(state) -> None:
    state.scheduler.attach(asyncio.get_running_loop())

    first, second = await asyncio.gather(
        asyncio.to_thread(_add, state, title="one"),
        asyncio.to_thread(_add, state, title="two"),
    )
    await settle()

    assert first.task.id != second.task.id
    assert {first.task.id, second.task.id} == {1, 2}
    assert len(task_api.list_tasks(state)) == 2
    assert state.scheduler.active_chains() == 2


@pytest.mark.asyncio
async def test_remove_cancels_reminders(state, clock, notifier) -> None:
    state.scheduler.attach(asyncio.get_running_loop())
    result = _add(state, is_recurring=True, frequency_minutes=60)
    await settle()

    removed = task_api.remove_task(state, result.task.id)
    await settle()
    await clock.advance(minutes=180)

    assert removed == result.task
    assert notifier.received == []
    assert task_api.list_tasks(state) == []
    assert state.scheduler.is_idle()


@pytest.mark.asyncio
async def test_remove_unknown_is_not_found(state) -> None:
    state.scheduler.attach(asyncio.get_running_loop())
    _add(state)

    assert task_api.remove_task(state, 99) is None
    assert state.task_store.count_tasks() == 1


@pytest.mark.asyncio
async def test_add_pushes_to_calendar_and_records_uid(state) -> None:
    state.scheduler.attach(asyncio.get_running_loop())
    calendar = FakeCalendarBridge()
    state.calendar = calendar

    result = _add(state)

    assert result.calendar_pushed is True
    assert result.task.external_id == "pushed-1"
    assert calendar.pushed[0].id == result.task.id
    assert state.task_store.find_by_external_id("pushed-1") is not None


@pytest.mark.asyncio
async def test_failed_push_keeps_local_task(state) -> None:
    state.scheduler.attach(asyncio.get_running_loop())
    state.calendar = FakeCalendarBridge(push_ok=False)

    result = _add(state)

    assert result.calendar_pushed is False
    assert result.calendar_message == "calendar offline"
    assert state.task_store.count_tasks() == 1
    assert result.task.external_id is None


@pytest.mark.asyncio
async def test_push_can_be_disabled(state, settings) -> None:
    state.scheduler.attach(asyncio.get_running_loop())
    calendar = FakeCalendarBridge()
    state.calendar = calendar
    settings.calendar_push_on_add = False

    result = _add(state)

    assert result.calendar_pushed is None
    assert calendar.pushed == []


@pytest.mark.asyncio
async def test_sync_imports_upcoming_events_once(state, clock, notifier) -> None:
    state.scheduler.attach(asyncio.get_running_loop())
    state.calendar = FakeCalendarBridge(
        [
            _event("a", start_in=30, end_in=60, description="Room 4"),
            _event("b", start_in=90, end_in=120),
            _event("old", start_in=-60, end_in=-30),
        ]
    )

    report = task_api.sync_from_calendar(state)
    await settle()

    assert [t.external_id for t in report.imported] == ["a", "b"]
    assert report.finished == 1
    assert report.duplicates == 0

    imported = task_api.list_tasks(state)
    assert [t.title for t in imported] == ["Event a", "Event b"]
    assert imported[0].details == "Imported from calendar: Room 4"
    assert imported[1].details == "Imported from calendar"
    assert not any(t.is_recurring for t in imported)
    assert state.scheduler.active_chains() == 2

    again = task_api.sync_from_calendar(state)
    assert again.imported == []
    assert again.duplicates == 2
    assert state.task_store.count_tasks() == 2

    await clock.advance(minutes=60)
    done = [n.task.external_id for n in notifier.received if n.kind == NotificationKind.COMPLETED]
    assert done == ["a"]


def test_sync_requires_calendar(state) -> None:
    with pytest.raises(CalendarSyncError):
        task_api.sync_from_calendar(state)


def test_sync_failure_leaves_store_untouched(state) -> None:
    state.calendar = FakeCalendarBridge(pull_error="401 Unauthorized")

    with pytest.raises(CalendarSyncError, match="401"):
        task_api.sync_from_calendar(state)
    assert state.task_store.count_tasks() == 0


class _ExplodingCalendar(FakeCalendarBridge):
    def push(self, task):
        raise ValueError("unexpected server reply")


@pytest.mark.asyncio
async def test_crashing_push_still_schedules_reminders(state, clock, notifier) -> None:
    state.scheduler.attach(asyncio.get_running_loop())
    state.calendar = _ExplodingCalendar()

    result = _add(state)
    await settle()

    assert result.calendar_pushed is False
    assert "unexpected server reply" in result.calendar_message
    assert state.task_store.count_tasks() == 1
    assert state.scheduler.active_chains() == 1

    await clock.advance(minutes=20)
    assert notifier.kinds()[-1] == NotificationKind.COMPLETED


@pytest.mark.asyncio
async def test_removed_import_is_not_reimported(state) -> None:
    state.scheduler.attach(asyncio.get_running_loop())
    state.calendar = FakeCalendarBridge([_event("a", start_in=30, end_in=60)])

    [task] = task_api.sync_from_calendar(state).imported
    task_api.remove_task(state, task.id)
    await settle()

    again = task_api.sync_from_calendar(state)

    assert again.imported == []
    assert again.duplicates == 1
    assert state.task_store.count_tasks() == 0
