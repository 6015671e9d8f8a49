# tests/test_commands.py

from __future__ import annotations

import asyncio

import pytest

from task_reminder.cli.commands import CommandError, CommandRegistry, registry

from .fakes import FakeCalendarBridge, settle


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}

    def h2(state, args):
        called["h2"] += 1
        return "h2"

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b", aliases=["bee"])

    assert reg.handle(state, "/a x") == "h2"
    assert reg.handle(state, "/bee y", emit=lambda _: None) == "h3"
    assert called["h2"] == 1
    assert called["h3"] == 1


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    with pytest.raises(CommandError):
        reg.dispatch(state, "nope", [])


def test_unbalanced_quotes_are_reported(state) -> None:
    assert (registry.handle(state, '/add "Stand-up') or "").startswith("Error:")


@pytest.mark.asyncio
async def test_add_list_remove_roundtrip(state) -> None:
    state.scheduler.attach(asyncio.get_running_loop())

    out = registry.handle(
        state,
        '/add "Stand-up call" "Daily sync" 2030-01-01T09:10:00 2030-01-01T09:20:00Z',
    )
    assert out == "Task 'Stand-up call' added with ID: 1"

    out = registry.handle(
        state,
        "/add Stretch Break 2030-01-01T10:00:00 2030-01-01T10:05:00 --recurring 60",
    )
    assert out == "Task 'Stretch' added with ID: 2"
    await settle()
    assert state.scheduler.active_chains() == 2

    listing = registry.dispatch(state, "list", [])
    assert listing.splitlines() == [
        "ID: 1, Title: 'Stand-up call', Details: 'Daily sync', "
        "Start: 2030-01-01 09:10:00 UTC, End: 2030-01-01 09:20:00 UTC, Recurring: No",
        "ID: 2, Title: 'Stretch', Details: 'Break', "
        "Start: 2030-01-01 10:00:00 UTC, End: 2030-01-01 10:05:00 UTC, Recurring: Yes (every 60 min)",
    ]

    assert registry.handle(state, "/remove 2") == "Task 2 ('Stretch') removed."
    assert registry.handle(state, "/rm 2") == "Task 2 not found."
    await settle()
    assert state.scheduler.active_chains() == 1


@pytest.mark.parametrize(
    "line, expected",
    [
        ("/add only two", "Usage: add"),
        ("/add t d 2030-01-01T09:10:00 2030-01-01T09:20:00 --every 5", "Unknown option"),
        ("/add t d yesterday 2030-01-01T09:20:00", "Invalid time format"),
        ("/add t d 2029-12-31T09:10:00 2029-12-31T09:20:00", "Start time must be in the future"),
        ("/add t d 2030-01-01T09:20:00 2030-01-01T09:10:00", "End time must be after the start time"),
        ("/add t d 2030-01-01T09:10:00 2030-01-01T09:20:00 --recurring", "frequency"),
        ("/add t d 2030-01-01T09:10:00 2030-01-01T09:20:00 --recurring often", "must be an integer"),
        ("/add t d 2030-01-01T09:10:00 2030-01-01T09:20:00 --recurring -5", "positive"),
        ("/add t d 2030-01-01T09:10:00 2030-01-01T09:20:00 15", "--recurring"),
        ("/remove", "Usage: remove"),
        ("/remove abc", "must be an integer"),
    ],
)
def test_rejected_commands(state, line: str, expected: str) -> None:
    out = registry.handle(state, line) or ""
    assert out.startswith("Error:")
    assert expected in out
    assert state.task_store.count_tasks() == 0


def test_list_empty(state) -> None:
    assert registry.dispatch(state, "list", []) == "No tasks."


def test_sync_without_calendar_is_an_error(state) -> None:
    with pytest.raises(CommandError, match="Calendar sync failed"):
        registry.dispatch(state, "sync", [])


@pytest.mark.asyncio
async def test_add_reports_calendar_push(state) -> None:
    state.scheduler.attach(asyncio.get_running_loop())
    state.calendar = FakeCalendarBridge(push_ok=False)

    out = registry.handle(state, "/add t d 2030-01-01T09:10:00 2030-01-01T09:20:00") or ""

    assert out.splitlines() == [
        "Task 't' added with ID: 1",
        "Calendar push failed (task kept locally): calendar offline",
    ]


def test_status_and_help(state) -> None:
    status = registry.dispatch(state, "status", [])
    assert "Tasks stored: 0" in status
    assert "Calendar sync: OFF" in status

    help_text = registry.handle(state, "/help") or ""
    for name in ("add", "list", "remove", "sync"):
        assert f"  {name} - " in help_text
