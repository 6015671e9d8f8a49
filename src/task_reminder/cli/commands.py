# src/task_reminder/cli/commands.py

from __future__ import annotations

import inspect
import logging
import shlex
from collections.abc import Callable
from datetime import datetime
from typing import cast

from ..calendar_sync.caldav_bridge import CalendarSyncError
from ..core.state import AppState
from ..tasks import task_api
from ..tasks.task_models import Task, TaskValidationError, parse_timestamp

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

ADD_USAGE = "Usage: add <title> <details> <start_time> <end_time> [--recurring] [frequency_minutes]"


class CommandError(Exception):
    """A command was rejected; the message is meant for the user."""


class CommandRegistry:
    """Command registry shared by the one-shot CLI and the console REPL (add, list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def dispatch(
        self,
        state: AppState,
        name: str,
        args: list[str],
        emit: CommandEmitter | None = None,
    ) -> str:
        """
        Run one command by name.

        Raises CommandError for unknown commands and rejected input.
        """
        key = name.lower().lstrip("/")
        handler = self._handlers.get(key)
        if not handler:
            raise CommandError(f"Unknown command: {name}. Use help to list available commands.")

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args" (shell-style quoting).
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        try:
            parts = shlex.split(line[1:])
        except ValueError as e:
            return f"Error: {e}"
        if not parts:
            return "Empty command. Use /help to list available commands."

        try:
            return self.dispatch(state, parts[0], parts[1:], emit)
        except CommandError as e:
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  {name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _fmt_ts(dt: datetime) -> str:
    return dt.strftime("%Y-%m-%d %H:%M:%S UTC")


def format_task(task: Task) -> str:
    recurring = f"Yes (every {task.frequency_minutes} min)" if task.is_recurring else "No"
    return (
        f"ID: {task.id}, Title: '{task.title}', Details: '{task.details}', "
        f"Start: {_fmt_ts(task.start_time)}, End: {_fmt_ts(task.end_time)}, Recurring: {recurring}"
    )


def _parse_int(raw: str, what: str) -> int:
    try:
        return int(raw)
    except ValueError:
        raise CommandError(f"{what} must be an integer, got {raw!r}.") from None


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    settings = state.settings
    calendar = "ON" if state.calendar is not None else "OFF"
    return (
        "Status:\n"
        f"  Tasks stored: {state.task_store.count_tasks()}\n"
        f"  Active reminder chains: {state.scheduler.active_chains()}\n"
        f"  Reminders: {getattr(settings, 'start_reminder_minutes', 5)} min before start, "
        f"{getattr(settings, 'end_reminder_minutes', 2)} min before end\n"
        f"  Calendar sync: {calendar}"
    )


def cmd_add(
    state: AppState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    """
    add "Stand-up" "Daily sync" 2030-01-01T09:00:00 2030-01-01T09:15:00
    add "Stretch" "Desk break" 2030-01-01T10:00:00Z 2030-01-01T10:05:00Z --recurring 60
    """
    recurring = False
    positional: list[str] = []
    for arg in args:
        if arg in ("--recurring", "-r"):
            recurring = True
        elif arg.startswith("-") and not arg.lstrip("-").isdigit():
            raise CommandError(f"Unknown option: {arg}. {ADD_USAGE}")
        else:
            positional.append(arg)

    if len(positional) not in (4, 5):
        raise CommandError(ADD_USAGE)

    title, details, raw_start, raw_end = positional[:4]
    frequency = _parse_int(positional[4], "frequency_minutes") if len(positional) == 5 else None

    try:
        result = task_api.add_task(
            state,
            title=title,
            details=details,
            start_time=parse_timestamp(raw_start),
            end_time=parse_timestamp(raw_end),
            is_recurring=recurring,
            frequency_minutes=frequency,
        )
    except TaskValidationError as e:
        raise CommandError(str(e)) from e

    lines = [f"Task '{result.task.title}' added with ID: {result.task.id}"]
    if result.calendar_pushed is True:
        lines.append("Mirrored to calendar.")
    elif result.calendar_pushed is False:
        lines.append(f"Calendar push failed (task kept locally): {result.calendar_message}")
    return "\n".join(lines)


def cmd_list(state: AppState, args: list[str]) -> str:
    tasks = task_api.list_tasks(state)
    if not tasks:
        return "No tasks."
    return "\n".join(format_task(t) for t in tasks)


def cmd_remove(state: AppState, args: list[str]) -> str:
    if len(args) != 1:
        raise CommandError("Usage: remove <id>")
    task_id = _parse_int(args[0], "id")

    removed = task_api.remove_task(state, task_id)
    if removed is None:
        return f"Task {task_id} not found."
    return f"Task {task_id} ('{removed.title}') removed."


def cmd_sync(
    state: AppState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    if emit:
        emit("[SYNC] Fetching events from calendar...")

    try:
        report = task_api.sync_from_calendar(state)
    except CalendarSyncError as e:
        logger.warning("Calendar sync failed: %s", e)
        raise CommandError(f"Calendar sync failed: {e}") from e

    lines = [
        f"Imported {len(report.imported)} task(s) from calendar "
        f"(skipped {report.duplicates} already imported, {report.finished} already finished)."
    ]
    lines.extend(format_task(t) for t in report.imported)
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show task count, active reminder chains, calendar state.")
registry.register(
    "add",
    cmd_add,
    help_text="Add a task: add <title> <details> <start> <end> [--recurring] [frequency_minutes].",
)
registry.register("list", cmd_list, help_text="List all tasks.", aliases=["ls"])
registry.register("remove", cmd_remove, help_text="Remove a task and stop its reminders: remove <id>.", aliases=["rm"])
registry.register("sync", cmd_sync, help_text="Import upcoming events from the CalDAV calendar.")
