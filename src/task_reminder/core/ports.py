# src/task_reminder/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the console, the clock and the calendar provider swappable and makes testing easier.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..calendar_sync.caldav_bridge import ExternalEvent
    from ..tasks.task_models import Notification, Task


class Clock(Protocol):
    """Source of "now" and the only suspension primitive of the scheduler."""

    def now(self) -> datetime: ...

    async def sleep_until(self, instant: datetime) -> None: ...


class Notifier(Protocol):
    """
    Where reminder notifications go (console, tests, ...).

    Called from the scheduler's event loop; must not block.
    """

    def notify(self, notification: Notification) -> None: ...


class CalendarBridge(Protocol):
    """
    Optional external calendar.

    push() is best-effort and reports (success, message); pull() raises CalendarSyncError on failure.
    """

    def push(self, task: Task) -> tuple[bool, str]: ...

    def pull(self) -> list[ExternalEvent]: ...


class TaskRepo(Protocol):
    def add_task(self, task: Task) -> int: ...
    def list_tasks(self) -> list[Task]: ...
    def remove_task(self, task_id: int) -> Task | None: ...
    def get_task(self, task_id: int) -> Task | None: ...
    def count_tasks(self) -> int: ...
    def find_by_external_id(self, external_id: str) -> Task | None: ...
    def set_external_id(self, task_id: int, external_id: str) -> Any: ...
    def knows_external_id(self, external_id: str) -> bool: ...
