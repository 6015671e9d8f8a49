# src/task_reminder/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..tasks.task_scheduler import ReminderScheduler
from .ports import CalendarBridge, Clock, Notifier, TaskRepo


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    task_store: TaskRepo
    scheduler: ReminderScheduler
    notifier: Notifier
    clock: Clock

    # None when calendar sync is disabled or not configured.
    calendar: CalendarBridge | None = None
