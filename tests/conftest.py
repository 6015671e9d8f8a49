# tests/conftest.py

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest

from task_reminder.cli.bootstrap import create_initial_state
from task_reminder.core.state import AppState

from .fakes import FakeClock, RecordingNotifier

T0 = datetime(2030, 1, 1, 9, 0, tzinfo=timezone.utc)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment (.env, TASK_REMINDER_* vars).
    """
    return SimpleNamespace(
        app_name="task-reminder-test",
        log_level="INFO",
        data_dir=tmp_path / "data",
        console_enabled=False,
        start_reminder_minutes=5,
        end_reminder_minutes=2,
        calendar_enabled=False,
        caldav_url="",
        caldav_username="",
        caldav_password="",
        caldav_calendar=None,
        calendar_push_on_add=True,
        calendar_lookahead_days=30,
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(T0)


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def state(settings: SimpleNamespace, clock: FakeClock, notifier: RecordingNotifier) -> AppState:
    """
    AppState wired with deterministic fakes (clock + notifier).

    The scheduler is not attached to a loop here; async tests attach the running loop.
    """
    return create_initial_state(settings=settings, notifier=notifier, clock=clock)
