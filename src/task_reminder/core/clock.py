# src/task_reminder/core/clock.py

"""
Clock used by every timed operation.

Only two primitives exist: "what time is it" and "suspend until an instant".
All instants are timezone-aware UTC datetimes.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SystemClock:
    """Wall clock + asyncio.sleep."""

    def now(self) -> datetime:
        return utc_now()

    async def sleep_until(self, instant: datetime) -> None:
        """
        Suspend until `instant`.

        A past (or current) instant means no wait at all; the delay is never negative.
        """
        delay = (instant - self.now()).total_seconds()
        if delay <= 0:
            return
        await asyncio.sleep(delay)
