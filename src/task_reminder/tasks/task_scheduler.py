# src/task_reminder/tasks/task_scheduler.py

from __future__ import annotations

"""
Reminder scheduler.

Every task occurrence is driven by one lightweight asyncio task that:
- sleeps until "N minutes before start" and emits a reminder (skipped if already past),
- sleeps until "M minutes before end" and emits a reminder (skipped if already past),
- sleeps until the end instant and emits "complete",
- for recurring tasks: waits for the next start, inserts the successor into the store and
  launches a fresh asyncio task for it, then returns.

A recurring task therefore forms a chain of short-lived asyncio tasks on one event loop;
nothing nests, so an unbounded chain costs one pending task at a time.

Removing the chain's current occurrence cancels the chain (no further notifications,
no successor).
"""

import asyncio
import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from ..core.clock import SystemClock
from ..core.ports import Clock, Notifier, TaskRepo
from .task_models import UNASSIGNED_ID, Notification, NotificationKind, Task

logger = logging.getLogger(__name__)

DEFAULT_START_REMINDER_MINUTES = 5
DEFAULT_END_REMINDER_MINUTES = 2


def reminder_points(
    task: Task,
    *,
    start_lead_minutes: int = DEFAULT_START_REMINDER_MINUTES,
    end_lead_minutes: int = DEFAULT_END_REMINDER_MINUTES,
) -> tuple[datetime, datetime]:
    """Fire times of the "before start" and "before end" reminders."""
    return (
        task.start_time - timedelta(minutes=start_lead_minutes),
        task.end_time - timedelta(minutes=end_lead_minutes),
    )


def _minutes(n: int) -> str:
    return f"{n} minute" if n == 1 else f"{n} minutes"


@dataclass(slots=True)
class ReminderChain:
    """
    Bookkeeping for one task and all of its recurrences.

    Only touched from the scheduler's event loop thread.
    """

    root_id: int
    current_task_id: int
    occurrences: int = 0
    cancelled: bool = False
    handle: asyncio.Task[None] | None = None


class ReminderScheduler:
    """
    Drives reminder chains on a single asyncio event loop.

    schedule() and cancel() are safe to call from any thread; the rest runs on the loop.
    """

    def __init__(
        self,
        task_store: TaskRepo,
        notifier: Notifier,
        *,
        clock: Clock | None = None,
        start_lead_minutes: int = DEFAULT_START_REMINDER_MINUTES,
        end_lead_minutes: int = DEFAULT_END_REMINDER_MINUTES,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._store = task_store
        self._notifier = notifier
        self._clock: Clock = clock or SystemClock()
        self._start_lead = max(0, int(start_lead_minutes))
        self._end_lead = max(0, int(end_lead_minutes))
        self._loop = loop

        self._chains: dict[int, ReminderChain] = {}
        self._chain_by_task: dict[int, ReminderChain] = {}
        self._running: set[asyncio.Task[None]] = set()

        # schedule() calls accepted but not yet picked up by the loop thread.
        self._pending_lock = threading.Lock()
        self._pending = 0

    # ---- wiring ----

    def attach(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop

    @property
    def clock(self) -> Clock:
        return self._clock

    def _require_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            raise RuntimeError("ReminderScheduler is not attached to an event loop")
        return self._loop

    def _on_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    # ---- public API (any thread) ----

    def schedule(self, task: Task) -> None:
        """Start a reminder chain for a stored task."""
        if task.id == UNASSIGNED_ID:
            raise ValueError("task must be stored (have an id) before scheduling")
        loop = self._require_loop()

        if self._on_loop_thread():
            self._start_chain(task)
            return

        with self._pending_lock:
            self._pending += 1
        loop.call_soon_threadsafe(self._start_pending_chain, task)

    def cancel(self, task_id: int) -> None:
        """Stop the chain whose current occurrence is `task_id` (no-op if there is none)."""
        loop = self._require_loop()
        if self._on_loop_thread():
            self._cancel_chain(task_id)
            return
        loop.call_soon_threadsafe(self._cancel_chain, task_id)

    def active_chains(self) -> int:
        return len(self._chains)

    def is_idle(self) -> bool:
        with self._pending_lock:
            pending = self._pending
        return pending == 0 and not self._chains

    async def shutdown(self) -> None:
        """Cancel every chain and wait for their asyncio tasks to finish."""
        for task_id in list(self._chain_by_task):
            self._cancel_chain(task_id)
        if self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)
        logger.info("Reminder scheduler stopped.")

    # ---- loop thread only ----

    def _start_pending_chain(self, task: Task) -> None:
        with self._pending_lock:
            self._pending -= 1
        self._start_chain(task)

    def _start_chain(self, task: Task) -> None:
        chain = ReminderChain(root_id=task.id, current_task_id=task.id)
        self._chains[chain.root_id] = chain
        logger.info(
            "Reminder chain started task_id=%s start=%s end=%s recurring=%s",
            task.id,
            task.start_time.isoformat(),
            task.end_time.isoformat(),
            task.is_recurring,
        )
        self._launch(task, chain)

    def _launch(self, task: Task, chain: ReminderChain) -> None:
        self._chain_by_task.pop(chain.current_task_id, None)
        chain.current_task_id = task.id
        chain.occurrences += 1
        self._chain_by_task[task.id] = chain

        loop = self._require_loop()
        handle = loop.create_task(self._run_occurrence(task, chain), name=f"reminders-{task.id}")
        chain.handle = handle
        self._running.add(handle)
        handle.add_done_callback(self._running.discard)

    def _finish_chain(self, chain: ReminderChain) -> None:
        self._chains.pop(chain.root_id, None)
        if self._chain_by_task.get(chain.current_task_id) is chain:
            self._chain_by_task.pop(chain.current_task_id, None)

    def _cancel_chain(self, task_id: int) -> bool:
        chain = self._chain_by_task.get(int(task_id))
        if chain is None:
            return False

        chain.cancelled = True
        self._finish_chain(chain)
        if chain.handle is not None and not chain.handle.done():
            chain.handle.cancel()
        logger.info("Reminder chain %s cancelled at task_id=%s", chain.root_id, task_id)
        return True

    def _emit(self, chain: ReminderChain, kind: NotificationKind, task: Task, text: str) -> None:
        if chain.cancelled:
            return
        notification = Notification(kind=kind, task=task, text=text, at=self._clock.now())
        try:
            self._notifier.notify(notification)
        except Exception:
            logger.exception("notify failed task_id=%s kind=%s", task.id, kind.value)

    async def _run_occurrence(self, task: Task, chain: ReminderChain) -> None:
        try:
            start_at, end_at = reminder_points(
                task,
                start_lead_minutes=self._start_lead,
                end_lead_minutes=self._end_lead,
            )

            if start_at > self._clock.now():
                await self._clock.sleep_until(start_at)
                self._emit(
                    chain,
                    NotificationKind.STARTS_SOON,
                    task,
                    f"Reminder: '{task.title}' starts in {_minutes(self._start_lead)}!",
                )

            if end_at > self._clock.now():
                await self._clock.sleep_until(end_at)
                self._emit(
                    chain,
                    NotificationKind.ENDS_SOON,
                    task,
                    f"Reminder: '{task.title}' ends in {_minutes(self._end_lead)}!",
                )

            await self._clock.sleep_until(task.end_time)
            self._emit(chain, NotificationKind.COMPLETED, task, f"Task '{task.title}' is complete")

            if not task.is_recurring:
                logger.debug("Reminder chain %s finished task_id=%s", chain.root_id, task.id)
                self._finish_chain(chain)
                return

            await self._continue_chain(task, chain)

        except asyncio.CancelledError:
            logger.debug("Reminder task cancelled task_id=%s", task.id)
            raise
        except OverflowError:
            logger.exception(
                "Reminder chain %s stopped: time arithmetic overflow task_id=%s",
                chain.root_id,
                task.id,
            )
            self._finish_chain(chain)
        except Exception:
            logger.exception("Reminder chain %s crashed task_id=%s", chain.root_id, task.id)
            self._finish_chain(chain)

    async def _continue_chain(self, task: Task, chain: ReminderChain) -> None:
        """Insert and launch the next occurrence of a recurring task."""
        successor = task.successor()

        await self._clock.sleep_until(successor.start_time)
        if chain.cancelled:
            return

        task_id = self._store.add_task(successor)
        successor = replace(successor, id=task_id)
        logger.info(
            "Recurring task %s -> next occurrence id=%s start=%s",
            task.id,
            task_id,
            successor.start_time.isoformat(),
        )
        self._emit(
            chain,
            NotificationKind.NEXT_SCHEDULED,
            successor,
            f"Next recurring task scheduled with ID: {task_id}",
        )
        self._launch(successor, chain)
