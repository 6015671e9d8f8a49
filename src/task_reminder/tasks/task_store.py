# src/task_reminder/tasks/task_store.py

from __future__ import annotations

import logging
import threading
from dataclasses import replace

from .task_models import UNASSIGNED_ID, Task

logger = logging.getLogger(__name__)


class TaskStore:
    """
    In-memory task store.

    Ids come from a monotonic counter starting at 1 and are never reused, even after removal.

    Thread-safety:
    - the console thread and the scheduler loop thread both use the store
    - one lock covers id assignment + insertion, and every other operation
    - the lock is never held across a suspension point (all methods are plain functions)
    """

    def __init__(self, first_id: int = 1) -> None:
        if first_id <= UNASSIGNED_ID:
            raise ValueError(f"first_id must be > {UNASSIGNED_ID}")
        self._lock = threading.Lock()
        self._tasks: dict[int, Task] = {}
        self._next_id = first_id
        # External ids of every task ever stored; removal does not forget them.
        self._known_external_ids: set[str] = set()
        logger.info("TaskStore ready first_id=%s", first_id)

    def close(self) -> None:
        """Compatibility hook for shutdown (nothing to release)."""
        return

    # ---- public API ----

    def count_tasks(self) -> int:
        with self._lock:
            return len(self._tasks)

    def add_task(self, task: Task) -> int:
        """Store a copy of `task` under the next id and return that id."""
        with self._lock:
            task_id = self._next_id
            self._next_id += 1
            self._tasks[task_id] = replace(task, id=task_id)
            if task.external_id:
                self._known_external_ids.add(task.external_id)

        logger.debug(
            "Task added id=%s title=%r start=%s end=%s recurring=%s",
            task_id,
            task.title,
            task.start_time.isoformat(),
            task.end_time.isoformat(),
            task.is_recurring,
        )
        return task_id

    def get_task(self, task_id: int) -> Task | None:
        with self._lock:
            return self._tasks.get(int(task_id))

    def list_tasks(self) -> list[Task]:
        """Snapshot of all stored tasks, ordered by id."""
        with self._lock:
            return [self._tasks[k] for k in sorted(self._tasks)]

    def remove_task(self, task_id: int) -> Task | None:
        """Delete and return the task, or None if the id is unknown."""
        with self._lock:
            task = self._tasks.pop(int(task_id), None)
        if task is not None:
            logger.debug("Task removed id=%s", task_id)
        return task

    def find_by_external_id(self, external_id: str) -> Task | None:
        if not external_id:
            return None
        with self._lock:
            for task in self._tasks.values():
                if task.external_id == external_id:
                    return task
        return None

    def set_external_id(self, task_id: int, external_id: str) -> Task | None:
        """Attach a calendar UID to a stored task. Returns the updated task (None if gone)."""
        with self._lock:
            task = self._tasks.get(int(task_id))
            if task is None:
                return None
            updated = replace(task, external_id=external_id)
            self._tasks[task.id] = updated
            self._known_external_ids.add(external_id)
            return updated

    def knows_external_id(self, external_id: str) -> bool:
        """True if any task, stored now or removed earlier, carried this external id."""
        if not external_id:
            return False
        with self._lock:
            return external_id in self._known_external_ids
