# src/taskpilot/tasks/memory_store.py

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from ..core.errors import ValidationError
from .task_models import NewTask, Priority, Task, TaskStatus, next_updated_at

logger = logging.getLogger(__name__)

_MUTABLE_FIELDS = frozenset({"title", "assignee", "due_date", "priority", "status"})


def _coerce(fields: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for attr, value in fields.items():
        if attr not in _MUTABLE_FIELDS:
            raise ValidationError(attr, "unknown or read-only field")
        try:
            if attr == "priority":
                value = Priority(value)
            elif attr == "status":
                value = TaskStatus(value)
        except ValueError as e:
            raise ValidationError(attr, str(e)) from e
        if attr == "assignee":
            value = value or None
        out[attr] = value
    return out


class InMemoryTaskStore:
    """
    Process-local task store with the same contract as the SQLite TaskStore.

    Locking:
    - `_registry_lock` guards the id counter and the set of live ids
    - one lock per task id serializes read-modify-write on that id only,
      so updates to different ids never wait on each other
    """

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(UTC))
        self._tasks: dict[int, Task] = {}
        self._locks: dict[int, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._next_id = 1
        logger.info("InMemoryTaskStore ready")

    def close(self) -> None:
        return

    def _lock_for(self, task_id: int) -> threading.Lock | None:
        with self._registry_lock:
            return self._locks.get(int(task_id))

    def count_tasks(self) -> int:
        with self._registry_lock:
            return len(self._tasks)

    def create(self, draft: NewTask, owner_id: str) -> Task:
        now = self._clock()
        with self._registry_lock:
            task_id = self._next_id
            self._next_id += 1
            task = Task(
                id=task_id,
                owner_id=str(owner_id),
                title=draft.title,
                assignee=draft.assignee or None,
                due_date=draft.due_date,
                priority=Priority(draft.priority),
                status=TaskStatus(draft.status),
                created_at=now,
                updated_at=now,
            )
            self._tasks[task_id] = task
            self._locks[task_id] = threading.Lock()
        logger.debug("Task added id=%s owner=%s", task_id, owner_id)
        return task

    def get(self, task_id: int, owner_id: str) -> Task | None:
        task = self._tasks.get(int(task_id))
        if task is None or task.owner_id != str(owner_id):
            return None
        return task

    def list_by_owner(self, owner_id: str) -> list[Task]:
        with self._registry_lock:
            snapshot = list(self._tasks.values())
        return [t for t in snapshot if t.owner_id == str(owner_id)]

    def update(self, task_id: int, owner_id: str, fields: Mapping[str, Any]) -> Task | None:
        fields = dict(fields)
        return self.modify(task_id, owner_id, lambda _current: fields)

    def modify(
            self,
            task_id: int,
            owner_id: str,
            change: Callable[[Task], Mapping[str, Any]],
    ) -> Task | None:
        lock = self._lock_for(task_id)
        if lock is None:
            return None

        with lock:
            # Re-read under the lock: a concurrent delete may have won.
            current = self._tasks.get(int(task_id))
            if current is None or current.owner_id != str(owner_id):
                return None

            fields = _coerce(change(current))
            updated = replace(
                current,
                **fields,
                updated_at=next_updated_at(current.updated_at, self._clock()),
            )
            with self._registry_lock:
                self._tasks[int(task_id)] = updated

        logger.debug("Task updated id=%s fields=%s", task_id, sorted(fields))
        return updated

    def delete(self, task_id: int, owner_id: str) -> bool:
        lock = self._lock_for(task_id)
        if lock is None:
            return False

        with lock:
            current = self._tasks.get(int(task_id))
            if current is None or current.owner_id != str(owner_id):
                return False
            with self._registry_lock:
                del self._tasks[int(task_id)]
                self._locks.pop(int(task_id), None)

        logger.debug("Task deleted id=%s", task_id)
        return True
