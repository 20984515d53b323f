# src/taskpilot/tasks/lifecycle.py

from __future__ import annotations

"""
Lifecycle and ordering rules.

Stored states are pending and completed; overdue is derived at read time from
(status, due_date, now) and never written back.
"""

from collections.abc import Iterable
from datetime import datetime

from .task_models import DisplayStatus, SortBy, Task, TaskFilter, TaskStatus


def toggled_status(status: TaskStatus) -> TaskStatus:
    if status == TaskStatus.COMPLETED:
        return TaskStatus.PENDING
    return TaskStatus.COMPLETED


def is_overdue(task: Task, now: datetime) -> bool:
    return task.status == TaskStatus.PENDING and task.due_date is not None and task.due_date < now


def display_status(task: Task, now: datetime) -> DisplayStatus:
    if task.status == TaskStatus.COMPLETED:
        return DisplayStatus.COMPLETED
    if is_overdue(task, now):
        return DisplayStatus.OVERDUE
    return DisplayStatus.PENDING


def _matches(task: Task, flt: TaskFilter, now: datetime) -> bool:
    if flt.priority is not None and task.priority != flt.priority:
        return False

    if flt.status is None:
        return True
    if flt.status == DisplayStatus.OVERDUE:
        return is_overdue(task, now)
    # "pending" keeps overdue tasks: they are still pending in storage.
    return task.status.value == flt.status.value


def filter_tasks(tasks: Iterable[Task], flt: TaskFilter | None, now: datetime) -> list[Task]:
    if flt is None:
        return list(tasks)
    return [t for t in tasks if _matches(t, flt, now)]


def sort_tasks(tasks: Iterable[Task], sort_by: SortBy) -> list[Task]:
    """
    Stable ordering for presentation:
    - due_date: soonest first, tasks without a due date last
    - priority: P1, P2, P3, P4
    - created: newest first
    """
    items = list(tasks)

    if sort_by == SortBy.PRIORITY:
        return sorted(items, key=lambda t: t.priority.rank)

    if sort_by == SortBy.CREATED:
        # reverse=True keeps equal keys in input order.
        return sorted(items, key=lambda t: t.created_at, reverse=True)

    return sorted(
        items,
        key=lambda t: (t.due_date is None, t.due_date.timestamp() if t.due_date else 0.0),
    )


def split_by_status(tasks: Iterable[Task]) -> tuple[list[Task], list[Task]]:
    """(pending, completed), each keeping the input order."""
    pending: list[Task] = []
    completed: list[Task] = []
    for t in tasks:
        (completed if t.status == TaskStatus.COMPLETED else pending).append(t)
    return pending, completed
