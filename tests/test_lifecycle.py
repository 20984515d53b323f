# tests/test_lifecycle.py

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from taskpilot.tasks.lifecycle import (
    display_status,
    filter_tasks,
    sort_tasks,
    split_by_status,
    toggled_status,
)
from taskpilot.tasks.task_models import (
    DisplayStatus,
    Priority,
    SortBy,
    Task,
    TaskFilter,
    TaskStatus,
)

NOW = datetime(2024, 3, 20, 10, 0, tzinfo=UTC)


def _task(
    task_id: int,
    *,
    due: datetime | None,
    priority: Priority = Priority.P3,
    status: TaskStatus = TaskStatus.PENDING,
    created: datetime | None = None,
) -> Task:
    created = created or NOW
    return Task(
        id=task_id,
        owner_id="alice",
        title=f"t{task_id}",
        assignee=None,
        due_date=due,
        priority=priority,
        status=status,
        created_at=created,
        updated_at=created,
    )


def test_toggle_is_an_involution() -> None:
    assert toggled_status(TaskStatus.PENDING) == TaskStatus.COMPLETED
    assert toggled_status(toggled_status(TaskStatus.PENDING)) == TaskStatus.PENDING


def test_display_status_overdue_is_derived() -> None:
    late = _task(1, due=NOW - timedelta(minutes=1))
    done_late = _task(2, due=NOW - timedelta(days=3), status=TaskStatus.COMPLETED)
    exactly_now = _task(3, due=NOW)

    assert display_status(late, NOW) == DisplayStatus.OVERDUE
    assert late.status == TaskStatus.PENDING
    assert display_status(done_late, NOW) == DisplayStatus.COMPLETED
    # due == now is not yet overdue
    assert display_status(exactly_now, NOW) == DisplayStatus.PENDING


def test_sort_by_due_date_missing_last() -> None:
    a = _task(1, due=NOW + timedelta(days=2))
    b = _task(2, due=None)
    c = _task(3, due=NOW + timedelta(hours=1))
    assert [t.id for t in sort_tasks([a, b, c], SortBy.DUE_DATE)] == [3, 1, 2]


def test_sort_by_priority_is_stable() -> None:
    tasks = [
        _task(1, due=NOW, priority=Priority.P3),
        _task(2, due=NOW, priority=Priority.P1),
        _task(3, due=NOW, priority=Priority.P3),
        _task(4, due=NOW, priority=Priority.P2),
    ]
    assert [t.id for t in sort_tasks(tasks, SortBy.PRIORITY)] == [2, 4, 1, 3]


def test_sort_by_created_newest_first() -> None:
    tasks = [
        _task(1, due=NOW, created=NOW - timedelta(days=2)),
        _task(2, due=NOW, created=NOW),
        _task(3, due=NOW, created=NOW - timedelta(days=1)),
    ]
    assert [t.id for t in sort_tasks(tasks, SortBy.CREATED)] == [2, 3, 1]


def test_filters() -> None:
    overdue = _task(1, due=NOW - timedelta(hours=1), priority=Priority.P1)
    upcoming = _task(2, due=NOW + timedelta(hours=1), priority=Priority.P2)
    done = _task(3, due=NOW - timedelta(hours=1), status=TaskStatus.COMPLETED, priority=Priority.P1)
    tasks = [overdue, upcoming, done]

    ids = lambda flt: [t.id for t in filter_tasks(tasks, flt, NOW)]  # noqa: E731

    assert ids(None) == [1, 2, 3]
    assert ids(TaskFilter(status=DisplayStatus.OVERDUE)) == [1]
    assert ids(TaskFilter(status=DisplayStatus.PENDING)) == [1, 2]
    assert ids(TaskFilter(status=DisplayStatus.COMPLETED)) == [3]
    assert ids(TaskFilter(priority=Priority.P1)) == [1, 3]
    assert ids(TaskFilter(priority=Priority.P1, status=DisplayStatus.COMPLETED)) == [3]


def test_split_by_status_keeps_order() -> None:
    tasks = [
        _task(1, due=NOW, status=TaskStatus.COMPLETED),
        _task(2, due=NOW),
        _task(3, due=NOW, status=TaskStatus.COMPLETED),
        _task(4, due=NOW),
    ]
    pending, completed = split_by_status(tasks)
    assert [t.id for t in pending] == [2, 4]
    assert [t.id for t in completed] == [1, 3]
