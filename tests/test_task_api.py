# tests/test_task_api.py

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

import pytest

from taskpilot.core.errors import (
    InvalidDueDateError,
    MissingDueDateError,
    StorageError,
    TaskNotFoundError,
    UpstreamFormatError,
    UpstreamUnavailableError,
    ValidationError,
)
from taskpilot.tasks.task_api import TaskService
from taskpilot.tasks.task_models import DisplayStatus, Priority, SortBy, TaskFilter, TaskStatus
from taskpilot.tasks.task_store import TaskStore

from .fakes import FakeExtractionClient


def test_ingest_offline_rajeev(offline_service) -> None:
    task = offline_service.ingest("Call client Rajeev tomorrow 5pm P2", "alice")

    assert task.title == "Call client Rajeev"
    assert task.assignee == "Rajeev"
    assert task.due_date == datetime(2024, 3, 21, 17, 0, tzinfo=UTC)
    assert task.priority == Priority.P2
    assert task.status == TaskStatus.PENDING
    assert task.owner_id == "alice"


def test_ingest_offline_today(offline_service) -> None:
    task = offline_service.ingest("Review code by 6pm today", "alice")

    assert task.title == "Review code"
    assert task.assignee is None
    assert task.due_date == datetime(2024, 3, 20, 18, 0, tzinfo=UTC)
    assert task.priority == Priority.P3


def test_ingest_without_due_date_stores_nothing(offline_service) -> None:
    with pytest.raises(MissingDueDateError):
        offline_service.ingest("Buy milk", "alice")
    assert offline_service.repo.count_tasks() == 0


def test_ingest_passes_reference_instant(service, extractor, clock) -> None:
    extractor.candidate = {"title": "Ship it", "dueDate": "2024-03-22T09:00:00Z", "priority": "P1"}

    task = service.ingest("ship it friday 9am P1", "alice")

    assert extractor.calls == [("ship it friday 9am P1", clock.now)]
    assert task.priority == Priority.P1
    assert task.due_date == datetime(2024, 3, 22, 9, 0, tzinfo=UTC)


@pytest.mark.parametrize(
    "error",
    [
        UpstreamUnavailableError("down", diagnostic="HTTP 503"),
        UpstreamFormatError("garbage", raw="not json"),
    ],
)
def test_ingest_upstream_errors_propagate(service, extractor, error) -> None:
    extractor.error = error
    with pytest.raises(type(error)):
        service.ingest("Call mom tomorrow", "alice")
    assert service.repo.count_tasks() == 0


def test_ingest_rejects_past_due_date(service, extractor) -> None:
    extractor.candidate = {"title": "x", "dueDate": "2024-03-01T09:00:00Z"}
    with pytest.raises(InvalidDueDateError):
        service.ingest("x last friday", "alice")
    assert service.repo.count_tasks() == 0


def test_ingest_blank_text_skips_extraction(service, extractor) -> None:
    with pytest.raises(ValidationError):
        service.ingest("   ", "alice")
    assert extractor.calls == []


def test_create_manual(service) -> None:
    task = service.create({"title": "Write report", "dueDate": "2024-03-22", "priority": "P1"}, "alice")
    assert task.due_date == datetime(2024, 3, 22, 12, 0, tzinfo=UTC)
    assert task.priority == Priority.P1
    assert service.get(task.id, "alice") == task


def test_toggle_twice_restores_status_and_bumps_updated_at(service) -> None:
    task = service.create({"title": "t", "dueDate": "2024-03-22"}, "alice")

    done = service.toggle_complete(task.id, "alice")
    again = service.toggle_complete(task.id, "alice")

    assert done.status == TaskStatus.COMPLETED
    assert again.status == TaskStatus.PENDING
    assert task.updated_at < done.updated_at < again.updated_at


def test_update_is_partial(service) -> None:
    task = service.create(
        {"title": "t", "dueDate": "2024-03-22", "assignee": "Rajeev", "priority": "P2"}, "alice"
    )
    updated = service.update(task.id, "alice", {"priority": "P4"})

    assert updated.priority == Priority.P4
    assert updated.assignee == "Rajeev"
    assert updated.title == "t"
    assert updated.due_date == task.due_date


def test_update_rejects_owner_change(service) -> None:
    task = service.create({"title": "t", "dueDate": "2024-03-22"}, "alice")
    with pytest.raises(ValidationError):
        service.update(task.id, "alice", {"ownerId": "bob"})
    assert service.get(task.id, "alice").owner_id == "alice"


def test_foreign_task_looks_missing(service) -> None:
    task = service.create({"title": "t", "dueDate": "2024-03-22"}, "alice")

    for call in (
        lambda: service.get(task.id, "bob"),
        lambda: service.update(task.id, "bob", {"title": "x"}),
        lambda: service.toggle_complete(task.id, "bob"),
        lambda: service.delete(task.id, "bob"),
    ):
        with pytest.raises(TaskNotFoundError) as ei:
            call()
        assert str(ei.value) == f"Task {task.id} not found"

    assert service.get(task.id, "alice") == task
    assert service.list("bob") == []


def test_delete(service) -> None:
    task = service.create({"title": "t", "dueDate": "2024-03-22"}, "alice")
    service.delete(task.id, "alice")
    with pytest.raises(TaskNotFoundError):
        service.get(task.id, "alice")
    with pytest.raises(TaskNotFoundError):
        service.delete(task.id, "alice")


def test_list_filters_and_sorts(service, clock) -> None:
    a = service.create({"title": "a", "dueDate": "2024-03-20T09:00:00Z", "priority": "P2"}, "alice")
    b = service.create({"title": "b", "dueDate": "2024-03-25T09:00:00Z", "priority": "P1"}, "alice")
    clock.advance(minutes=1)
    c = service.create({"title": "c", "dueDate": "2024-03-21T09:00:00Z", "priority": "P3"}, "alice")
    service.toggle_complete(c.id, "alice")

    def ids(**kw) -> list[int]:
        return [t.id for t in service.list("alice", **kw)]

    assert ids() == [a.id, c.id, b.id]
    assert ids(sort_by=SortBy.PRIORITY) == [b.id, a.id, c.id]
    assert ids(sort_by=SortBy.CREATED)[0] == c.id
    assert ids(flt=TaskFilter(status=DisplayStatus.OVERDUE)) == [a.id]
    assert ids(flt=TaskFilter(status=DisplayStatus.PENDING)) == [a.id, b.id]
    assert ids(flt=TaskFilter(status=DisplayStatus.COMPLETED)) == [c.id]
    assert ids(flt=TaskFilter(priority=Priority.P1)) == [b.id]


def test_storage_failure_surfaces_and_leaves_no_partial_task(tmp_path: Path, clock) -> None:
    db = tmp_path / "tasks.sqlite3"
    extractor = FakeExtractionClient({"title": "Call mom", "dueDate": "2024-03-21T17:00:00Z"})
    service = TaskService(TaskStore(db, clock=clock), extractor, clock=clock)
    kept = service.create({"title": "kept", "dueDate": "2024-03-22"}, "alice")

    backup = db.with_name("moved.sqlite3")
    db.rename(backup)
    db.mkdir()
    try:
        with pytest.raises(StorageError):
            service.ingest("Call mom tomorrow 5pm", "alice")
        with pytest.raises(StorageError):
            service.toggle_complete(kept.id, "alice")
    finally:
        db.rmdir()
        backup.rename(db)

    assert len(extractor.calls) == 1
    assert service.list("alice") == [kept]
