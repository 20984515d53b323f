# src/taskpilot/tasks/task_api.py

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from ..core.errors import TaskNotFoundError, ValidationError
from ..core.ports import Clock, ExtractionClient, TaskRepo
from .lifecycle import filter_tasks, sort_tasks, toggled_status
from .normalizer import normalize_candidate, normalize_manual, normalize_patch
from .task_models import SortBy, Task, TaskFilter

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


class TaskService:
    """
    Core operations exposed to the presentation layer.

    Every call takes owner_id explicitly; there is no ambient "current user".
    Collaborators (store, extraction, clock) are injected.
    """

    def __init__(
            self,
            repo: TaskRepo,
            extractor: ExtractionClient,
            *,
            clock: Clock | None = None,
    ) -> None:
        self.repo = repo
        self.extractor = extractor
        self.clock = clock or utc_now

    def now(self) -> datetime:
        return self.clock()

    def ingest(self, text: str, owner_id: str) -> Task:
        """
        Free text -> stored task.

        Raises UpstreamUnavailableError / UpstreamFormatError from the extractor,
        MissingDueDateError / InvalidDueDateError / ValidationError from the
        normalizer. Nothing is stored unless every step succeeds.
        """
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("text", "is required")

        reference = self.now()
        candidate = self.extractor.extract(text, reference)
        draft = normalize_candidate(candidate, text, reference)

        task = self.repo.create(draft, owner_id)
        logger.info(
            "Ingested task id=%s owner=%s priority=%s due=%s",
            task.id,
            owner_id,
            task.priority.value,
            task.due_date.isoformat() if task.due_date else None,
        )
        return task

    def create(self, fields: Mapping[str, Any], owner_id: str) -> Task:
        """Explicit creation from structured fields (no extraction step)."""
        draft = normalize_manual(fields)
        task = self.repo.create(draft, owner_id)
        logger.info("Created task id=%s owner=%s", task.id, owner_id)
        return task

    def get(self, task_id: int, owner_id: str) -> Task:
        task = self.repo.get(task_id, owner_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def list(
            self,
            owner_id: str,
            flt: TaskFilter | None = None,
            sort_by: SortBy = SortBy.DUE_DATE,
    ) -> list[Task]:
        tasks = self.repo.list_by_owner(owner_id)
        return sort_tasks(filter_tasks(tasks, flt, self.now()), sort_by)

    def update(self, task_id: int, owner_id: str, fields: Mapping[str, Any]) -> Task:
        patch = normalize_patch(fields)
        task = self.repo.update(task_id, owner_id, patch)
        if task is None:
            raise TaskNotFoundError(task_id)
        logger.info("Updated task id=%s fields=%s", task_id, sorted(patch))
        return task

    def delete(self, task_id: int, owner_id: str) -> None:
        if not self.repo.delete(task_id, owner_id):
            raise TaskNotFoundError(task_id)
        logger.info("Deleted task id=%s", task_id)

    def toggle_complete(self, task_id: int, owner_id: str) -> Task:
        """pending <-> completed, computed from the latest stored status."""
        task = self.repo.modify(
            task_id,
            owner_id,
            lambda current: {"status": toggled_status(current.status)},
        )
        if task is None:
            raise TaskNotFoundError(task_id)
        logger.info("Task id=%s is now %s", task_id, task.status.value)
        return task
