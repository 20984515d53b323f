# src/taskpilot/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum


class Priority(StrEnum):
    """Task priority, P1 (urgent) first."""

    P1 = "P1"
    P2 = "P2"
    P3 = "P3"
    P4 = "P4"

    @property
    def rank(self) -> int:
        return int(self.value[1])

    @classmethod
    def parse(cls, raw: object) -> Priority | None:
        if not isinstance(raw, str):
            return None
        try:
            return cls(raw.strip().upper())
        except ValueError:
            return None

    @classmethod
    def from_db(cls, raw: str | None) -> Priority:
        return cls.parse(raw) or DEFAULT_PRIORITY


DEFAULT_PRIORITY = Priority.P3


class TaskStatus(StrEnum):
    """Stored lifecycle status. Overdue is derived, see lifecycle.display_status."""

    PENDING = "pending"
    COMPLETED = "completed"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskStatus:
        if not raw:
            return cls.PENDING
        try:
            return cls(raw)
        except ValueError:
            return cls.PENDING


class DisplayStatus(StrEnum):
    PENDING = "pending"
    COMPLETED = "completed"
    OVERDUE = "overdue"


class SortBy(StrEnum):
    DUE_DATE = "due_date"
    PRIORITY = "priority"
    CREATED = "created"

    @classmethod
    def lookup(cls, raw: str | None) -> SortBy | None:
        """Name or alias -> SortBy, None when unrecognized."""
        s = (raw or "").strip().lower().replace("-", "_")
        aliases = {
            "due": "due_date",
            "duedate": "due_date",
            "date": "due_date",
            "prio": "priority",
            "created_at": "created",
            "createdat": "created",
            "new": "created",
        }
        s = aliases.get(s, s)
        try:
            return cls(s)
        except ValueError:
            return None

    @classmethod
    def parse(cls, raw: str | None, default: SortBy | None = None) -> SortBy:
        return cls.lookup(raw) or default or cls.DUE_DATE


@dataclass(slots=True, frozen=True)
class NewTask:
    """Canonical draft: validated, not yet stored."""

    title: str
    due_date: datetime
    assignee: str | None = None
    priority: Priority = DEFAULT_PRIORITY
    status: TaskStatus = TaskStatus.PENDING


@dataclass(slots=True, frozen=True)
class Task:
    id: int
    owner_id: str
    title: str
    assignee: str | None
    due_date: datetime | None
    priority: Priority
    status: TaskStatus
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict[str, object]:
        return {
            "id": self.id,
            "ownerId": self.owner_id,
            "title": self.title,
            "assignee": self.assignee,
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "priority": self.priority.value,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


@dataclass(slots=True, frozen=True)
class TaskFilter:
    priority: Priority | None = None
    status: DisplayStatus | None = None


def next_updated_at(previous: datetime, now: datetime) -> datetime:
    """`now`, or one microsecond past `previous` when the clock has not moved on."""
    if now > previous:
        return now
    return previous + timedelta(microseconds=1)
