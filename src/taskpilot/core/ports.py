# src/taskpilot/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the extraction provider, the storage backend and the identity source
swappable and makes testing easier.
"""

from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any, Protocol

from ..tasks.task_models import NewTask, Task

Clock = Callable[[], datetime]
# Returns an aware UTC datetime. Injected everywhere "now" matters.

Candidate = dict[str, Any]
# Unvalidated JSON object returned by an extraction capability.


class ExtractionClient(Protocol):
    """Turns free text into a candidate draft, resolving relative dates against `reference`."""

    def extract(self, text: str, reference: datetime) -> Candidate: ...


class IdentityProvider(Protocol):
    """Resolves request credentials to an owner id, or raises an AuthError."""

    def resolve(self, credentials: str | None) -> str: ...


class TaskRepo(Protocol):
    """
    Ownership-scoped task storage.

    Every call takes the caller's owner_id. A record owned by someone else is
    reported exactly like a missing one (None / False).
    """

    def create(self, draft: NewTask, owner_id: str) -> Task: ...

    def get(self, task_id: int, owner_id: str) -> Task | None: ...

    def list_by_owner(self, owner_id: str) -> list[Task]: ...

    def update(self, task_id: int, owner_id: str, fields: Mapping[str, Any]) -> Task | None: ...

    def modify(
            self,
            task_id: int,
            owner_id: str,
            change: Callable[[Task], Mapping[str, Any]],
    ) -> Task | None: ...

    def delete(self, task_id: int, owner_id: str) -> bool: ...

    def count_tasks(self) -> int: ...

    def close(self) -> None: ...
