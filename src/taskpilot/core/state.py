# src/taskpilot/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..tasks.task_api import TaskService
from ..tasks.task_models import SortBy
from .ports import IdentityProvider


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    service: TaskService
    identity: IdentityProvider

    # Console session: the owner every command acts as.
    owner_id: str | None = None
    extractor_name: str = "offline"
    default_sort: SortBy = SortBy.DUE_DATE

    def require_owner(self) -> str:
        """Owner id of the session, resolved through the identity capability when missing."""
        if self.owner_id is None:
            self.owner_id = self.identity.resolve(getattr(self.settings, "auth_token", None))
        return self.owner_id
