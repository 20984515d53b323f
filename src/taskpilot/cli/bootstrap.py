# src/taskpilot/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (extraction/store/identity).
"""

from __future__ import annotations

import logging

from ..auth.identity import JWTIdentityProvider, StaticIdentityProvider
from ..config import get_settings
from ..core.errors import ConfigurationError
from ..core.ports import ExtractionClient, IdentityProvider, TaskRepo
from ..core.state import AppState
from ..llm.client import OpenAIExtractionClient
from ..llm.offline import OfflineExtractionClient
from ..tasks.memory_store import InMemoryTaskStore
from ..tasks.task_api import TaskService
from ..tasks.task_models import SortBy
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)


def build_repo(settings) -> TaskRepo:
    backend = str(getattr(settings, "store_backend", "sqlite")).lower()
    if backend == "memory":
        return InMemoryTaskStore()
    if backend != "sqlite":
        raise ConfigurationError(f"Unknown store backend {backend!r}. Use 'sqlite' or 'memory'.")
    return TaskStore(settings.tasks_db_path)


def build_extractor(settings) -> tuple[ExtractionClient, str]:
    try:
        client = OpenAIExtractionClient(settings)
    except ConfigurationError as e:
        # Fallback for demos / local runs without external services.
        logger.info("Using offline extraction: %s", e)
        return OfflineExtractionClient(), "offline"
    return client, client.model


def build_identity(settings) -> IdentityProvider:
    if getattr(settings, "jwt_secret", None):
        return JWTIdentityProvider(settings.jwt_secret, settings.jwt_algorithm)
    return StaticIdentityProvider(settings.console_user)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    extractor, extractor_name = build_extractor(settings)
    service = TaskService(build_repo(settings), extractor)

    return AppState(
        settings=settings,
        service=service,
        identity=build_identity(settings),
        extractor_name=extractor_name,
        default_sort=SortBy.parse(getattr(settings, "default_sort", None)),
    )
