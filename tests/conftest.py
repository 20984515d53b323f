# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from taskpilot.auth.identity import StaticIdentityProvider
from taskpilot.core.state import AppState
from taskpilot.llm.offline import OfflineExtractionClient
from taskpilot.tasks.memory_store import InMemoryTaskStore
from taskpilot.tasks.task_api import TaskService
from taskpilot.tasks.task_store import TaskStore

from .fakes import FakeExtractionClient, FixedClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="taskpilot-test",
        log_level="DEBUG",
        # Paths (tmp per test run)
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        store_backend="memory",
        # Extraction: no key => offline parser
        openai_api_key=None,
        openai_base_url="https://example.invalid/v1",
        extraction_model="gpt-4o",
        extraction_temperature=0.1,
        llm_connect_timeout=1.0,
        llm_read_timeout=2.0,
        # Identity
        jwt_secret=None,
        jwt_algorithm="HS256",
        auth_token=None,
        console_user="alice",
        # Presentation
        default_sort="due_date",
    )


@pytest.fixture()
def clock() -> FixedClock:
    # Wednesday 2024-03-20 10:00 UTC
    return FixedClock()


@pytest.fixture(params=["sqlite", "memory"])
def repo(request, tmp_path: Path, clock: FixedClock):
    """Both store backends; every store test runs against each."""
    if request.param == "sqlite":
        store = TaskStore(tmp_path / "tasks.sqlite3", clock=clock)
    else:
        store = InMemoryTaskStore(clock=clock)
    yield store
    store.close()


@pytest.fixture()
def extractor() -> FakeExtractionClient:
    return FakeExtractionClient()


@pytest.fixture()
def service(repo, extractor: FakeExtractionClient, clock: FixedClock) -> TaskService:
    return TaskService(repo, extractor, clock=clock)


@pytest.fixture()
def offline_service(repo, clock: FixedClock) -> TaskService:
    return TaskService(repo, OfflineExtractionClient(), clock=clock)


@pytest.fixture()
def state(settings: SimpleNamespace, offline_service: TaskService) -> AppState:
    """
    AppState wired with the offline extractor and a fixed clock.

    NOTE: We keep real stores here because their correctness is part of
    what we want to test.
    """
    return AppState(
        settings=settings,
        service=offline_service,
        identity=StaticIdentityProvider(settings.console_user),
    )
