# tests/test_bootstrap.py

from __future__ import annotations

import pytest
from jose import jwt

from taskpilot.auth.identity import JWTIdentityProvider, StaticIdentityProvider
from taskpilot.cli.bootstrap import build_repo, create_initial_state
from taskpilot.core.errors import ConfigurationError, UnauthenticatedError
from taskpilot.llm.client import OpenAIExtractionClient
from taskpilot.llm.offline import OfflineExtractionClient
from taskpilot.tasks.memory_store import InMemoryTaskStore
from taskpilot.tasks.task_models import SortBy
from taskpilot.tasks.task_store import TaskStore


def test_offline_memory_state(settings) -> None:
    state = create_initial_state(settings=settings)

    assert isinstance(state.service.repo, InMemoryTaskStore)
    assert isinstance(state.service.extractor, OfflineExtractionClient)
    assert isinstance(state.identity, StaticIdentityProvider)
    assert state.extractor_name == "offline"
    assert state.default_sort == SortBy.DUE_DATE
    assert state.require_owner() == "alice"


def test_sqlite_openai_jwt_state(settings) -> None:
    settings.store_backend = "sqlite"
    settings.openai_api_key = "sk-test"
    settings.jwt_secret = "s3cret"
    settings.default_sort = "priority"

    state = create_initial_state(settings=settings)

    assert isinstance(state.service.repo, TaskStore)
    assert settings.tasks_db_path.exists()
    assert isinstance(state.service.extractor, OpenAIExtractionClient)
    assert state.extractor_name == "gpt-4o"
    assert isinstance(state.identity, JWTIdentityProvider)
    assert state.default_sort == SortBy.PRIORITY

    # no AUTH_TOKEN configured: the session has no owner until /login
    with pytest.raises(UnauthenticatedError):
        state.require_owner()

    token = jwt.encode({"sub": "bob"}, "s3cret", algorithm="HS256")
    settings.auth_token = token
    assert state.require_owner() == "bob"


def test_unknown_store_backend(settings) -> None:
    settings.store_backend = "postgres"
    with pytest.raises(ConfigurationError):
        build_repo(settings)
