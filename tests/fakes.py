# tests/fakes.py

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from typing import Any

from taskpilot.core.ports import Candidate


class FixedClock:
    """
    Deterministic clock: returns the same instant until advanced.

    Stores and services accept any zero-arg callable, so an instance can be
    passed directly as `clock=`.
    """

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2024, 3, 20, 10, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeExtractionClient:
    """
    Deterministic extraction client for unit tests.

    - Captures calls for assertions
    - Returns a predefined candidate, or raises a predefined error
    """

    def __init__(self, candidate: Candidate | None = None, error: Exception | None = None) -> None:
        self.candidate = candidate if candidate is not None else {}
        self.error = error
        self.calls: list[tuple[str, datetime]] = []

    def extract(self, text: str, reference: datetime) -> Candidate:
        self.calls.append((text, reference))
        if self.error is not None:
            raise self.error
        return dict(self.candidate)


class FakeCompletions:
    def __init__(self, content: Any = None, error: Exception | None = None) -> None:
        self.content = content
        self.error = error
        self.calls: list[dict[str, Any]] = []

    def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        if self.content is _NO_CHOICES:
            return SimpleNamespace(choices=[])
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


_NO_CHOICES = object()


class FakeOpenAI:
    """
    Stand-in for openai.OpenAI: only `chat.completions.create` is used.
    """

    NO_CHOICES = _NO_CHOICES

    def __init__(self, content: Any = None, error: Exception | None = None) -> None:
        self.completions = FakeCompletions(content=content, error=error)
        self.chat = SimpleNamespace(completions=self.completions)
