# src/taskpilot/tasks/normalizer.py

"""
Candidate draft -> canonical task.

The extraction step is an unreliable oracle; this module is the deterministic
gate behind it. Nothing here talks to the network, so every rule can be tested
with plain dicts.

Rules:
- title falls back to the raw input text
- assignee "" means self (None)
- due date is mandatory, must be ISO-8601, date-only values get 12:00,
  naive values are UTC, the literal time is kept as is
- priority P1..P4, anything else P3
- status is always pending for ingested tasks
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from datetime import UTC, date, datetime, time
from typing import Any

from ..core.errors import InvalidDueDateError, MissingDueDateError, ValidationError
from .task_models import DEFAULT_PRIORITY, NewTask, Priority, TaskStatus

logger = logging.getLogger(__name__)

DEFAULT_DUE_TIME = time(12, 0)

_DATE_ONLY_RE = re.compile(r"^\d{4}-?\d{2}-?\d{2}$")

_DUE_KEYS = ("dueDate", "due_date", "due")
_CANDIDATE_KEYS = {"title", "assignee", "priority", *_DUE_KEYS}

# Fields a caller may change after creation. Everything else (id, ownerId,
# createdAt, updatedAt, ...) is rejected by name.
_PATCH_KEYS = {
    "title": "title",
    "assignee": "assignee",
    "dueDate": "due_date",
    "due_date": "due_date",
    "due": "due_date",
    "priority": "priority",
    "status": "status",
}


def parse_due_date(value: Any) -> datetime:
    """
    Parse an absolute timestamp into an aware UTC datetime.

    Raises MissingDueDateError for null/blank, InvalidDueDateError for anything
    that is not a calendar-valid ISO-8601 date or datetime.
    """
    if value is None:
        raise MissingDueDateError()

    if isinstance(value, datetime):
        return _as_utc(value)

    if not isinstance(value, str):
        raise InvalidDueDateError(value, "expected an ISO-8601 string")

    s = value.strip()
    if not s:
        raise MissingDueDateError()

    try:
        if _DATE_ONLY_RE.match(s):
            return datetime.combine(date.fromisoformat(s), DEFAULT_DUE_TIME, tzinfo=UTC)
        return _as_utc(datetime.fromisoformat(s))
    except ValueError as e:
        raise InvalidDueDateError(value, str(e) or "not a valid timestamp") from e


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None or dt.utcoffset() is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _optional_str(candidate: Mapping[str, Any], key: str) -> str | None:
    raw = candidate.get(key)
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ValidationError(key, f"expected a string, got {type(raw).__name__}")
    s = raw.strip()
    return s or None


def _pick_due(candidate: Mapping[str, Any]) -> Any:
    for key in _DUE_KEYS:
        if candidate.get(key) is not None:
            return candidate[key]
    return None


def normalize_candidate(
        candidate: Any,
        raw_text: str,
        reference: datetime,
) -> NewTask:
    """Validate an extraction result and turn it into a NewTask (status pending)."""
    if not isinstance(candidate, Mapping):
        raise ValidationError("candidate", "expected a JSON object")

    unknown = sorted(str(k) for k in candidate if k not in _CANDIDATE_KEYS)
    if unknown:
        logger.debug("Ignoring unknown candidate fields: %s", ", ".join(unknown))

    title = _optional_str(candidate, "title") or raw_text
    assignee = _optional_str(candidate, "assignee")

    due_date = parse_due_date(_pick_due(candidate))
    ref_day = _as_utc(reference).date()
    if due_date.date() < ref_day:
        raise InvalidDueDateError(
            _pick_due(candidate),
            f"resolves to {due_date.date().isoformat()}, before today ({ref_day.isoformat()})",
        )

    raw_priority = candidate.get("priority")
    priority = Priority.parse(raw_priority)
    if priority is None:
        if raw_priority is not None:
            logger.debug("Unrecognized priority %r, using %s", raw_priority, DEFAULT_PRIORITY)
        priority = DEFAULT_PRIORITY

    return NewTask(
        title=title,
        assignee=assignee,
        due_date=due_date,
        priority=priority,
        status=TaskStatus.PENDING,
    )


def normalize_patch(fields: Any) -> dict[str, Any]:
    """
    Validate caller-supplied partial fields.

    Returns a dict keyed by Task attribute names (title, assignee, due_date,
    priority, status) containing only the keys that were present.
    """
    if not isinstance(fields, Mapping):
        raise ValidationError("fields", "expected an object")

    out: dict[str, Any] = {}
    for key, value in fields.items():
        attr = _PATCH_KEYS.get(key)
        if attr is None:
            raise ValidationError(str(key), "unknown or read-only field")
        if attr in out:
            raise ValidationError(str(key), "given more than once")

        if attr == "title":
            if not isinstance(value, str) or not value.strip():
                raise ValidationError("title", "must be a non-empty string")
            out["title"] = value.strip()
        elif attr == "assignee":
            if value is not None and not isinstance(value, str):
                raise ValidationError("assignee", "expected a string or null")
            out["assignee"] = (value or "").strip() or None
        elif attr == "due_date":
            out["due_date"] = parse_due_date(value)
        elif attr == "priority":
            priority = value if isinstance(value, Priority) else Priority.parse(value)
            if priority is None:
                raise ValidationError("priority", f"must be one of P1, P2, P3, P4 (got {value!r})")
            out["priority"] = priority
        elif attr == "status":
            try:
                out["status"] = TaskStatus(value)
            except ValueError:
                raise ValidationError(
                    "status", f"must be 'pending' or 'completed' (got {value!r})"
                ) from None

    return out


def normalize_manual(fields: Any) -> NewTask:
    """Explicit creation path: same field rules as updates, title and due date required."""
    patch = normalize_patch(fields)
    if "title" not in patch:
        raise ValidationError("title", "is required")
    if "due_date" not in patch:
        raise MissingDueDateError()
    if patch.get("status", TaskStatus.PENDING) != TaskStatus.PENDING:
        raise ValidationError("status", "new tasks always start as pending")

    return NewTask(
        title=patch["title"],
        assignee=patch.get("assignee"),
        due_date=patch["due_date"],
        priority=patch.get("priority", DEFAULT_PRIORITY),
    )
