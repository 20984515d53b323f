# src/taskpilot/llm/offline.py

from __future__ import annotations

import logging
import re
from datetime import UTC, date, datetime, time, timedelta

from ..core.ports import Candidate

logger = logging.getLogger(__name__)

_WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
_DAY_WORDS = frozenset({"today", "tomorrow", *_WEEKDAYS})

_PRIORITY_RE = re.compile(r"\b[Pp]([1-4])\b")

_DAY_RE = re.compile(
    r"\b(?:(?:by|on|due|before|until)\s+)?(?:(?:next|this)\s+)?"
    r"(today|tomorrow|" + "|".join(_WEEKDAYS) + r")\b",
    re.IGNORECASE,
)

_TIME_12H_RE = re.compile(
    r"\b(?:(?:by|at|before|until|@)\s*)?(1[0-2]|0?[1-9])(?::([0-5]\d))?\s*(am|pm)\b",
    re.IGNORECASE,
)
_TIME_24H_RE = re.compile(
    r"\b(?:(?:by|at|before|until|@)\s*)?([01]?\d|2[0-3]):([0-5]\d)\b",
    re.IGNORECASE,
)
_NOON_RE = re.compile(r"\b(?:(?:by|at|before|until)\s+)?noon\b", re.IGNORECASE)

_ASSIGNEE_RE = re.compile(
    r"\b(?:(?i:call|email|ask|tell|remind|meet|ping|text|message)\s+(?:(?i:client|customer)\s+)?"
    r"|(?i:client|customer|with|for)\s+)"
    r"([A-Z][a-z][\w'-]*)"
)

_TRAILING_JUNK_RE = re.compile(r"(?:\s+(?:by|at|on|due|before|until|for|with|@))+\s*$", re.IGNORECASE)


def _resolve_day(word: str, today: date) -> date:
    w = word.lower()
    if w == "today":
        return today
    if w == "tomorrow":
        return today + timedelta(days=1)
    days_ahead = (_WEEKDAYS.index(w) - today.weekday()) % 7
    # Same weekday as today means next week's occurrence.
    return today + timedelta(days=days_ahead or 7)


def _find_time(text: str) -> tuple[time | None, tuple[int, int] | None]:
    m = _TIME_12H_RE.search(text)
    if m:
        hour = int(m.group(1)) % 12
        if m.group(3).lower() == "pm":
            hour += 12
        return time(hour, int(m.group(2) or 0)), m.span()

    m = _TIME_24H_RE.search(text)
    if m:
        return time(int(m.group(1)), int(m.group(2))), m.span()

    m = _NOON_RE.search(text)
    if m:
        return time(12, 0), m.span()

    return None, None


def _cut(text: str, spans: list[tuple[int, int]]) -> str:
    out = text
    for start, end in sorted(spans, reverse=True):
        out = out[:start] + " " + out[end:]
    out = " ".join(out.split())
    out = _TRAILING_JUNK_RE.sub("", out)
    return out.strip(" ,;:-")


class OfflineExtractionClient:
    """
    Deterministic rule-based extraction used when no external API is configured.

    Understands:
    - priority tokens P1..P4
    - today / tomorrow / weekday names (next occurrence)
    - times like 5pm, 3:30pm, 17:00, noon
    - an assignee after call/email/ask/... or client/with, when capitalized

    Returns the same JSON shape as the LLM-backed client. Text without any
    day or time yields dueDate=None.
    """

    def extract(self, text: str, reference: datetime) -> Candidate:
        ref = reference.astimezone(UTC)
        spans: list[tuple[int, int]] = []

        priority = None
        m = _PRIORITY_RE.search(text)
        if m:
            priority = f"P{m.group(1)}"
            spans.append(m.span())

        day = None
        m = _DAY_RE.search(text)
        if m:
            day = _resolve_day(m.group(1), ref.date())
            spans.append(m.span())

        at, span = _find_time(text)
        if span:
            spans.append(span)

        due = None
        if day is not None or at is not None:
            due_dt = datetime.combine(day or ref.date(), at or time(12, 0), tzinfo=UTC)
            due = due_dt.strftime("%Y-%m-%dT%H:%M:%SZ")

        assignee = None
        for m in _ASSIGNEE_RE.finditer(text):
            if m.group(1).lower() not in _DAY_WORDS:
                assignee = m.group(1)
                break

        title = _cut(text, spans) or None

        candidate: Candidate = {
            "title": title,
            "assignee": assignee,
            "dueDate": due,
            "priority": priority,
        }
        logger.debug("Offline extraction candidate=%s", candidate)
        return candidate
