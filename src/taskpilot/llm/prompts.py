# src/taskpilot/llm/prompts.py

from __future__ import annotations

from datetime import UTC, datetime

EXTRACTION_SYSTEM_PROMPT = """
You are a task parsing module. You do NOT chat with the user.

Read one task written in natural language and extract:
- title: short imperative description of the task
- assignee: the person the task is about or delegated to, or null
- dueDate: absolute due timestamp
- priority: one of P1 (urgent), P2 (high), P3 (medium), P4 (low)

Reference instant (use it, never your own notion of "now"):
- today: {today} ({weekday})
- current time: {now_time} UTC

Due date rules:
- The due date is MANDATORY. If the text gives no date or time at all, return null.
- "today" = {today}; "tomorrow" = the day after {today}.
- A weekday name ("Monday") = the next occurrence of that weekday after today,
  never a day in the past.
- Times: "5pm" = 17:00, "3:30pm" = 15:30, "10am" = 10:00. Keep the literal time,
  do not shift or round it.
- If no time is mentioned, use 12:00.
- Return ISO-8601 in UTC, e.g. "{example}".

Priority: use the P-token if present ("P2"), otherwise infer urgency words,
otherwise P3.

Output format:
Return STRICT JSON only. No extra text. No Markdown.
{{"title": "string", "assignee": "string or null", "dueDate": "ISO string or null", "priority": "P1|P2|P3|P4"}}
""".strip()


def build_system_prompt(reference: datetime) -> str:
    ref = reference.astimezone(UTC)
    return EXTRACTION_SYSTEM_PROMPT.format(
        today=ref.date().isoformat(),
        weekday=ref.strftime("%A"),
        now_time=ref.strftime("%H:%M"),
        example=ref.replace(hour=15, minute=0, second=0, microsecond=0).strftime("%Y-%m-%dT%H:%M:%SZ"),
    )


def build_user_message(text: str) -> str:
    return f'Parse this task: "{text}"'
