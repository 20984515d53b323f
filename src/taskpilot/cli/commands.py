# src/taskpilot/cli/commands.py

from __future__ import annotations

import inspect
import logging
import shlex
from collections.abc import Callable
from datetime import datetime
from typing import Any, cast

from ..core.errors import (
    TaskPilotError,
    UpstreamFormatError,
    UpstreamUnavailableError,
    ValidationError,
    friendly_error_message,
)
from ..core.state import AppState
from ..tasks.lifecycle import display_status, split_by_status
from ..tasks.task_models import DisplayStatus, Priority, SortBy, Task, TaskFilter

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)

_NULL_WORDS = {"", "null", "none", "-"}


def _split_args(text: str) -> list[str]:
    try:
        return shlex.split(text)
    except ValueError:
        # Unbalanced quotes: fall back to plain whitespace split.
        return text.split()


def report_error(err: TaskPilotError) -> str:
    """Log what the operator needs, return what the user should see."""
    if isinstance(err, UpstreamUnavailableError):
        logger.warning("Extraction unavailable: %s (%s)", err, err.diagnostic)
    elif isinstance(err, UpstreamFormatError):
        logger.warning("Extraction format error: %s raw=%r", err, err.raw)
    else:
        logger.info("Request rejected: %s", err)
    return friendly_error_message(err)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, /list, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = _split_args(line[1:])
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)

            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except TaskPilotError as e:
            return report_error(e)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        lines.append("Anything that is not a command is added as a new task.")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- rendering ----


def _fmt_due(dt: datetime | None) -> str:
    if dt is None:
        return "no due date"
    return dt.strftime("%d-%m-%Y, %I:%M %p UTC")


def format_task(task: Task, now: datetime) -> str:
    status = display_status(task, now)
    mark = "x" if status == DisplayStatus.COMPLETED else " "
    parts = [f"[{mark}] #{task.id} {task.priority.value} {task.title}"]
    if task.assignee:
        parts.append(f"@{task.assignee}")
    parts.append(f"due {_fmt_due(task.due_date)}")
    if status == DisplayStatus.OVERDUE:
        parts.append("(overdue)")
    return " ".join(parts)


def format_task_details(task: Task, now: datetime) -> str:
    return "\n".join(
        [
            f"Task #{task.id}",
            f"  Title: {task.title}",
            f"  Assignee: {task.assignee or 'self'}",
            f"  Due: {_fmt_due(task.due_date)}",
            f"  Priority: {task.priority.value}",
            f"  Status: {display_status(task, now).value}",
            f"  Created: {task.created_at.isoformat()}",
            f"  Updated: {task.updated_at.isoformat()}",
        ]
    )


# ---- argument helpers ----


def _parse_id(args: list[str], usage: str) -> int:
    if not args:
        raise ValidationError("id", f"missing. Usage: {usage}")
    raw = args[0].lstrip("#")
    try:
        return int(raw)
    except ValueError:
        raise ValidationError("id", f"must be a number (got {args[0]!r})") from None


def _parse_pairs(args: list[str]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        if not sep or not key:
            raise ValidationError(arg, "expected key=value")
        out[key.strip()] = None if value.strip().lower() in _NULL_WORDS else value
    return out


# ---- handlers ----


def ingest_text(state: AppState, text: str) -> str:
    """Free text -> new task. Shared by /add and plain console lines."""
    try:
        task = state.service.ingest(text, state.require_owner())
    except TaskPilotError as e:
        return report_error(e)
    return "Task created: " + format_task(task, state.service.now())


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    settings = state.settings
    return (
        "Status:\n"
        f"  User: {state.owner_id or '(not signed in)'}\n"
        f"  Extraction: {state.extractor_name}\n"
        f"  Store: {getattr(settings, 'store_backend', 'sqlite')}\n"
        f"  Default sort: {state.default_sort.value}"
    )


def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /add <text>  -> parse free text and create a task
    """
    if not args:
        return "Usage: /add <task text>, e.g. /add Call client Rajeev tomorrow 5pm P2"
    if emit:
        emit("Parsing task...")
    return ingest_text(state, " ".join(args))


def cmd_new(state: AppState, args: list[str]) -> str:
    """
    /new title="..." due=2025-03-21T17:00:00Z [priority=P2] [assignee=Name]
    """
    if not args:
        return 'Usage: /new title="..." due=<ISO date> [priority=P1..P4] [assignee=Name]'
    task = state.service.create(_parse_pairs(args), state.require_owner())
    return "Task created: " + format_task(task, state.service.now())


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list [due|priority|created] [priority=P1..P4] [status=pending|completed|overdue]
    """
    sort_by = state.default_sort
    priority: Priority | None = None
    status: DisplayStatus | None = None

    def parse_sort(raw: str) -> SortBy:
        found = SortBy.lookup(raw)
        if found is None:
            raise ValidationError("sort", f"must be due, priority or created (got {raw!r})")
        return found

    for arg in args:
        key, sep, value = arg.partition("=")
        if not sep:
            sort_by = parse_sort(key)
            continue
        key = key.strip().lower()
        if key == "priority":
            priority = Priority.parse(value)
            if priority is None:
                raise ValidationError("priority", f"must be one of P1, P2, P3, P4 (got {value!r})")
        elif key == "status":
            try:
                status = DisplayStatus(value.strip().lower())
            except ValueError:
                raise ValidationError(
                    "status", f"must be pending, completed or overdue (got {value!r})"
                ) from None
        elif key == "sort":
            sort_by = parse_sort(value)
        else:
            raise ValidationError(key, "unknown filter")

    now = state.service.now()
    tasks = state.service.list(
        state.require_owner(), TaskFilter(priority=priority, status=status), sort_by
    )
    if not tasks:
        return "No tasks yet. Add one in plain language, e.g. 'Review code by 6pm today'."

    pending, completed = split_by_status(tasks)
    lines: list[str] = []
    if pending:
        lines.append(f"Pending tasks ({len(pending)}):")
        lines.extend("  " + format_task(t, now) for t in pending)
    if completed:
        lines.append(f"Completed tasks ({len(completed)}):")
        lines.extend("  " + format_task(t, now) for t in completed)
    return "\n".join(lines)


def cmd_show(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args, "/show <id>")
    task = state.service.get(task_id, state.require_owner())
    return format_task_details(task, state.service.now())


def cmd_edit(state: AppState, args: list[str]) -> str:
    """
    /edit <id> key=value ...   (title, assignee, due, priority, status)
    """
    task_id = _parse_id(args, "/edit <id> key=value ...")
    fields = _parse_pairs(args[1:])
    if not fields:
        return "Usage: /edit <id> title=... due=... priority=P1..P4 assignee=... status=..."
    task = state.service.update(task_id, state.require_owner(), fields)
    return "Task updated: " + format_task(task, state.service.now())


def cmd_done(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args, "/done <id>")
    task = state.service.toggle_complete(task_id, state.require_owner())
    verb = "completed" if task.status.value == "completed" else "reopened"
    return f"Task {verb}: " + format_task(task, state.service.now())


def cmd_delete(state: AppState, args: list[str]) -> str:
    task_id = _parse_id(args, "/del <id>")
    state.service.delete(task_id, state.require_owner())
    return f"Task #{task_id} deleted."


def cmd_whoami(state: AppState, args: list[str]) -> str:
    return f"Signed in as {state.require_owner()}."


def cmd_login(state: AppState, args: list[str]) -> str:
    """
    /login <token>  -> switch the console session to the token's user
    """
    if not args:
        return "Usage: /login <token>"
    state.owner_id = state.identity.resolve(" ".join(args))
    logger.info("Console session switched to owner=%s", state.owner_id)
    return f"Signed in as {state.owner_id}."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show current user, extraction and store.")
registry.register("add", cmd_add, help_text="Add a task from free text: /add <text>.")
registry.register("new", cmd_new, help_text='Add a task from fields: /new title="..." due=<ISO date>.')
registry.register(
    "list",
    cmd_list,
    help_text="List tasks: /list [due|priority|created] [priority=Px] [status=...].",
    aliases=["ls"],
)
registry.register("show", cmd_show, help_text="Show one task: /show <id>.")
registry.register("edit", cmd_edit, help_text="Change fields: /edit <id> key=value ...")
registry.register("done", cmd_done, help_text="Toggle complete/reopen: /done <id>.", aliases=["toggle"])
registry.register("del", cmd_delete, help_text="Delete a task: /del <id>.", aliases=["delete", "rm"])
registry.register("whoami", cmd_whoami, help_text="Show the signed-in user.")
registry.register("login", cmd_login, help_text="Switch user with a bearer token: /login <token>.")
