# src/taskpilot/core/errors.py

"""
Error taxonomy shared by the core and the presentation layer.

Every error is local to one operation. `retryable` tells the caller whether
resubmitting the same request can reasonably succeed.
"""

from __future__ import annotations

from typing import Any


class TaskPilotError(Exception):
    retryable = False


# ---- extraction capability ----


class UpstreamUnavailableError(TaskPilotError):
    """Extraction capability unreachable, timed out, or answered with a non-success status."""

    retryable = True

    def __init__(self, message: str, *, diagnostic: str | None = None) -> None:
        super().__init__(message)
        self.diagnostic = diagnostic


class UpstreamFormatError(TaskPilotError):
    """Extraction capability answered, but not with the requested JSON object."""

    def __init__(self, message: str, *, raw: str | None = None) -> None:
        super().__init__(message)
        self.raw = raw


# ---- caller input ----


class TaskInputError(TaskPilotError):
    pass


class MissingDueDateError(TaskInputError):
    def __init__(self, message: str = "A due date is required for every task.") -> None:
        super().__init__(message)


class InvalidDueDateError(TaskInputError):
    def __init__(self, value: Any, reason: str = "not a valid timestamp") -> None:
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid due date {value!r}: {reason}")


class ValidationError(TaskInputError):
    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")


# ---- store ----


class TaskNotFoundError(TaskPilotError):
    """Raised for both "no such id" and "id owned by someone else"."""

    def __init__(self, task_id: Any) -> None:
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class StorageError(TaskPilotError):
    pass


# ---- identity ----


class AuthError(TaskPilotError):
    pass


class UnauthenticatedError(AuthError):
    def __init__(self, message: str = "Access token required") -> None:
        super().__init__(message)


class InvalidCredentialsError(AuthError):
    def __init__(self, message: str = "Invalid or expired token") -> None:
        super().__init__(message)


class ConfigurationError(TaskPilotError):
    pass


def friendly_error_message(err: Exception) -> str:
    """One-line, user-facing text for an error raised by a core operation."""
    if isinstance(err, UpstreamUnavailableError):
        return "Task parser is unavailable right now. Try again in a moment."
    if isinstance(err, UpstreamFormatError):
        return "Task parser returned an unreadable answer. Try rephrasing the task."
    if isinstance(err, MissingDueDateError):
        return "Please include a due date (e.g. 'tomorrow 5pm')."
    if isinstance(err, InvalidDueDateError):
        return f"Could not use the due date: {err.reason}."
    if isinstance(err, ValidationError):
        return f"Invalid {err.field}: {str(err).split(': ', 1)[-1]}"
    if isinstance(err, TaskNotFoundError):
        return str(err) + "."
    if isinstance(err, AuthError):
        return str(err) + "."
    if isinstance(err, StorageError):
        return "Internal storage error."
    if isinstance(err, ConfigurationError):
        return str(err)
    return str(err).strip() or "Unexpected error."
