# src/taskpilot/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Callable, Iterator, Mapping
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

from ..core.errors import StorageError, ValidationError
from .task_models import NewTask, Priority, Task, TaskStatus, next_updated_at

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
_ONE_US = timedelta(microseconds=1)


def _to_us(dt: datetime) -> int:
    """Aware datetime -> integer microseconds since the epoch."""
    return (dt.astimezone(UTC) - _EPOCH) // _ONE_US


def _from_us(us: int) -> datetime:
    return _EPOCH + int(us) * _ONE_US


# Task attribute -> (column, encoder). Only these may change after creation.
_MUTABLE_COLUMNS: dict[str, tuple[str, Callable[[Any], Any]]] = {
    "title": ("title", lambda v: str(v)),
    "assignee": ("assignee", lambda v: v if v else None),
    "due_date": ("due_at", lambda v: _to_us(v) if v is not None else None),
    "priority": ("priority", lambda v: Priority(v).value),
    "status": ("status", lambda v: TaskStatus(v).value),
}


def _encode_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for attr, value in fields.items():
        entry = _MUTABLE_COLUMNS.get(attr)
        if entry is None:
            raise ValidationError(attr, "unknown or read-only field")
        column, encode = entry
        try:
            out[column] = encode(value)
        except ValueError as e:
            raise ValidationError(attr, str(e)) from e
    return out


def _decode_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    out = dict(fields)
    if "priority" in out:
        out["priority"] = Priority(out["priority"])
    if "status" in out:
        out["status"] = TaskStatus(out["status"])
    if "assignee" in out:
        out["assignee"] = out["assignee"] or None
    return out


class TaskStore:
    """
    SQLite task store, scoped by owner.

    The schema is simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Ownership: every statement that touches one task filters on
    (id, owner_id), so a foreign task behaves exactly like a missing one.

    Thread-safety:
    - each method opens its own SQLite connection
    - read-modify-write runs inside BEGIN IMMEDIATE, which serializes writers
    - ids come from AUTOINCREMENT and are never reused after delete
    """

    def __init__(
            self,
            db_path: str | Path = "tasks.sqlite3",
            *,
            clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock or _utc_now
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except StorageError:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        try:
            # isolation_level=None: transactions are opened explicitly.
            conn = sqlite3.connect(str(self._db_path), timeout=30.0, isolation_level=None)
        except sqlite3.Error as e:
            raise StorageError(f"Cannot open task database {self._db_path}: {e}") from e
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    @contextlib.contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        conn = self._get_conn()
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            raise StorageError(f"Task database error: {e}") from e
        finally:
            conn.close()

    @contextlib.contextmanager
    def _reader(self) -> Iterator[sqlite3.Connection]:
        conn = self._get_conn()
        try:
            yield conn
        except sqlite3.Error as e:
            raise StorageError(f"Task database error: {e}") from e
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._transaction() as conn:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    owner_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    assignee TEXT,
                    due_at INTEGER,
                    priority TEXT NOT NULL DEFAULT 'P3',
                    status TEXT NOT NULL DEFAULT 'pending',
                    created_at INTEGER NOT NULL,
                    updated_at INTEGER NOT NULL
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("assignee", "TEXT")
            add_col("due_at", "INTEGER")
            add_col("priority", "TEXT NOT NULL DEFAULT 'P3'")
            add_col("status", "TEXT NOT NULL DEFAULT 'pending'")
            add_col("created_at", "INTEGER NOT NULL DEFAULT 0")
            add_col("updated_at", "INTEGER NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_owner_status ON tasks(owner_id, status)")

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            owner_id=str(row["owner_id"]),
            title=str(row["title"] or ""),
            assignee=row["assignee"] or None,
            due_date=_from_us(row["due_at"]) if row["due_at"] is not None else None,
            priority=Priority.from_db(row["priority"]),
            status=TaskStatus.from_db(row["status"]),
            created_at=_from_us(row["created_at"] or 0),
            updated_at=_from_us(row["updated_at"] or 0),
        )

    @staticmethod
    def _select_owned(conn: sqlite3.Connection, task_id: int, owner_id: str) -> sqlite3.Row | None:
        cur = conn.execute(
            "SELECT * FROM tasks WHERE id = ? AND owner_id = ?",
            (int(task_id), str(owner_id)),
        )
        return cur.fetchone()

    # ---- public API ----

    def count_tasks(self) -> int:
        with self._reader() as conn:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)

    def create(self, draft: NewTask, owner_id: str) -> Task:
        now = self._clock()
        now_us = _to_us(now)

        with self._transaction() as conn:
            cur = conn.execute(
                """
                INSERT INTO tasks(
                    owner_id, title, assignee, due_at,
                    priority, status, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    str(owner_id),
                    draft.title,
                    draft.assignee,
                    _to_us(draft.due_date) if draft.due_date is not None else None,
                    Priority(draft.priority).value,
                    TaskStatus(draft.status).value,
                    now_us,
                    now_us,
                ),
            )
            rowid = cur.lastrowid
            if rowid is None:
                raise StorageError("SQLite did not return lastrowid for tasks insert")
            row = self._select_owned(conn, int(rowid), owner_id)

        if row is None:
            raise StorageError(f"Inserted task {rowid} could not be read back")
        task = self._row_to_task(row)
        logger.debug(
            "Task added id=%s owner=%s priority=%s due=%s",
            task.id,
            owner_id,
            task.priority.value,
            task.due_date,
        )
        return task

    def get(self, task_id: int, owner_id: str) -> Task | None:
        with self._reader() as conn:
            row = self._select_owned(conn, task_id, owner_id)
            return self._row_to_task(row) if row else None

    def list_by_owner(self, owner_id: str) -> list[Task]:
        with self._reader() as conn:
            cur = conn.execute(
                "SELECT * FROM tasks WHERE owner_id = ? ORDER BY id ASC",
                (str(owner_id),),
            )
            return [self._row_to_task(r) for r in cur.fetchall()]

    def update(self, task_id: int, owner_id: str, fields: Mapping[str, Any]) -> Task | None:
        fields = dict(fields)
        return self.modify(task_id, owner_id, lambda _current: fields)

    def modify(
            self,
            task_id: int,
            owner_id: str,
            change: Callable[[Task], Mapping[str, Any]],
    ) -> Task | None:
        """
        Atomic read-modify-write of one owned task.

        `change` receives the latest stored Task (read inside the write lock)
        and returns the attributes to overwrite. updated_at is always bumped.
        """
        with self._transaction() as conn:
            row = self._select_owned(conn, task_id, owner_id)
            if row is None:
                return None

            current = self._row_to_task(row)
            fields = dict(change(current))
            columns = _encode_fields(fields)

            updated_at = next_updated_at(current.updated_at, self._clock())
            columns["updated_at"] = _to_us(updated_at)

            assignments = ", ".join(f"{col} = ?" for col in columns)
            conn.execute(
                f"UPDATE tasks SET {assignments} WHERE id = ? AND owner_id = ?",
                (*columns.values(), int(task_id), str(owner_id)),
            )

        logger.debug("Task updated id=%s fields=%s", task_id, sorted(fields))
        return replace(current, **_decode_fields(fields), updated_at=updated_at)

    def delete(self, task_id: int, owner_id: str) -> bool:
        with self._transaction() as conn:
            cur = conn.execute(
                "DELETE FROM tasks WHERE id = ? AND owner_id = ?",
                (int(task_id), str(owner_id)),
            )
            deleted = cur.rowcount == 1
        if deleted:
            logger.debug("Task deleted id=%s", task_id)
        return deleted
