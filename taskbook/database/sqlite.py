"""Relational wrapper for SQLite (tasks and their history)."""

import logging
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterator, Optional

from taskbook.core.dates import iso, parse_stored
from taskbook.models import SNAPSHOT_FIELDS, Task, TaskHistoryEntry

logger = logging.getLogger(__name__)

# Columns an update may touch. Anything else is a programming error.
UPDATABLE_COLUMNS = frozenset(SNAPSHOT_FIELDS)

# Columns a listing may be ordered by.
SORTABLE_COLUMNS = frozenset(
    {"title", "description", "status", "due_date", "created_at", "updated_at", "deleted_at"}
)

_DATETIME_COLUMNS = frozenset({"due_date", "deleted_at", "created_at", "updated_at"})


def _to_db(column: str, value: Any) -> Any:
    if column in _DATETIME_COLUMNS:
        return iso(value)
    return value


class SqliteDB:
    """SQLite wrapper for the tasks and task_history tables.

    All I/O stays in this module. Each method opens its own connection;
    update_with_history is the only multi-statement write and runs inside a
    single immediate transaction.
    """

    def __init__(self, db_path: Path) -> None:
        self._path = Path(db_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._path, timeout=30.0, isolation_level=None)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Immediate write transaction; rolled back on any exception."""
        with self._connect() as conn:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    def init_db(self) -> None:
        """Create tasks/task_history tables and indexes if they do not exist."""
        with self._transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    title TEXT NOT NULL,
                    description TEXT,
                    status TEXT NOT NULL DEFAULT 'TODO',
                    due_date DATETIME,
                    deleted_at DATETIME,
                    created_at DATETIME NOT NULL,
                    updated_at DATETIME NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_tasks_user_deleted "
                "ON tasks(user_id, deleted_at)"
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS task_history (
                    id TEXT PRIMARY KEY,
                    task_id TEXT NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
                    user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                    title TEXT NOT NULL,
                    description TEXT,
                    status TEXT NOT NULL,
                    due_date DATETIME,
                    deleted_at DATETIME,
                    created_at DATETIME NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_history_task "
                "ON task_history(task_id, created_at)"
            )

    def insert_task(self, task: Task) -> None:
        """Insert a new task row. History is never written here."""
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO tasks (id, user_id, title, description, status,
                                   due_date, deleted_at, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task.id,
                    task.user_id,
                    task.title,
                    task.description,
                    task.status,
                    iso(task.due_date),
                    iso(task.deleted_at),
                    iso(task.created_at),
                    iso(task.updated_at),
                ),
            )

    def get_task(self, task_id: str, with_history: bool = True) -> Optional[Task]:
        """Return one task by id (with its history, oldest first) or None."""
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
            if row is None:
                return None
            history = _fetch_history(conn, [task_id]) if with_history else {}
        return _row_to_task(row, history.get(task_id, []))

    def update_with_history(
        self,
        task_id: str,
        actor_id: str,
        changes: dict[str, Any],
        entry_id: str,
        now: datetime,
    ) -> Optional[Task]:
        """Snapshot the current row into task_history, then apply changes.

        The read, the history insert and the task update share one
        transaction. Returns None (and writes nothing) if the task is missing.
        """
        unknown = set(changes) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Cannot update columns: {sorted(unknown)}")

        with self._transaction() as conn:
            old = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
            if old is None:
                return None
            conn.execute(
                """
                INSERT INTO task_history (id, task_id, user_id, title, description,
                                          status, due_date, deleted_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    entry_id,
                    task_id,
                    actor_id,
                    old["title"],
                    old["description"],
                    old["status"],
                    old["due_date"],
                    old["deleted_at"],
                    iso(now),
                ),
            )
            columns = sorted(changes)
            assignments = [f"{col} = ?" for col in columns] + ["updated_at = ?"]
            params = [_to_db(col, changes[col]) for col in columns] + [iso(now), task_id]
            conn.execute(
                f"UPDATE tasks SET {', '.join(assignments)} WHERE id = ?", params
            )
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
            history = _fetch_history(conn, [task_id])
        logger.debug("History entry %s recorded for task %s", entry_id, task_id)
        return _row_to_task(row, history.get(task_id, []))

    def toggle_deleted(self, task_id: str, now: datetime) -> Optional[Task]:
        """Flip deleted_at between NULL and now. No history is written."""
        with self._transaction() as conn:
            cur = conn.execute(
                """
                UPDATE tasks
                SET deleted_at = CASE WHEN deleted_at IS NULL THEN ? ELSE NULL END,
                    updated_at = ?
                WHERE id = ?
                """,
                (iso(now), iso(now), task_id),
            )
            if cur.rowcount != 1:
                return None
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
            history = _fetch_history(conn, [task_id])
        return _row_to_task(row, history.get(task_id, []))

    def count_tasks(self, user_id: str, deleted: bool = False) -> int:
        """Count a user's live (or soft-deleted) tasks."""
        with self._connect() as conn:
            (n,) = conn.execute(
                f"SELECT COUNT(*) FROM tasks WHERE user_id = ? AND {_deleted_clause(deleted)}",
                (user_id,),
            ).fetchone()
        return int(n)

    def list_tasks(
        self,
        user_id: str,
        deleted: bool = False,
        sort_column: str = "created_at",
        descending: bool = True,
        limit: int = 10,
        offset: int = 0,
    ) -> list[Task]:
        """Return one page of a user's tasks, each with its history."""
        if sort_column not in SORTABLE_COLUMNS:
            raise ValueError(f"Unsortable column: {sort_column}")
        direction = "DESC" if descending else "ASC"
        with self._connect() as conn:
            rows = conn.execute(
                f"SELECT * FROM tasks WHERE user_id = ? AND {_deleted_clause(deleted)} "
                f"ORDER BY {sort_column} {direction}, id ASC LIMIT ? OFFSET ?",
                (user_id, limit, offset),
            ).fetchall()
            history = _fetch_history(conn, [r["id"] for r in rows])
        return [_row_to_task(r, history.get(r["id"], [])) for r in rows]


def _deleted_clause(deleted: bool) -> str:
    return "deleted_at IS NOT NULL" if deleted else "deleted_at IS NULL"


def _fetch_history(
    conn: sqlite3.Connection, task_ids: list[str]
) -> dict[str, list[TaskHistoryEntry]]:
    if not task_ids:
        return {}
    placeholders = ",".join("?" for _ in task_ids)
    rows = conn.execute(
        f"SELECT * FROM task_history WHERE task_id IN ({placeholders}) "
        "ORDER BY created_at ASC, rowid ASC",
        task_ids,
    ).fetchall()
    grouped: dict[str, list[TaskHistoryEntry]] = {}
    for r in rows:
        grouped.setdefault(r["task_id"], []).append(_row_to_entry(r))
    return grouped


def _row_to_task(row: sqlite3.Row, history: list[TaskHistoryEntry]) -> Task:
    return Task(
        id=row["id"],
        user_id=row["user_id"],
        title=row["title"],
        description=row["description"],
        status=row["status"],
        due_date=parse_stored(row["due_date"]),
        deleted_at=parse_stored(row["deleted_at"]),
        created_at=parse_stored(row["created_at"]),
        updated_at=parse_stored(row["updated_at"]),
        task_history=history,
    )


def _row_to_entry(row: sqlite3.Row) -> TaskHistoryEntry:
    return TaskHistoryEntry(
        id=row["id"],
        task_id=row["task_id"],
        user_id=row["user_id"],
        title=row["title"],
        description=row["description"],
        status=row["status"],
        due_date=parse_stored(row["due_date"]),
        deleted_at=parse_stored(row["deleted_at"]),
        created_at=parse_stored(row["created_at"]),
    )
