# src/desk_todo/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import uuid
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from .task_models import Priority, Task, from_epoch, to_epoch

logger = logging.getLogger(__name__)


class TaskStore:
    """
    SQLite task store (the primary, canonical copy of the task set).

    The schema is simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection, so the export worker
      thread can read while the event loop writes
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except Exception:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    is_completed INTEGER NOT NULL DEFAULT 0,
                    priority TEXT NOT NULL DEFAULT 'normal',
                    created_at REAL NOT NULL,
                    completed_at REAL,
                    due_date REAL,
                    note TEXT NOT NULL DEFAULT '',
                    attachment_path TEXT
                )
                """
            )

            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("completed_at", "REAL")
            add_col("due_date", "REAL")
            add_col("note", "TEXT NOT NULL DEFAULT ''")
            add_col("attachment_path", "TEXT")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_created ON tasks(created_at)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_due_open ON tasks(is_completed, due_date)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _task_to_params(task: Task) -> tuple[Any, ...]:
        return (
            str(task.id),
            task.title,
            1 if task.is_completed else 0,
            task.priority.value,
            to_epoch(task.created_at),
            to_epoch(task.completed_at) if task.completed_at is not None else None,
            to_epoch(task.due_date) if task.due_date is not None else None,
            task.note or "",
            task.attachment_path,
        )

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=uuid.UUID(str(row["id"])),
            title=str(row["title"] or ""),
            is_completed=bool(row["is_completed"]),
            priority=Priority.from_raw(row["priority"]),
            created_at=from_epoch(row["created_at"] or 0.0),
            completed_at=from_epoch(row["completed_at"]) if row["completed_at"] is not None else None,
            due_date=from_epoch(row["due_date"]) if row["due_date"] is not None else None,
            note=str(row["note"] or ""),
            attachment_path=row["attachment_path"],
        )

    _INSERT_SQL = """
        INSERT INTO tasks(
            id, title, is_completed, priority, created_at,
            completed_at, due_date, note, attachment_path
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
    """

    # ---- public API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def add_task(self, task: Task) -> None:
        if not task.title or not task.title.strip():
            raise ValueError("title is required")

        conn = self._get_conn()
        try:
            conn.execute(self._INSERT_SQL, self._task_to_params(task))
            conn.commit()
            logger.debug("Task added id=%s due=%s", task.id, task.due_date)
        finally:
            conn.close()

    def get_task(self, task_id: uuid.UUID) -> Task | None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM tasks WHERE id = ?", (str(task_id),))
            row = cur.fetchone()
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def list_tasks(self) -> list[Task]:
        """All tasks, newest first."""
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT * FROM tasks ORDER BY created_at DESC, id ASC")
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def update_task(self, task: Task) -> bool:
        """Write every mutable column of `task`. Returns False if the row is gone."""
        params = self._task_to_params(task)
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE tasks
                SET title = ?,
                    is_completed = ?,
                    priority = ?,
                    created_at = ?,
                    completed_at = ?,
                    due_date = ?,
                    note = ?,
                    attachment_path = ?
                WHERE id = ?
                """,
                (*params[1:], params[0]),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def delete_task(self, task_id: uuid.UUID) -> bool:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("DELETE FROM tasks WHERE id = ?", (str(task_id),))
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def replace_all(self, tasks: Iterable[Task]) -> int:
        """
        Delete every row, then insert `tasks`, in one transaction.

        Used when switching storage folders: the imported snapshot replaces
        the store wholesale, it is never merged. Duplicate ids inside `tasks`
        keep the last occurrence.
        """
        by_id: dict[uuid.UUID, Task] = {}
        for t in tasks:
            by_id[t.id] = t

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("DELETE FROM tasks")
            cur.executemany(self._INSERT_SQL, [self._task_to_params(t) for t in by_id.values()])
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

        logger.info("TaskStore replaced contents: %d tasks", len(by_id))
        return len(by_id)
