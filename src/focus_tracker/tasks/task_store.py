# src/focus_tracker/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
from pathlib import Path

from .day_utils import day_start
from .task_models import (
    DEFAULT_CATEGORIES,
    FALLBACK_CATEGORY,
    MAX_PROGRESS,
    Category,
    Task,
    clamp_progress,
)

logger = logging.getLogger(__name__)


class TaskStore:
    """
    SQLite task + category store.

    The schema is intentionally simple:
    - create tables if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Invariants kept in SQL rather than in callers:
    - time_spent never decreases (MAX(old, new))
    - completed_at is written once (COALESCE)
    - a completed task has progress 100 and ignores later progress writes

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("TaskStore ready db=%s total=%s", self._db_path, self.count_tasks())

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.DatabaseError):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    category TEXT NOT NULL DEFAULT 'life',
                    progress INTEGER NOT NULL DEFAULT 0,
                    completed INTEGER NOT NULL DEFAULT 0,
                    time_spent INTEGER NOT NULL DEFAULT 0,
                    created_at REAL NOT NULL,
                    completed_at REAL,
                    updated_at REAL NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS categories (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT UNIQUE NOT NULL,
                    created_at REAL NOT NULL
                )
                """
            )

            # Older files may lack columns added later.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore: added column %s", name)

            add_col("progress", "INTEGER NOT NULL DEFAULT 0")
            add_col("time_spent", "INTEGER NOT NULL DEFAULT 0")
            add_col("completed_at", "REAL")
            add_col("updated_at", "REAL NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_completed ON tasks(completed)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_created_at ON tasks(created_at)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_completed_at ON tasks(completed_at)")

            now = time.time()
            for name in DEFAULT_CATEGORIES:
                cur.execute(
                    "INSERT OR IGNORE INTO categories(name, created_at) VALUES (?, ?)",
                    (name, now),
                )

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            name=str(row["name"] or ""),
            category=str(row["category"] or FALLBACK_CATEGORY),
            progress=clamp_progress(row["progress"] or 0),
            completed=bool(row["completed"]),
            time_spent=max(0, int(row["time_spent"] or 0)),
            created_at=float(row["created_at"] or 0.0),
            completed_at=float(row["completed_at"]) if row["completed_at"] is not None else None,
            updated_at=float(row["updated_at"] or 0.0),
        )

    @staticmethod
    def _row_to_category(row: sqlite3.Row) -> Category:
        return Category(
            id=int(row["id"]),
            name=str(row["name"]),
            created_at=float(row["created_at"] or 0.0),
        )

    def _select_tasks(self, sql: str, params: tuple = ()) -> list[Task]:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(sql, params)
            return [self._row_to_task(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def _execute(self, sql: str, params: tuple) -> int:
        """Run a single write statement; returns the affected row count."""
        conn = self._get_conn()
        try:
            cur = conn.execute(sql, params)
            conn.commit()
            return cur.rowcount
        finally:
            conn.close()

    # ---- tasks: create / read ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)
        finally:
            conn.close()

    def add_task(
        self,
        *,
        name: str,
        category: str | None = None,
        created_at: float | None = None,
    ) -> int:
        if not name or not name.strip():
            raise ValueError("name is required")

        category = (category or "").strip() or FALLBACK_CATEGORY
        if not self.category_exists(category):
            self.add_category(category)

        now = time.time()
        created = now if created_at is None else float(created_at)

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO tasks(name, category, progress, completed, time_spent, created_at, completed_at, updated_at)
                VALUES (?, ?, 0, 0, 0, ?, NULL, ?)
                """,
                (name.strip(), category, created, now),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for tasks insert")
            task_id = int(rowid)
            logger.debug("Task added id=%s category=%s", task_id, category)
            return task_id
        finally:
            conn.close()

    def get_task(self, task_id: int) -> Task | None:
        rows = self._select_tasks("SELECT * FROM tasks WHERE id = ?", (int(task_id),))
        return rows[0] if rows else None

    def list_active_tasks(self, *, now_ts: float | None = None) -> list[Task]:
        """Incomplete tasks plus anything created today (done or not)."""
        start = day_start(time.time() if now_ts is None else now_ts)
        return self._select_tasks(
            """
            SELECT *
            FROM tasks
            WHERE completed = 0 OR created_at >= ?
            ORDER BY created_at DESC, id DESC
            """,
            (start,),
        )

    def list_history_tasks(self, *, now_ts: float | None = None) -> list[Task]:
        """Tasks completed before today, most recently completed first."""
        start = day_start(time.time() if now_ts is None else now_ts)
        return self._select_tasks(
            """
            SELECT *
            FROM tasks
            WHERE completed = 1 AND completed_at IS NOT NULL AND completed_at < ?
            ORDER BY completed_at DESC
            """,
            (start,),
        )

    def list_tasks_in_range(self, start_ts: float, end_ts: float) -> list[Task]:
        """Tasks created or completed inside [start_ts, end_ts]."""
        return self._select_tasks(
            """
            SELECT *
            FROM tasks
            WHERE (created_at >= ? AND created_at <= ?)
               OR (completed_at IS NOT NULL AND completed_at >= ? AND completed_at <= ?)
            ORDER BY COALESCE(completed_at, created_at) DESC
            """,
            (float(start_ts), float(end_ts), float(start_ts), float(end_ts)),
        )

    # ---- tasks: writes ----

    def update_task_fields(
        self,
        task_id: int,
        *,
        name: str | None = None,
        category: str | None = None,
    ) -> bool:
        fields: list[str] = []
        params: list[object] = []

        if name is not None:
            if not name.strip():
                raise ValueError("name must not be empty")
            fields.append("name = ?")
            params.append(name.strip())

        if category is not None:
            category = category.strip() or FALLBACK_CATEGORY
            if not self.category_exists(category):
                self.add_category(category)
            fields.append("category = ?")
            params.append(category)

        if not fields:
            return False

        fields.append("updated_at = ?")
        params.append(time.time())
        params.append(int(task_id))

        sql = f"UPDATE tasks SET {', '.join(fields)} WHERE id = ?"
        return self._execute(sql, tuple(params)) == 1

    def save_time_spent(self, task_id: int, seconds: int) -> bool:
        if seconds < 0:
            raise ValueError("time_spent must be >= 0")
        return (
            self._execute(
                "UPDATE tasks SET time_spent = MAX(time_spent, ?), updated_at = ? WHERE id = ?",
                (int(seconds), time.time(), int(task_id)),
            )
            == 1
        )

    def save_progress(self, task_id: int, progress: int) -> bool:
        value = clamp_progress(progress)
        if value >= MAX_PROGRESS:
            return self.mark_completed(task_id, time.time())
        return (
            self._execute(
                "UPDATE tasks SET progress = ?, updated_at = ? WHERE id = ? AND completed = 0",
                (value, time.time(), int(task_id)),
            )
            == 1
        )

    def mark_completed(self, task_id: int, completed_at: float) -> bool:
        now = time.time()
        changed = self._execute(
            """
            UPDATE tasks
            SET completed = 1,
                progress = ?,
                completed_at = COALESCE(completed_at, ?),
                updated_at = ?
            WHERE id = ?
            """,
            (MAX_PROGRESS, float(completed_at), now, int(task_id)),
        )
        if changed:
            logger.debug("Task completed id=%s", task_id)
        return changed == 1

    def delete_task(self, task_id: int) -> bool:
        deleted = self._execute("DELETE FROM tasks WHERE id = ?", (int(task_id),)) == 1
        if deleted:
            logger.debug("Task deleted id=%s", task_id)
        return deleted

    # ---- categories ----

    def list_categories(self) -> list[Category]:
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT * FROM categories ORDER BY name")
            return [self._row_to_category(r) for r in cur.fetchall()]
        finally:
            conn.close()

    def list_category_names(self) -> list[str]:
        return [c.name for c in self.list_categories()]

    def category_exists(self, name: str) -> bool:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT 1 FROM categories WHERE name = ?", (name,)).fetchone()
            return row is not None
        finally:
            conn.close()

    def add_category(self, name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise ValueError("category name is required")
        self._execute(
            "INSERT OR IGNORE INTO categories(name, created_at) VALUES (?, ?)",
            (name, time.time()),
        )
        return name

    def delete_category(self, name: str) -> bool:
        """
        Delete a category and move its tasks to the fallback category.

        Default categories cannot be deleted.
        """
        name = (name or "").strip()
        if name in DEFAULT_CATEGORIES:
            logger.warning("Refusing to delete default category %s", name)
            return False

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("DELETE FROM categories WHERE name = ?", (name,))
            deleted = cur.rowcount == 1
            if deleted:
                cur.execute(
                    "UPDATE tasks SET category = ?, updated_at = ? WHERE category = ?",
                    (FALLBACK_CATEGORY, time.time(), name),
                )
                logger.info("Category deleted name=%s moved=%s", name, cur.rowcount)
            conn.commit()
            return deleted
        finally:
            conn.close()
