from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Generator, List, Optional, Tuple

from .models import TaskEntity
from .repositories import Repository, TaskQuery

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Cols:
    table: str = "tasks"
    id: str = "id"
    user_id: str = "user_id"
    title: str = "title"
    description: str = "description"
    completed: str = "completed"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


_COLS = _Cols()


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.
    Each call opens its own connection.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()
        logger.info("SQLite task store ready db=%s", db_path)

    @contextmanager
    def _conn(self) -> Generator[sqlite3.Connection, None, None]:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        finally:
            conn.close()

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_COLS.table} (
                    {_COLS.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_COLS.user_id} TEXT NOT NULL,
                    {_COLS.title} TEXT NOT NULL,
                    {_COLS.description} TEXT NULL,
                    {_COLS.completed} INTEGER NOT NULL DEFAULT 0,
                    {_COLS.created_at} TEXT NOT NULL,
                    {_COLS.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_user_completed "
                f"ON {_COLS.table}({_COLS.user_id}, {_COLS.completed})"
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_user_created_at "
                f"ON {_COLS.table}({_COLS.user_id}, {_COLS.created_at})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TaskEntity:
        return {
            "id": int(row[_COLS.id]),
            "user_id": str(row[_COLS.user_id]),
            "title": str(row[_COLS.title]),
            "description": row[_COLS.description],
            "completed": bool(row[_COLS.completed]),
            "created_at": datetime.fromisoformat(row[_COLS.created_at]),
            "updated_at": datetime.fromisoformat(row[_COLS.updated_at]),
        }

    def _where(self, user_id: str, query: Optional[TaskQuery]) -> Tuple[str, list]:
        q = query or TaskQuery()
        clauses = [f"{_COLS.user_id} = ?"]
        params: list = [user_id]

        if q.completed is not None:
            clauses.append(f"{_COLS.completed} = ?")
            params.append(1 if q.completed else 0)

        if q.created_since is not None:
            # ISO strings of naive datetimes sort chronologically
            clauses.append(f"{_COLS.created_at} >= ?")
            params.append(q.created_since.isoformat())

        return f"WHERE {' AND '.join(clauses)}", params

    def find_by_id(self, task_id: int) -> Optional[TaskEntity]:
        with self._conn() as conn:
            row = conn.execute(f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,)).fetchone()
            return self._row_to_entity(row) if row else None

    def find_by_user(self, user_id: str, query: Optional[TaskQuery] = None) -> List[TaskEntity]:
        where_sql, params = self._where(user_id, query)
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_COLS.table} {where_sql} ORDER BY {_COLS.id} ASC", params
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]

    def count_by_user(self, user_id: str, query: Optional[TaskQuery] = None) -> int:
        where_sql, params = self._where(user_id, query)
        with self._conn() as conn:
            row = conn.execute(f"SELECT COUNT(*) AS cnt FROM {_COLS.table} {where_sql}", params).fetchone()
            return int(row["cnt"]) if row else 0

    def save(self, task: TaskEntity) -> TaskEntity:
        values = (
            task["user_id"],
            task["title"],
            task["description"],
            1 if task["completed"] else 0,
            task["created_at"].isoformat(),
            task["updated_at"].isoformat(),
        )
        with self._conn() as conn:
            if task["id"] is None:
                cur = conn.execute(
                    f"""
                    INSERT INTO {_COLS.table} ({_COLS.user_id}, {_COLS.title}, {_COLS.description},
                        {_COLS.completed}, {_COLS.created_at}, {_COLS.updated_at})
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    values,
                )
                task_id = cur.lastrowid
            else:
                task_id = task["id"]
                conn.execute(
                    f"""
                    UPDATE {_COLS.table}
                    SET {_COLS.user_id} = ?, {_COLS.title} = ?, {_COLS.description} = ?,
                        {_COLS.completed} = ?, {_COLS.created_at} = ?, {_COLS.updated_at} = ?
                    WHERE {_COLS.id} = ?
                    """,
                    (*values, task_id),
                )
            row = conn.execute(f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,)).fetchone()
            if row is None:
                # Deleted by a concurrent request between lookup and save
                stored = task.copy()
                stored["id"] = task_id
                return stored
            return self._row_to_entity(row)

    def delete(self, task_id: int) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (task_id,))
            return cur.rowcount > 0
