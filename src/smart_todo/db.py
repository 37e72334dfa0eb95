from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Generator, List, Optional

import structlog

from .models import TodoEntity
from .repositories import ReplaceOutcome, Repository, _check_ids
from .schemas import TodoIn

log = structlog.get_logger()


@dataclass(frozen=True)
class _Cols:
    table: str = "todos"
    id: str = "id"
    title: str = "title"
    description: str = "description"
    category: str = "category"
    completed: str = "completed"


_COLS = _Cols()


class SQLiteRepository(Repository):
    """
    Lightweight SQLite repository implementing the Repository interface.
    """

    def __init__(self, db_path: str) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._init_db()

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
                    {_COLS.title} TEXT NOT NULL,
                    {_COLS.description} TEXT NULL,
                    {_COLS.category} TEXT NULL,
                    {_COLS.completed} INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_COLS.table}_category ON {_COLS.table}({_COLS.category})"
            )

    def _row_to_entity(self, row: sqlite3.Row) -> TodoEntity:
        return {
            "id": int(row[_COLS.id]),
            "title": str(row[_COLS.title]),
            "description": row[_COLS.description],
            "category": row[_COLS.category],
            "completed": bool(row[_COLS.completed]),
        }

    def _select(self, where_sql: str = "", params: tuple = ()) -> List[TodoEntity]:
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT * FROM {_COLS.table} {where_sql} ORDER BY {_COLS.id}", params
            ).fetchall()
            return [self._row_to_entity(r) for r in rows]

    def _exists(self, conn: sqlite3.Connection, todo_id: int) -> bool:
        row = conn.execute(f"SELECT 1 FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,)).fetchone()
        return row is not None

    def list_all(self) -> List[TodoEntity]:
        return self._select()

    def get(self, todo_id: int) -> Optional[TodoEntity]:
        with self._conn() as conn:
            row = conn.execute(f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,)).fetchone()
            return self._row_to_entity(row) if row else None

    def insert(self, data: TodoIn) -> TodoEntity:
        with self._conn() as conn:
            cur = conn.execute(
                f"""
                INSERT INTO {_COLS.table} ({_COLS.title}, {_COLS.description}, {_COLS.category}, {_COLS.completed})
                VALUES (?, ?, ?, ?)
                """,
                (data.title, data.description, data.category, 1 if data.completed else 0),
            )
            new_id = cur.lastrowid
            row = conn.execute(
                f"SELECT * FROM {_COLS.table} WHERE {_COLS.id} = ?", (new_id,)
            ).fetchone()
            assert row is not None
            return self._row_to_entity(row)

    def replace(self, todo_id: int, data: TodoIn) -> ReplaceOutcome:
        _check_ids(todo_id, data)
        with self._conn() as conn:
            if not self._exists(conn, todo_id):
                return ReplaceOutcome.NOT_FOUND
            cur = conn.execute(
                f"""
                UPDATE {_COLS.table}
                SET {_COLS.title} = ?, {_COLS.description} = ?, {_COLS.category} = ?, {_COLS.completed} = ?
                WHERE {_COLS.id} = ?
                """,
                (data.title, data.description, data.category, 1 if data.completed else 0, todo_id),
            )
            if cur.rowcount > 0:
                return ReplaceOutcome.UPDATED
            # Zero rows while the row still exists: another writer got in between.
            if not self._exists(conn, todo_id):
                return ReplaceOutcome.NOT_FOUND
            log.warning("todo replace conflict", todo_id=todo_id)
            return ReplaceOutcome.CONFLICT

    def delete(self, todo_id: int) -> bool:
        with self._conn() as conn:
            cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (todo_id,))
            return cur.rowcount > 0

    def count_by_category(self, category: Optional[str]) -> int:
        with self._conn() as conn:
            # IS treats NULL = NULL as true, so uncategorized todos can be counted too
            row = conn.execute(
                f"SELECT COUNT(*) AS cnt FROM {_COLS.table} WHERE {_COLS.category} IS ?", (category,)
            ).fetchone()
            return int(row["cnt"]) if row else 0

    def search_by_keyword(self, key: Optional[str]) -> List[TodoEntity]:
        needle = (key or "").lower()
        return self._select(
            f"WHERE instr(lower({_COLS.title}), ?) > 0 "
            f"OR instr(lower(coalesce({_COLS.description}, '')), ?) > 0",
            (needle, needle),
        )

    def filter_by_category(self, category: Optional[str]) -> List[TodoEntity]:
        if category is None:
            return []
        return self._select(f"WHERE lower({_COLS.category}) = lower(?)", (category,))
