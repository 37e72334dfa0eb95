from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from functools import lru_cache
from threading import RLock
from typing import List, Optional

from .models import TodoEntity
from .schemas import TodoIn
from .settings import get_settings


class ReplaceOutcome(str, Enum):
    """Result of Repository.replace."""

    UPDATED = "updated"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"


def _matches_keyword(todo: TodoEntity, key: str) -> bool:
    s = key.lower()
    return s in (todo["title"] or "").lower() or s in (todo["description"] or "").lower()


def _same_category_ignore_case(todo: TodoEntity, category: Optional[str]) -> bool:
    if todo["category"] is None or category is None:
        return False
    return todo["category"].lower() == category.lower()


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for todo storage backends."""

    @abstractmethod
    def list_all(self) -> List[TodoEntity]:
        """Return every stored TodoEntity, ordered by id."""

    @abstractmethod
    def get(self, todo_id: int) -> Optional[TodoEntity]:
        """Return a TodoEntity by id, or None if not found."""

    @abstractmethod
    def insert(self, data: TodoIn) -> TodoEntity:
        """Assign a new id, store the todo and return the stored TodoEntity. data.id is ignored."""

    @abstractmethod
    def replace(self, todo_id: int, data: TodoIn) -> ReplaceOutcome:
        """
        Overwrite every field of an existing todo.

        Returns NOT_FOUND when no record has this id and CONFLICT when the record
        changed or vanished between the existence check and the write while still
        being present afterwards.
        """

    @abstractmethod
    def delete(self, todo_id: int) -> bool:
        """Delete a TodoEntity by id. Return True if deleted, False if not found."""

    @abstractmethod
    def count_by_category(self, category: Optional[str]) -> int:
        """Count todos whose category equals `category` exactly (case-sensitive)."""

    @abstractmethod
    def search_by_keyword(self, key: Optional[str]) -> List[TodoEntity]:
        """Todos whose title or description contains `key`, case-insensitive."""

    @abstractmethod
    def filter_by_category(self, category: Optional[str]) -> List[TodoEntity]:
        """Todos whose category equals `category`, ignoring case."""


def _check_ids(todo_id: int, data: TodoIn) -> None:
    if data.id != todo_id:
        raise ValueError(f"Path id {todo_id} does not match todo id {data.id}")


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: dict[int, TodoEntity] = {}
        self._next_id = 1

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def _snapshot(self) -> List[TodoEntity]:
        with self._lock:
            return [self._items[k].copy() for k in sorted(self._items)]

    def list_all(self) -> List[TodoEntity]:
        return self._snapshot()

    def get(self, todo_id: int) -> Optional[TodoEntity]:
        with self._lock:
            item = self._items.get(todo_id)
            return None if item is None else item.copy()

    def insert(self, data: TodoIn) -> TodoEntity:
        entity: TodoEntity = {
            "id": self._allocate_id(),
            "title": data.title,
            "description": data.description,
            "category": data.category,
            "completed": data.completed,
        }
        with self._lock:
            self._items[entity["id"]] = entity
        return entity.copy()

    def replace(self, todo_id: int, data: TodoIn) -> ReplaceOutcome:
        _check_ids(todo_id, data)
        with self._lock:
            if todo_id not in self._items:
                return ReplaceOutcome.NOT_FOUND
            self._items[todo_id] = {
                "id": todo_id,
                "title": data.title,
                "description": data.description,
                "category": data.category,
                "completed": data.completed,
            }
            return ReplaceOutcome.UPDATED

    def delete(self, todo_id: int) -> bool:
        with self._lock:
            return self._items.pop(todo_id, None) is not None

    def count_by_category(self, category: Optional[str]) -> int:
        return sum(1 for t in self._snapshot() if t["category"] == category)

    def search_by_keyword(self, key: Optional[str]) -> List[TodoEntity]:
        return [t for t in self._snapshot() if _matches_keyword(t, key or "")]

    def filter_by_category(self, category: Optional[str]) -> List[TodoEntity]:
        return [t for t in self._snapshot() if _same_category_ignore_case(t, category)]


# PUBLIC_INTERFACE
@lru_cache
def get_repository() -> Repository:
    """
    Factory returning the configured repository; one instance per process.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository
    """
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(settings.sqlite_db_path)
    return InMemoryRepository()
