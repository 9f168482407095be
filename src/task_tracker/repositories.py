from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from threading import RLock
from typing import Dict, List, Optional

from .models import TaskEntity
from .settings import get_settings


@dataclass(frozen=True)
class TaskQuery:
    """
    Filters for listing or counting one user's tasks.
    """
    completed: Optional[bool] = None
    created_since: Optional[datetime] = None  # inclusive lower bound on created_at


# PUBLIC_INTERFACE
class Repository(ABC):
    """Abstract repository contract for task storage backends."""

    @abstractmethod
    def find_by_id(self, task_id: int) -> Optional[TaskEntity]:
        """Return a TaskEntity by id regardless of owner, or None if not found."""

    @abstractmethod
    def find_by_user(self, user_id: str, query: Optional[TaskQuery] = None) -> List[TaskEntity]:
        """Return the user's tasks matching the query in insertion order."""

    @abstractmethod
    def count_by_user(self, user_id: str, query: Optional[TaskQuery] = None) -> int:
        """Return how many of the user's tasks match the query."""

    @abstractmethod
    def save(self, task: TaskEntity) -> TaskEntity:
        """
        Insert the task when its id is None, otherwise overwrite the stored row.
        Return the stored entity (with its id assigned).
        """

    @abstractmethod
    def delete(self, task_id: int) -> bool:
        """Delete a TaskEntity by id. Return True if deleted, False if not found."""


def matches(task: TaskEntity, user_id: str, query: TaskQuery) -> bool:
    """Return True when the task belongs to the user and passes the query filters."""
    if task["user_id"] != user_id:
        return False
    if query.completed is not None and task["completed"] != query.completed:
        return False
    if query.created_since is not None and task["created_at"] < query.created_since:
        return False
    return True


class InMemoryRepository(Repository):
    """
    Thread-safe in-memory repository suitable for testing and default runtime.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[int, TaskEntity] = {}
        self._next_id = 1

    def _allocate_id(self) -> int:
        with self._lock:
            i = self._next_id
            self._next_id += 1
            return i

    def find_by_id(self, task_id: int) -> Optional[TaskEntity]:
        with self._lock:
            item = self._items.get(task_id)
            return None if item is None else item.copy()

    def find_by_user(self, user_id: str, query: Optional[TaskQuery] = None) -> List[TaskEntity]:
        q = query or TaskQuery()
        with self._lock:
            # dicts keep insertion order, which doubles as id order here
            return [t.copy() for t in self._items.values() if matches(t, user_id, q)]

    def count_by_user(self, user_id: str, query: Optional[TaskQuery] = None) -> int:
        q = query or TaskQuery()
        with self._lock:
            return sum(1 for t in self._items.values() if matches(t, user_id, q))

    def save(self, task: TaskEntity) -> TaskEntity:
        stored = task.copy()
        with self._lock:
            if stored["id"] is None:
                stored["id"] = self._allocate_id()
            self._items[stored["id"]] = stored
            return stored.copy()

    def delete(self, task_id: int) -> bool:
        with self._lock:
            return self._items.pop(task_id, None) is not None


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_repository() -> Repository:
    """
    Return the process-wide repository configured by settings.
    - memory: InMemoryRepository
    - sqlite: SQLiteRepository backed by SQLITE_DB_PATH
    """
    settings = get_settings()
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteRepository

        return SQLiteRepository(settings.sqlite_db_path)
    return InMemoryRepository()
