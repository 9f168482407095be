from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, TypedDict


# PUBLIC_INTERFACE
class TaskEntity(TypedDict):
    """
    A lightweight domain model representing a user-owned task for non-ORM
    storage backends.

    Fields:
    - id: Unique integer identifier, None until the task is first saved
    - user_id: Owner of the task; every lookup is scoped to it
    - title: Short title (1..200 chars, trimmed on input)
    - description: Optional detailed description
    - completed: Boolean completion flag
    - created_at: Creation timestamp (datetime), never changed afterwards
    - updated_at: Last mutation timestamp (datetime)
    """

    id: Optional[int]
    user_id: str
    title: str
    description: Optional[str]
    completed: bool
    created_at: datetime
    updated_at: datetime


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class CurrentUser:
    """The authenticated caller on whose behalf an operation runs."""

    id: str
    email: Optional[str] = None
