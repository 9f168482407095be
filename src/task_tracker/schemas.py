from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .service import TITLE_MAX_LENGTH, MessageCode


def _strip_title(v: Optional[str]) -> str:
    if v is None:
        raise ValueError("title is required")
    s = v.strip()
    if not (1 <= len(s) <= TITLE_MAX_LENGTH):
        raise ValueError(f"title length must be between 1 and {TITLE_MAX_LENGTH} characters")
    return s


# PUBLIC_INTERFACE
class TaskCreate(BaseModel):
    """
    Schema for creating a new task. New tasks always start pending.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
            }
        }
    )

    title: str = Field(..., description="Short title for the task", min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(default=None, description="Optional detailed description")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """
        Strip whitespace and enforce 1..200 length.
        """
        return _strip_title(v)


# PUBLIC_INTERFACE
class TaskUpdate(BaseModel):
    """
    Schema for updating a task. All three fields are overwritten; an omitted
    `completed` re-opens the task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries and supplies",
                "description": "Milk, eggs, bread, and paper towels",
                "completed": True,
            }
        }
    )

    title: str = Field(..., description="Short title for the task", min_length=1, max_length=TITLE_MAX_LENGTH)
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    completed: bool = Field(default=False, description="Completion status flag")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _strip_title(v)


# PUBLIC_INTERFACE
class TaskOut(BaseModel):
    """
    Schema returned by the API for a task.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 123,
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "completed": False,
                "created_at": "2025-01-25T10:15:30.123456",
                "updated_at": "2025-01-26T09:00:00.000001",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the task")
    title: str = Field(..., description="Short title for the task")
    description: Optional[str] = Field(default=None, description="Optional detailed description")
    completed: bool = Field(..., description="Completion status flag")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class CalendarEventOut(BaseModel):
    """A completed task placed on the calendar at the date it was last updated."""

    title: str
    start: str = Field(..., description="Date of the last update, YYYY-MM-DD")
    description: Optional[str] = None


# PUBLIC_INTERFACE
class ResultOut(BaseModel):
    """
    Envelope for mutating operations and lookup misses. `message` is the
    status line meant for the user.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "ok": True,
                "code": "task_created",
                "message": "Task Created Successfully",
                "task": None,
            }
        }
    )

    ok: bool
    code: MessageCode
    message: str
    task: Optional[TaskOut] = None


# PUBLIC_INTERFACE
class DashboardOut(BaseModel):
    """
    Task list page: pending and completed tasks, completion rates in percent
    for the current day/week/month, and the completed-task calendar.
    """

    pending: List[TaskOut]
    completed: List[TaskOut]
    daily_completion: float = Field(..., ge=0, le=100)
    weekly_completion: float = Field(..., ge=0, le=100)
    monthly_completion: float = Field(..., ge=0, le=100)
    calendar: List[CalendarEventOut]
