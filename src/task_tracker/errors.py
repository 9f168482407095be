from __future__ import annotations

from typing import Any, Dict, List, Optional


class TaskTrackerError(Exception):
    """Base exception for the task tracker."""


# PUBLIC_INTERFACE
class ValidationError(TaskTrackerError):
    """
    Raised when task input is rejected before anything is persisted.

    `errors` mirrors the shape of pydantic error entries so both validation
    paths render the same JSON body.
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.message = message
        super().__init__(message)

    def errors(self) -> List[Dict[str, Any]]:
        return [{"loc": ["body", self.field], "msg": self.message, "type": "value_error"}]


# PUBLIC_INTERFACE
class NotificationError(TaskTrackerError):
    """Raised by notifier backends when a completion email could not be sent."""

    def __init__(self, message: str, recipient: Optional[str] = None) -> None:
        self.recipient = recipient
        super().__init__(message)
