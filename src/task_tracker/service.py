from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, List, Optional, Tuple, TypedDict, Union

from .errors import NotificationError, ValidationError
from .models import TaskEntity
from .notifier import Notifier
from .repositories import Repository, TaskQuery

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

TITLE_MAX_LENGTH = 200


class Period(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"


class MessageCode(str, Enum):
    TASK_FOUND = "task_found"
    TASK_CREATED = "task_created"
    TASK_UPDATED = "task_updated"
    TASK_DELETED = "task_deleted"
    TASK_COMPLETED = "task_completed"
    TASK_NOT_FOUND = "task_not_found"


MESSAGES = {
    MessageCode.TASK_FOUND: "",
    MessageCode.TASK_CREATED: "Task Created Successfully",
    MessageCode.TASK_UPDATED: "Task Updated Successfully",
    MessageCode.TASK_DELETED: "Task Deleted Successfully",
    MessageCode.TASK_COMPLETED: "Task marked as completed and email sent!",
    MessageCode.TASK_NOT_FOUND: "Unable to locate the task",
}


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class ServiceResult:
    """
    Outcome of a task operation, handed to the presentation layer.

    `message` is the user-facing status line for `code`; `task` carries the
    affected task when there is one.
    """

    ok: bool
    code: MessageCode
    message: str
    task: Optional[TaskEntity] = None

    @classmethod
    def success(cls, code: MessageCode, task: Optional[TaskEntity] = None) -> "ServiceResult":
        return cls(ok=True, code=code, message=MESSAGES[code], task=task)

    @classmethod
    def not_found(cls) -> "ServiceResult":
        code = MessageCode.TASK_NOT_FOUND
        return cls(ok=False, code=code, message=MESSAGES[code])


class CalendarEvent(TypedDict):
    title: str
    start: str
    description: Optional[str]


@dataclass(frozen=True)
class Dashboard:
    pending: List[TaskEntity]
    completed: List[TaskEntity]
    daily_completion: float
    weekly_completion: float
    monthly_completion: float
    calendar: List[CalendarEvent] = field(default_factory=list)


# PUBLIC_INTERFACE
def period_start(period: Union[Period, str], now: datetime) -> datetime:
    """
    Return the start of the period containing `now`.

    - day: midnight today
    - week: Monday 00:00 of the current week
    - month: the first of the current month at 00:00

    Raises ValueError for an unknown period name.
    """
    p = Period(period)
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if p is Period.DAY:
        return midnight
    if p is Period.WEEK:
        return midnight - timedelta(days=midnight.weekday())
    return midnight.replace(day=1)


# PUBLIC_INTERFACE
def completion_rate(repo: Repository, user_id: str, period: Union[Period, str], now: datetime) -> float:
    """
    Percentage (0..100) of the user's tasks created since the start of the
    period that are completed. 0.0 when no task was created in the window.
    """
    start = period_start(period, now)
    total = repo.count_by_user(user_id, TaskQuery(created_since=start))
    if total == 0:
        return 0.0
    done = repo.count_by_user(user_id, TaskQuery(completed=True, created_since=start))
    return done / total * 100


def calendar_events(tasks: List[TaskEntity]) -> List[CalendarEvent]:
    """Project completed tasks onto calendar entries dated by their last update."""
    return [
        {
            "title": t["title"],
            "start": t["updated_at"].date().isoformat(),
            "description": t["description"],
        }
        for t in tasks
    ]


def _clean_title(title: Optional[str]) -> str:
    s = (title or "").strip()
    if not s:
        raise ValidationError("title", "title is required")
    if len(s) > TITLE_MAX_LENGTH:
        raise ValidationError("title", f"title length must be between 1 and {TITLE_MAX_LENGTH} characters")
    return s


# PUBLIC_INTERFACE
class TaskService:
    """
    Task lifecycle and statistics for a single user at a time.

    Every method takes the acting user's id and only ever sees that user's
    tasks: a task owned by someone else is reported exactly like a missing one.
    """

    def __init__(self, repo: Repository, notifier: Notifier, clock: Clock = datetime.now) -> None:
        self._repo = repo
        self._notifier = notifier
        self._clock = clock

    def _find_owned(self, user_id: str, task_id: int) -> Optional[TaskEntity]:
        task = self._repo.find_by_id(task_id)
        if task is None or task["user_id"] != user_id:
            return None
        return task

    def list_active(self, user_id: str) -> Tuple[List[TaskEntity], List[TaskEntity]]:
        """Return (pending, completed) tasks of the user in store order."""
        pending = self._repo.find_by_user(user_id, TaskQuery(completed=False))
        completed = self._repo.find_by_user(user_id, TaskQuery(completed=True))
        return pending, completed

    def list_completed(self, user_id: str) -> List[TaskEntity]:
        return self._repo.find_by_user(user_id, TaskQuery(completed=True))

    def create(self, user_id: str, title: str, description: Optional[str] = None) -> ServiceResult:
        now = self._clock()
        task: TaskEntity = {
            "id": None,
            "user_id": user_id,
            "title": _clean_title(title),
            "description": description,
            "completed": False,
            "created_at": now,
            "updated_at": now,
        }
        saved = self._repo.save(task)
        logger.info("Task created id=%s user=%s", saved["id"], user_id)
        return ServiceResult.success(MessageCode.TASK_CREATED, saved)

    def get(self, user_id: str, task_id: int) -> ServiceResult:
        task = self._find_owned(user_id, task_id)
        if task is None:
            return ServiceResult.not_found()
        return ServiceResult.success(MessageCode.TASK_FOUND, task)

    def update(
        self,
        user_id: str,
        task_id: int,
        title: str,
        description: Optional[str],
        completed: bool,
    ) -> ServiceResult:
        """
        Overwrite title, description and completion flag.

        Unlike complete(), this may set completed back to False and never
        sends a notification.
        """
        task = self._find_owned(user_id, task_id)
        if task is None:
            return ServiceResult.not_found()

        task["title"] = _clean_title(title)
        task["description"] = description
        task["completed"] = bool(completed)
        task["updated_at"] = self._clock()
        saved = self._repo.save(task)
        logger.info("Task updated id=%s user=%s completed=%s", task_id, user_id, saved["completed"])
        return ServiceResult.success(MessageCode.TASK_UPDATED, saved)

    def delete(self, user_id: str, task_id: int) -> ServiceResult:
        task = self._find_owned(user_id, task_id)
        if task is None or not self._repo.delete(task_id):
            return ServiceResult.not_found()
        logger.info("Task deleted id=%s user=%s", task_id, user_id)
        return ServiceResult.success(MessageCode.TASK_DELETED, task)

    def complete(self, user_id: str, user_email: Optional[str], task_id: int) -> ServiceResult:
        """
        Mark the task completed, then try to email the owner.

        The email is best effort: a NotificationError (or any other notifier
        failure) is logged and the completion still succeeds. Completing an
        already completed task sends the email again.
        """
        task = self._find_owned(user_id, task_id)
        if task is None:
            return ServiceResult.not_found()

        task["completed"] = True
        task["updated_at"] = self._clock()
        saved = self._repo.save(task)

        try:
            self._notifier.send(user_email, saved["title"], saved["description"])
        except NotificationError as e:
            logger.error("Failed to send email: %s", e)
        except Exception:
            logger.exception("Failed to send email for task id=%s", task_id)
        else:
            logger.info("Email sent for completed task: %s", saved["title"])

        return ServiceResult.success(MessageCode.TASK_COMPLETED, saved)

    def completion_rate(self, user_id: str, period: Union[Period, str]) -> float:
        return completion_rate(self._repo, user_id, period, self._clock())

    def dashboard(self, user_id: str) -> Dashboard:
        """Everything the task list page shows: both lists, three rates, the calendar."""
        pending, completed = self.list_active(user_id)
        return Dashboard(
            pending=pending,
            completed=completed,
            daily_completion=self.completion_rate(user_id, Period.DAY),
            weekly_completion=self.completion_rate(user_id, Period.WEEK),
            monthly_completion=self.completion_rate(user_id, Period.MONTH),
            calendar=calendar_events(completed),
        )
