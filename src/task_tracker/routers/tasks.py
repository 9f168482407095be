from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ..auth import get_basic_auth_dependency, get_current_user
from ..models import CurrentUser
from ..notifier import Notifier, get_notifier
from ..repositories import Repository, get_repository
from ..schemas import CalendarEventOut, DashboardOut, ResultOut, TaskCreate, TaskOut, TaskUpdate
from ..service import ServiceResult, TaskService

router = APIRouter(
    prefix="/tasks",
    tags=["tasks"],
    dependencies=[Depends(get_basic_auth_dependency())],
)

_NOT_FOUND_RESPONSE = {404: {"model": ResultOut, "description": "Task not found for the current user"}}


def get_task_service(
    repo: Repository = Depends(get_repository),
    notifier: Notifier = Depends(get_notifier),
) -> TaskService:
    """
    Dependency assembling the task service from the configured store and notifier.
    """
    return TaskService(repo, notifier)


def _result_out(result: ServiceResult) -> ResultOut:
    return ResultOut(
        ok=result.ok,
        code=result.code,
        message=result.message,
        task=TaskOut(**result.task) if result.task else None,  # type: ignore[arg-type]
    )


def _not_found(result: ServiceResult) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=_result_out(result).model_dump(mode="json"),
    )


# PUBLIC_INTERFACE
@router.get(
    "/",
    response_model=DashboardOut,
    summary="Task Dashboard",
    description=(
        "Pending and completed tasks of the current user, completion rates in percent for "
        "the current day, week (from Monday) and month, and the completed tasks laid out "
        "for a calendar by the date they were last updated."
    ),
)
def list_tasks(
    user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> DashboardOut:
    """
    List the current user's tasks with completion statistics.
    """
    board = service.dashboard(user.id)
    return DashboardOut(
        pending=[TaskOut(**t) for t in board.pending],  # type: ignore[arg-type]
        completed=[TaskOut(**t) for t in board.completed],  # type: ignore[arg-type]
        daily_completion=board.daily_completion,
        weekly_completion=board.weekly_completion,
        monthly_completion=board.monthly_completion,
        calendar=[CalendarEventOut(**e) for e in board.calendar],
    )


# PUBLIC_INTERFACE
@router.post(
    "/",
    response_model=ResultOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Task",
    description="Create a new pending task for the current user.",
    responses={
        201: {"description": "Task created successfully"},
        422: {"description": "Validation error"},
    },
)
def create_task(
    payload: TaskCreate,
    user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> ResultOut:
    """
    Create a new task.
    """
    return _result_out(service.create(user.id, payload.title, payload.description))


# PUBLIC_INTERFACE
@router.get(
    "/completed",
    response_model=List[TaskOut],
    summary="Completed Tasks",
    description="All completed tasks of the current user.",
)
def list_completed_tasks(
    user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
) -> List[TaskOut]:
    return [TaskOut(**t) for t in service.list_completed(user.id)]  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}",
    response_model=TaskOut,
    summary="Show Task",
    description="Get a single task of the current user by ID.",
    responses=_NOT_FOUND_RESPONSE,
)
def show_task(
    task_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """
    Retrieve a single task by its ID.
    """
    result = service.get(user.id, task_id)
    if not result.ok:
        return _not_found(result)
    return TaskOut(**result.task)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/{task_id}/edit",
    response_model=TaskOut,
    summary="Edit Task",
    description="Get a task in the shape the edit form needs.",
    responses=_NOT_FOUND_RESPONSE,
)
def edit_task(
    task_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    result = service.get(user.id, task_id)
    if not result.ok:
        return _not_found(result)
    return TaskOut(**result.task)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.put(
    "/{task_id}",
    response_model=ResultOut,
    summary="Update Task",
    description=(
        "Overwrite title, description and completion flag of a task. Setting completed to "
        "false re-opens the task; no email is sent from this endpoint."
    ),
    responses={200: {"description": "Task updated"}, **_NOT_FOUND_RESPONSE},
)
def update_task(
    task_id: int,
    payload: TaskUpdate,
    user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    result = service.update(user.id, task_id, payload.title, payload.description, payload.completed)
    if not result.ok:
        return _not_found(result)
    return _result_out(result)


# PUBLIC_INTERFACE
@router.delete(
    "/{task_id}",
    response_model=ResultOut,
    summary="Delete Task",
    description="Delete a task of the current user by ID.",
    responses={200: {"description": "Task deleted"}, **_NOT_FOUND_RESPONSE},
)
def delete_task(
    task_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """
    Delete a task. Deleting it again reports not found.
    """
    result = service.delete(user.id, task_id)
    if not result.ok:
        return _not_found(result)
    return _result_out(result)


# PUBLIC_INTERFACE
@router.post(
    "/{task_id}/complete",
    response_model=ResultOut,
    summary="Complete Task",
    description=(
        "Mark a task completed and email the owner. Email delivery is best effort: "
        "a failed send is logged and the task is still completed."
    ),
    responses={200: {"description": "Task completed"}, **_NOT_FOUND_RESPONSE},
)
def complete_task(
    task_id: int,
    user: CurrentUser = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    result = service.complete(user.id, user.email, task_id)
    if not result.ok:
        return _not_found(result)
    return _result_out(result)
