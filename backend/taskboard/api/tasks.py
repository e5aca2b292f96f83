"""Task board endpoints: CRUD, column moves, and drag-and-drop reorder."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Query, status

from taskboard.api.deps import (
    AUTH_DEP,
    PROJECT_DEP,
    TASK_DEP,
    require_project_access,
    require_reorder_access,
)
from taskboard.db.session import get_session
from taskboard.models.projects import Project
from taskboard.models.tasks import Task, TaskStatus
from taskboard.schemas.common import OkResponse
from taskboard.schemas.errors import ErrorResponse, ReorderErrorResponse
from taskboard.schemas.tasks import (
    TaskCreate,
    TaskRead,
    TaskReorderRequest,
    TaskReorderResponse,
    TaskStatusUpdate,
    TaskUpdate,
)
from taskboard.services import tasks as task_service
from taskboard.services.ordering import ReorderItem

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from taskboard.core.auth import AuthContext

router = APIRouter(prefix="/tasks", tags=["tasks"])
SESSION_DEP = Depends(get_session)
STATUS_QUERY = Query(alias="status", description="Board column to list.")
ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}
REORDER_ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    status.HTTP_403_FORBIDDEN: {"model": ErrorResponse},
    status.HTTP_404_NOT_FOUND: {"model": ReorderErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ReorderErrorResponse},
}


def _to_read(task: Task) -> TaskRead:
    return TaskRead.model_validate(task, from_attributes=True)


@router.get("", response_model=list[TaskRead])
async def list_tasks(
    project: Project = PROJECT_DEP,
    session: AsyncSession = SESSION_DEP,
) -> list[TaskRead]:
    """List every task of a project ordered by position, then creation time."""
    tasks = await task_service.list_tasks(session, project_id=project.id)
    return [_to_read(task) for task in tasks]


@router.get("/by-status", response_model=list[TaskRead])
async def list_tasks_by_status(
    task_status: TaskStatus = STATUS_QUERY,
    project: Project = PROJECT_DEP,
    session: AsyncSession = SESSION_DEP,
) -> list[TaskRead]:
    """List one board column ordered by position."""
    tasks = await task_service.list_tasks_by_status(
        session,
        project_id=project.id,
        task_status=task_status,
    )
    return [_to_read(task) for task in tasks]


@router.post(
    "/reorder",
    response_model=TaskReorderResponse,
    responses=REORDER_ERROR_RESPONSES,
)
async def reorder_tasks(
    payload: TaskReorderRequest,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> TaskReorderResponse:
    """Write a drag-and-drop arrangement of positions and statuses.

    By default the batch is atomic: one failing item rolls back every write and
    the error lists per-item outcomes. With `REORDER_MODE=independent` each item
    commits on its own and successful writes are kept.
    """
    await require_reorder_access(
        session,
        task_ids=[item.id for item in payload.tasks],
        auth=auth,
    )
    results = await task_service.reorder_tasks(
        session,
        [
            ReorderItem(task_id=item.id, order_index=item.order_index, status=item.status)
            for item in payload.tasks
        ],
    )
    return TaskReorderResponse(ok=True, updated=len(results))


@router.get("/{task_id}", response_model=TaskRead, responses=ERROR_RESPONSES)
async def get_task(task: Task = TASK_DEP) -> TaskRead:
    """Get a single task."""
    return _to_read(task)


@router.post(
    "",
    response_model=TaskRead,
    status_code=status.HTTP_201_CREATED,
    responses=ERROR_RESPONSES,
)
async def create_task(
    payload: TaskCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> TaskRead:
    """Create a task at the end of its column."""
    await require_project_access(session, project_id=payload.project_id, auth=auth)
    task = await task_service.create_task(
        session,
        project_id=payload.project_id,
        title=payload.title,
        description=payload.description,
        task_status=payload.status,
    )
    return _to_read(task)


@router.patch("/{task_id}", response_model=TaskRead, responses=ERROR_RESPONSES)
async def update_task(
    payload: TaskUpdate,
    task: Task = TASK_DEP,
    session: AsyncSession = SESSION_DEP,
) -> TaskRead:
    """Apply a partial update to a task."""
    updated = await task_service.update_task(
        session,
        task_id=task.id,
        updates=payload.model_dump(exclude_unset=True),
    )
    return _to_read(updated)


@router.patch("/{task_id}/status", response_model=TaskRead, responses=ERROR_RESPONSES)
async def update_task_status(
    payload: TaskStatusUpdate,
    task: Task = TASK_DEP,
    session: AsyncSession = SESSION_DEP,
) -> TaskRead:
    """Move a task to another column, optionally at an explicit position."""
    updated = await task_service.change_task_status(
        session,
        task_id=task.id,
        task_status=payload.status,
        order_index=payload.order_index,
    )
    return _to_read(updated)


@router.delete("/{task_id}", response_model=OkResponse, responses=ERROR_RESPONSES)
async def delete_task(
    task: Task = TASK_DEP,
    session: AsyncSession = SESSION_DEP,
) -> OkResponse:
    """Delete a task without renumbering the rest of its column."""
    await task_service.delete_task(session, task_id=task.id)
    return OkResponse()
