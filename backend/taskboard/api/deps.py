"""Reusable FastAPI dependencies for auth and project/task access.

Project ownership is the only authorization rule: a caller may read and write
tasks of projects whose `owner_id` is their resolved user id. Missing and
foreign resources both answer 404 so ids of other users' data do not leak.
"""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import Depends, HTTPException, Query, status

from taskboard.core.auth import AuthContext, get_auth_context
from taskboard.db.session import get_session
from taskboard.models.projects import Project
from taskboard.services import projects as project_service
from taskboard.services import task_store

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from taskboard.models.tasks import Task

AUTH_DEP = Depends(get_auth_context)
SESSION_DEP = Depends(get_session)
PROJECT_ID_QUERY = Query(description="Project whose board is queried.")


async def require_project_access(
    session: AsyncSession,
    *,
    project_id: UUID,
    auth: AuthContext,
) -> Project:
    """Load a project owned by the caller or raise HTTP 404."""
    return await project_service.get_project(
        session,
        project_id=project_id,
        owner_id=auth.user_id,
    )


async def get_project_for_user(
    project_id: UUID = PROJECT_ID_QUERY,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> Project:
    """Resolve the `project_id` query parameter to a project the caller owns."""
    return await require_project_access(session, project_id=project_id, auth=auth)


async def get_owned_project(
    project_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> Project:
    """Resolve the `project_id` path parameter to a project the caller owns."""
    return await require_project_access(session, project_id=project_id, auth=auth)


async def get_task_for_user(
    task_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> Task:
    """Load a task whose project the caller owns or raise HTTP 404."""
    task = await task_store.get_task(session, task_id)
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task with ID {task_id} not found",
        )
    project = await Project.objects.by_id(task.project_id).first(session)
    if project is None or project.owner_id != auth.user_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task with ID {task_id} not found",
        )
    return task


async def require_reorder_access(
    session: AsyncSession,
    *,
    task_ids: list[UUID],
    auth: AuthContext,
) -> None:
    """Reject a reorder batch that touches tasks of projects the caller does not own.

    Ids that match no task are let through; they fail as batch items.
    """
    project_ids = set((await task_store.project_ids_for_tasks(session, task_ids)).values())
    if not project_ids:
        return
    owned = await Project.objects.by_ids(list(project_ids)).filter_by(
        owner_id=auth.user_id,
    ).all(session)
    if len(owned) != len(project_ids):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN)


PROJECT_DEP = Depends(get_project_for_user)
OWNED_PROJECT_DEP = Depends(get_owned_project)
TASK_DEP = Depends(get_task_for_user)
