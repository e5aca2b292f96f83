"""Project endpoints scoped to the calling user."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, status

from taskboard.api.deps import AUTH_DEP, OWNED_PROJECT_DEP, SESSION_DEP
from taskboard.models.projects import Project
from taskboard.schemas.common import OkResponse
from taskboard.schemas.errors import ErrorResponse
from taskboard.schemas.projects import ProjectCreate, ProjectRead, ProjectUpdate
from taskboard.services import projects as project_service

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from taskboard.core.auth import AuthContext

router = APIRouter(prefix="/projects", tags=["projects"])
ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    status.HTTP_404_NOT_FOUND: {"model": ErrorResponse},
    status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
}


def _to_read(project: Project) -> ProjectRead:
    return ProjectRead.model_validate(project, from_attributes=True)


@router.get("", response_model=list[ProjectRead])
async def list_projects(
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> list[ProjectRead]:
    """List the caller's projects, newest first."""
    projects = await project_service.list_projects(session, owner_id=auth.user_id)
    return [_to_read(project) for project in projects]


@router.get("/{project_id}", response_model=ProjectRead, responses=ERROR_RESPONSES)
async def get_project(project: Project = OWNED_PROJECT_DEP) -> ProjectRead:
    """Get a single project."""
    return _to_read(project)


@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ProjectRead:
    project = await project_service.create_project(
        session,
        owner_id=auth.user_id,
        name=payload.name,
        description=payload.description,
    )
    return _to_read(project)


@router.patch("/{project_id}", response_model=ProjectRead, responses=ERROR_RESPONSES)
async def update_project(
    payload: ProjectUpdate,
    project: Project = OWNED_PROJECT_DEP,
    session: AsyncSession = SESSION_DEP,
) -> ProjectRead:
    """Rename a project or change its description."""
    updated = await project_service.update_project(
        session,
        project_id=project.id,
        owner_id=project.owner_id,
        updates=payload.model_dump(exclude_unset=True),
    )
    return _to_read(updated)


@router.delete("/{project_id}", response_model=OkResponse, responses=ERROR_RESPONSES)
async def delete_project(
    project: Project = OWNED_PROJECT_DEP,
    session: AsyncSession = SESSION_DEP,
) -> OkResponse:
    """Delete a project and every task on its board."""
    await project_service.delete_project(
        session,
        project_id=project.id,
        owner_id=project.owner_id,
    )
    return OkResponse()
