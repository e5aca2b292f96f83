"""Owner-scoped project operations.

A project is only ever visible to its owner; every lookup filters on
`owner_id`, so foreign and missing projects are indistinguishable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import HTTPException, status
from sqlmodel import col

from taskboard.core.logging import get_logger
from taskboard.core.time import utcnow
from taskboard.models.projects import Project
from taskboard.services import task_store

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)

EDITABLE_FIELDS = frozenset({"name", "description"})


def _clean_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="name is required",
        )
    return cleaned


async def list_projects(session: AsyncSession, *, owner_id: str) -> list[Project]:
    """List the caller's projects, newest first."""
    return await (
        Project.objects.filter_by(owner_id=owner_id)
        .order_by(col(Project.created_at).desc())
        .all(session)
    )


async def get_project(session: AsyncSession, *, project_id: UUID, owner_id: str) -> Project:
    """Load a project owned by *owner_id* or raise 404."""
    project = await Project.objects.filter_by(id=project_id, owner_id=owner_id).first(session)
    if project is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Project with ID {project_id} not found",
        )
    return project


async def create_project(
    session: AsyncSession,
    *,
    owner_id: str,
    name: str,
    description: str | None = None,
) -> Project:
    project = Project(owner_id=owner_id, name=_clean_name(name), description=description)
    session.add(project)
    await session.commit()
    await session.refresh(project)
    logger.info(
        "project.create",
        extra={"project_id": str(project.id), "owner_id": owner_id},
    )
    return project


async def update_project(
    session: AsyncSession,
    *,
    project_id: UUID,
    owner_id: str,
    updates: dict[str, Any],
) -> Project:
    """Merge *updates* into a project after checking ownership."""
    unknown = set(updates) - EDITABLE_FIELDS
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=f"Fields are not editable: {', '.join(sorted(unknown))}",
        )
    project = await get_project(session, project_id=project_id, owner_id=owner_id)
    if not updates:
        return project
    values = dict(updates)
    if "name" in values:
        values["name"] = _clean_name(values["name"])
    for key, value in values.items():
        setattr(project, key, value)
    project.updated_at = utcnow()
    session.add(project)
    await session.commit()
    await session.refresh(project)
    return project


async def delete_project(session: AsyncSession, *, project_id: UUID, owner_id: str) -> None:
    """Delete a project together with every task on its board."""
    project = await get_project(session, project_id=project_id, owner_id=owner_id)
    removed = await task_store.delete_project_tasks(session, project_id=project_id)
    await session.delete(project)
    await session.commit()
    logger.info(
        "project.delete",
        extra={"project_id": str(project_id), "owner_id": owner_id, "tasks_removed": removed},
    )
