"""Record-store boundary for task rows.

Every persistence call the ordering engine and lifecycle service make goes
through this module. Driver errors are wrapped in `TaskStoreError` carrying the
logical operation that failed; nothing here retries.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from sqlalchemy import delete, func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select

from taskboard.core.logging import get_logger
from taskboard.core.time import utcnow
from taskboard.models.projects import Project
from taskboard.models.tasks import Task

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)

PROJECT_ORDERING = (col(Task.order_index).asc(), col(Task.created_at).asc())
COLUMN_ORDERING = (col(Task.order_index).asc(),)


class TaskStoreError(Exception):
    """A persistence operation failed; `operation` names the logical action."""

    status_code = 500

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(message)
        self.operation = operation


@asynccontextmanager
async def _store_operation(
    session: AsyncSession,
    *,
    operation: str,
    action: str,
    rollback: bool = False,
) -> AsyncIterator[None]:
    try:
        yield
    except SQLAlchemyError as err:
        logger.warning(
            "task.store.failure",
            extra={"operation": operation, "error": str(err)},
        )
        if rollback:
            await session.rollback()
        raise TaskStoreError(operation, f"Failed to {action}: {err}") from err


async def select_max_order_index(
    session: AsyncSession,
    *,
    project_id: UUID,
    status: str,
) -> int | None:
    """Return the highest order_index in a column, or `None` when it is empty."""
    async with _store_operation(
        session,
        operation="select_max_order_index",
        action="read column order",
    ):
        result = await session.exec(
            select(func.max(col(Task.order_index))).where(
                col(Task.project_id) == project_id,
                col(Task.status) == status,
            ),
        )
        return result.one()


async def lock_project(session: AsyncSession, *, project_id: UUID) -> None:
    """Take a row lock on the project for the rest of the current transaction."""
    async with _store_operation(session, operation="lock_project", action="lock project"):
        await Project.objects.by_id(project_id).for_update().first(session)


async def scan_tasks(
    session: AsyncSession,
    *,
    project_id: UUID,
    status: str | None = None,
    ordering: tuple[Any, ...] | None = None,
) -> list[Task]:
    """List tasks of a project, optionally restricted to one status column."""
    query = Task.objects.filter_by(project_id=project_id)
    if status is not None:
        query = query.filter_by(status=status)
        default_ordering = COLUMN_ORDERING
        action = "fetch tasks by status"
    else:
        default_ordering = PROJECT_ORDERING
        action = "fetch tasks"
    async with _store_operation(session, operation="scan_tasks", action=action):
        return await query.order_by(*(ordering or default_ordering)).all(session)


async def get_task(session: AsyncSession, task_id: UUID) -> Task | None:
    async with _store_operation(session, operation="get_task", action="fetch task"):
        return await Task.objects.by_id(task_id).first(session)


async def insert_task(session: AsyncSession, task: Task) -> Task:
    async with _store_operation(
        session,
        operation="insert_task",
        action="create task",
        rollback=True,
    ):
        session.add(task)
        await session.commit()
        await session.refresh(task)
    return task


async def update_task_fields(
    session: AsyncSession,
    task: Task,
    values: dict[str, Any],
) -> Task:
    """Apply *values* to a loaded task, refresh `updated_at`, and commit."""
    async with _store_operation(
        session,
        operation="update_task",
        action="update task",
        rollback=True,
    ):
        for key, value in values.items():
            setattr(task, key, value)
        task.updated_at = utcnow()
        session.add(task)
        await session.commit()
        await session.refresh(task)
    return task


async def update_task_by_id(
    session: AsyncSession,
    task_id: UUID,
    values: dict[str, Any],
) -> bool:
    """Issue a single UPDATE for *task_id* without committing.

    Returns False when no row matched.
    """
    async with _store_operation(session, operation="update_task", action="update task"):
        result = await session.exec(
            update(Task)
            .where(col(Task.id) == task_id)
            .values(**values, updated_at=utcnow()),
        )
        return bool(result.rowcount)


async def commit(session: AsyncSession, *, operation: str, action: str) -> None:
    """Commit pending writes, rolling back and wrapping driver errors."""
    async with _store_operation(session, operation=operation, action=action, rollback=True):
        await session.commit()


async def delete_task(session: AsyncSession, task: Task) -> None:
    async with _store_operation(
        session,
        operation="delete_task",
        action="delete task",
        rollback=True,
    ):
        await session.delete(task)
        await session.commit()


async def delete_project_tasks(session: AsyncSession, *, project_id: UUID) -> int:
    """Issue a DELETE for every task of a project without committing."""
    async with _store_operation(session, operation="delete_task", action="delete tasks"):
        result = await session.exec(
            delete(Task).where(col(Task.project_id) == project_id),
        )
        return result.rowcount or 0


async def project_ids_for_tasks(
    session: AsyncSession,
    task_ids: list[UUID],
) -> dict[UUID, UUID]:
    """Map each existing task id in *task_ids* to its project id."""
    if not task_ids:
        return {}
    async with _store_operation(session, operation="scan_tasks", action="fetch tasks"):
        rows = (
            await session.exec(
                select(col(Task.id), col(Task.project_id)).where(col(Task.id).in_(task_ids)),
            )
        ).all()
    return {task_id: project_id for task_id, project_id in rows}
