"""Task lifecycle operations composing the ordering and status engines.

Each operation is a short sequence of record-store calls (for example read the
column max, then insert) without a surrounding lock, so concurrent requests can
interleave between the steps.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from fastapi import HTTPException, status

from taskboard.core.config import settings
from taskboard.core.logging import get_logger
from taskboard.models.tasks import DEFAULT_TASK_STATUS, Task
from taskboard.services import status_transitions, task_store
from taskboard.services.ordering import (
    ReorderItem,
    ReorderItemResult,
    apply_reorder,
    next_order_index,
)

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)

EDITABLE_FIELDS = frozenset({"title", "description", "status", "order_index"})


def _clean_title(title: str | None) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="title is required",
        )
    return cleaned


def _check_order_index(order_index: object) -> int:
    if not isinstance(order_index, int) or isinstance(order_index, bool) or order_index < 0:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail="order_index must be a non-negative integer",
        )
    return order_index


async def list_tasks(session: AsyncSession, *, project_id: UUID) -> list[Task]:
    """List a project's tasks by `(order_index, created_at)`."""
    return await task_store.scan_tasks(session, project_id=project_id)


async def list_tasks_by_status(
    session: AsyncSession,
    *,
    project_id: UUID,
    task_status: str,
) -> list[Task]:
    """List one column of a project's board by `order_index`."""
    status_transitions.validate_task_status(task_status)
    return await task_store.scan_tasks(session, project_id=project_id, status=task_status)


async def get_task(session: AsyncSession, task_id: UUID) -> Task:
    """Load a task or raise 404."""
    task = await task_store.get_task(session, task_id)
    if task is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Task with ID {task_id} not found",
        )
    return task


async def create_task(
    session: AsyncSession,
    *,
    project_id: UUID,
    title: str,
    description: str | None = None,
    task_status: str | None = None,
) -> Task:
    """Create a task at the end of its column."""
    cleaned_title = _clean_title(title)
    column = status_transitions.validate_task_status(task_status or DEFAULT_TASK_STATUS)
    if settings.serialize_task_creates:
        await task_store.lock_project(session, project_id=project_id)
    order_index = await next_order_index(session, project_id=project_id, status=column)
    task = await task_store.insert_task(
        session,
        Task(
            project_id=project_id,
            title=cleaned_title,
            description=description,
            status=column,
            order_index=order_index,
        ),
    )
    logger.info(
        "task.create",
        extra={
            "task_id": str(task.id),
            "project_id": str(project_id),
            "status": column,
            "order_index": order_index,
        },
    )
    return task


async def update_task(
    session: AsyncSession,
    *,
    task_id: UUID,
    updates: dict[str, Any],
) -> Task:
    """Merge *updates* into an existing task.

    Existence is checked with a read before the write is attempted.
    """
    unknown = set(updates) - EDITABLE_FIELDS
    if unknown:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=f"Fields are not editable: {', '.join(sorted(unknown))}",
        )
    task = await get_task(session, task_id)
    values = dict(updates)
    if "title" in values:
        values["title"] = _clean_title(values["title"])
    if "order_index" in values:
        values["order_index"] = _check_order_index(values["order_index"])
    if "status" in values:
        status_transitions.validate_status_transition(task.status, values["status"])
    if not values:
        return task
    return await task_store.update_task_fields(session, task, values)


async def change_task_status(
    session: AsyncSession,
    *,
    task_id: UUID,
    task_status: str,
    order_index: int | None = None,
) -> Task:
    """Move a task between columns; see `status_transitions.change_status`."""
    task = await get_task(session, task_id)
    return await status_transitions.change_status(
        session,
        task,
        target_status=task_status,
        order_index=order_index,
    )


async def reorder_tasks(
    session: AsyncSession,
    items: Sequence[ReorderItem],
) -> list[ReorderItemResult]:
    """Apply a reorder batch using the configured reorder mode."""
    if len(items) > settings.reorder_max_items:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=f"A reorder batch accepts at most {settings.reorder_max_items} tasks.",
        )
    for item in items:
        status_transitions.validate_task_status(item.status)
    return await apply_reorder(
        session,
        items,
        atomic=settings.reorder_mode == "atomic",
    )


async def delete_task(session: AsyncSession, *, task_id: UUID) -> None:
    """Delete a task; siblings keep their indices and the gap stays."""
    task = await get_task(session, task_id)
    log_extra = {
        "task_id": str(task_id),
        "project_id": str(task.project_id),
        "status": task.status,
        "order_index": task.order_index,
    }
    await task_store.delete_task(session, task)
    logger.info("task.delete", extra=log_extra)
