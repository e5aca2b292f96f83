"""Board column membership: allowed statuses and status changes."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import HTTPException, status

from taskboard.core.logging import get_logger
from taskboard.models.tasks import TASK_STATUSES
from taskboard.services import task_store

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from taskboard.models.tasks import Task

logger = get_logger(__name__)

# Every column is reachable from every column, including itself.
TASK_STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    current: TASK_STATUSES for current in TASK_STATUSES
}


def validate_task_status(value: str) -> str:
    """Return *value* when it names a board column, else raise 422."""
    if value not in TASK_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=f"Invalid task status: {value}",
        )
    return value


def validate_status_transition(current: str, target: str) -> None:
    """Check that *current* -> *target* is an allowed column move."""
    validate_task_status(target)
    allowed = TASK_STATUS_TRANSITIONS.get(current, TASK_STATUSES)
    if target not in allowed:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            detail=f"Cannot move task from '{current}' to '{target}'",
        )


async def change_status(
    session: AsyncSession,
    task: Task,
    *,
    target_status: str,
    order_index: int | None = None,
) -> Task:
    """Move *task* to *target_status*, optionally repositioning it.

    Without *order_index* the task keeps its current index in the destination
    column, which may collide with a sibling there. Callers on the drag-and-drop
    path pass the destination column's length to append instead.
    """
    previous_status = task.status
    validate_status_transition(previous_status, target_status)
    values: dict[str, object] = {"status": target_status}
    if order_index is not None:
        if order_index < 0:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
                detail="order_index must be non-negative",
            )
        values["order_index"] = order_index
    updated = await task_store.update_task_fields(session, task, values)
    logger.info(
        "task.status.change",
        extra={
            "task_id": str(updated.id),
            "from_status": previous_status,
            "to_status": target_status,
            "order_index": updated.order_index,
            "reindexed": order_index is not None,
        },
    )
    return updated
