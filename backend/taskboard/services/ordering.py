"""Order-index allocation and bulk reorder for board columns.

A column is the set of tasks sharing `(project_id, status)`. New tasks are
appended at `max(order_index) + 1`; reorder batches write caller-computed
positions verbatim. Neither path takes a lock unless the caller asks for one,
so two concurrent creates in one column can observe the same max and collide.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from taskboard.core.logging import get_logger
from taskboard.db.session import session_maker_for
from taskboard.services import task_store
from taskboard.services.task_store import TaskStoreError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

logger = get_logger(__name__)

ReorderItemStatus = Literal["updated", "not_found", "failed", "rolled_back", "skipped"]


@dataclass(frozen=True)
class ReorderItem:
    """Desired final position of one task after a drag-and-drop gesture."""

    task_id: UUID
    order_index: int
    status: str


@dataclass(frozen=True)
class ReorderItemResult:
    task_id: UUID
    outcome: ReorderItemStatus
    error: str | None = None

    def as_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"task_id": str(self.task_id), "outcome": self.outcome}
        if self.error is not None:
            payload["error"] = self.error
        return payload


class ReorderBatchError(TaskStoreError):
    """At least one item of a reorder batch failed.

    The message is the first failing item's error. `applied` tells whether any
    write from the batch was kept.
    """

    def __init__(
        self,
        operation: str,
        message: str,
        *,
        results: list[ReorderItemResult],
        applied: bool,
    ) -> None:
        super().__init__(operation, message)
        self.results = results
        self.applied = applied
        first = next((r for r in results if r.outcome in ("not_found", "failed")), None)
        self.status_code = 404 if first is not None and first.outcome == "not_found" else 500


async def next_order_index(
    session: AsyncSession,
    *,
    project_id: UUID,
    status: str,
) -> int:
    """Return the index that appends a task to the end of a column."""
    current_max = await task_store.select_max_order_index(
        session,
        project_id=project_id,
        status=status,
    )
    if current_max is None:
        return 0
    return current_max + 1


def _not_found_message(task_id: UUID) -> str:
    return f"Failed to reorder tasks: task {task_id} not found"


async def _apply_atomic(
    session: AsyncSession,
    items: Sequence[ReorderItem],
) -> list[ReorderItemResult]:
    results: list[ReorderItemResult] = []
    failure: ReorderItemResult | None = None
    for item in items:
        try:
            matched = await task_store.update_task_by_id(
                session,
                item.task_id,
                {"order_index": item.order_index, "status": item.status},
            )
        except TaskStoreError as err:
            failure = ReorderItemResult(item.task_id, "failed", str(err))
            break
        if not matched:
            failure = ReorderItemResult(
                item.task_id,
                "not_found",
                _not_found_message(item.task_id),
            )
            break
        results.append(ReorderItemResult(item.task_id, "updated"))

    if failure is None:
        await task_store.commit(session, operation="reorder_tasks", action="reorder tasks")
        return results

    await session.rollback()
    attempted = {result.task_id for result in results} | {failure.task_id}
    rolled_back = [ReorderItemResult(result.task_id, "rolled_back") for result in results]
    skipped = [
        ReorderItemResult(item.task_id, "skipped")
        for item in items
        if item.task_id not in attempted
    ]
    raise ReorderBatchError(
        operation="reorder_tasks",
        message=failure.error or "Failed to reorder tasks",
        results=[*rolled_back, failure, *skipped],
        applied=False,
    )


async def _apply_independent(
    session: AsyncSession,
    items: Sequence[ReorderItem],
) -> list[ReorderItemResult]:
    make_session = session_maker_for(session)

    async def _apply_one(item: ReorderItem) -> ReorderItemResult:
        async with make_session() as item_session:
            matched = await task_store.update_task_by_id(
                item_session,
                item.task_id,
                {"order_index": item.order_index, "status": item.status},
            )
            if not matched:
                await item_session.rollback()
                return ReorderItemResult(
                    item.task_id,
                    "not_found",
                    _not_found_message(item.task_id),
                )
            await task_store.commit(
                item_session,
                operation="reorder_tasks",
                action="reorder tasks",
            )
            return ReorderItemResult(item.task_id, "updated")

    outcomes = await asyncio.gather(
        *(_apply_one(item) for item in items),
        return_exceptions=True,
    )
    # Rows changed under other sessions; drop the caller's cached copies.
    session.expire_all()
    results: list[ReorderItemResult] = []
    for item, outcome in zip(items, outcomes, strict=True):
        if isinstance(outcome, TaskStoreError):
            results.append(ReorderItemResult(item.task_id, "failed", str(outcome)))
        elif isinstance(outcome, BaseException):
            raise outcome
        else:
            results.append(outcome)

    first_failure = next((r for r in results if r.outcome != "updated"), None)
    if first_failure is not None:
        raise ReorderBatchError(
            operation="reorder_tasks",
            message=first_failure.error or "Failed to reorder tasks",
            results=results,
            applied=any(r.outcome == "updated" for r in results),
        )
    return results


async def apply_reorder(
    session: AsyncSession,
    items: Sequence[ReorderItem],
    *,
    atomic: bool = True,
) -> list[ReorderItemResult]:
    """Write the given positions and statuses for every task in *items*.

    The batch is taken as-is: indices are not recomputed or checked for gaps or
    duplicates. With `atomic=True` the writes share the session's transaction and
    a failing item rolls back the whole batch. With `atomic=False` each item is
    committed separately, all items run concurrently, and successful writes stay
    in place when another item fails. Either way, tasks already loaded in
    *session* are expired afterwards and reload on the next query.

    Raises `ReorderBatchError` with per-item results when any item fails.
    """
    if not items:
        return []
    if atomic:
        results = await _apply_atomic(session, items)
    else:
        results = await _apply_independent(session, items)
    logger.info(
        "task.reorder",
        extra={"items": len(items), "atomic": atomic},
    )
    return results
