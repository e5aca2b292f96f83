# ruff: noqa

from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi import HTTPException
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from taskboard.models.projects import Project
from taskboard.models.tasks import TASK_STATUSES, Task
from taskboard.services import task_store
from taskboard.services.status_transitions import (
    TASK_STATUS_TRANSITIONS,
    change_status,
    validate_status_transition,
    validate_task_status,
)


async def _make_engine() -> AsyncEngine:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)
    return engine


async def _seed_task(session: AsyncSession, *, status: str = "todo", order_index: int = 1) -> Task:
    project = Project(id=uuid4(), owner_id="user-1", name="Board")
    task = Task(
        id=uuid4(),
        project_id=project.id,
        title="Write docs",
        description="Cover the reorder endpoint",
        status=status,
        order_index=order_index,
    )
    session.add(project)
    session.add(task)
    await session.commit()
    return task


def test_task_statuses_contains_all_columns() -> None:
    assert TASK_STATUSES == {"todo", "in_progress", "done"}


def test_status_transitions_form_complete_graph() -> None:
    for current in TASK_STATUSES:
        assert TASK_STATUS_TRANSITIONS[current] == TASK_STATUSES


@pytest.mark.parametrize("current", sorted(TASK_STATUSES))
@pytest.mark.parametrize("target", sorted(TASK_STATUSES))
def test_validate_status_transition_allows_every_move(current: str, target: str) -> None:
    validate_status_transition(current, target)


def test_validate_status_transition_rejects_unknown_target() -> None:
    with pytest.raises(HTTPException) as exc:
        validate_status_transition("todo", "review")
    assert exc.value.status_code == 422
    assert "review" in str(exc.value.detail)


def test_validate_task_status_returns_value() -> None:
    assert validate_task_status("in_progress") == "in_progress"


def test_validate_task_status_rejects_unknown_value() -> None:
    with pytest.raises(HTTPException) as exc:
        validate_task_status("inbox")
    assert exc.value.status_code == 422


@pytest.mark.asyncio
async def test_change_status_with_explicit_index_moves_and_repositions() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            task = await _seed_task(session, order_index=1)
            original = task.model_dump()

            updated = await change_status(session, task, target_status="done", order_index=0)

            assert updated.status == "done"
            assert updated.order_index == 0
            assert updated.updated_at >= original["updated_at"]
            for field in ("id", "project_id", "title", "description", "created_at"):
                assert getattr(updated, field) == original[field]
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_change_status_without_index_keeps_current_index() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            task = await _seed_task(session, order_index=5)

            updated = await change_status(session, task, target_status="in_progress")

            assert updated.status == "in_progress"
            assert updated.order_index == 5

        async with AsyncSession(engine, expire_on_commit=False) as fresh:
            reloaded = await task_store.get_task(fresh, task.id)
            assert reloaded is not None
            assert reloaded.status == "in_progress"
            assert reloaded.order_index == 5
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_change_status_to_same_column_repositions_only() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            task = await _seed_task(session, status="todo", order_index=3)

            updated = await change_status(session, task, target_status="todo", order_index=0)

            assert updated.status == "todo"
            assert updated.order_index == 0
    finally:
        await engine.dispose()


@pytest.mark.asyncio
async def test_change_status_rejects_negative_index() -> None:
    engine = await _make_engine()
    try:
        async with AsyncSession(engine, expire_on_commit=False) as session:
            task = await _seed_task(session)

            with pytest.raises(HTTPException) as exc:
                await change_status(session, task, target_status="done", order_index=-1)
            assert exc.value.status_code == 422
    finally:
        await engine.dispose()
