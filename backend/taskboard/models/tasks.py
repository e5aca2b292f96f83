"""Task model representing board work items and their column position."""

from __future__ import annotations

from datetime import datetime
from typing import Literal, get_args
from uuid import UUID, uuid4

from sqlalchemy import Index
from sqlmodel import Field

from taskboard.core.time import utcnow
from taskboard.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)

TaskStatus = Literal["todo", "in_progress", "done"]
TASK_STATUSES: frozenset[str] = frozenset(get_args(TaskStatus))
DEFAULT_TASK_STATUS: TaskStatus = "todo"


class Task(QueryModel, table=True):
    """Project-scoped task with a status column and position within it."""

    __tablename__ = "tasks"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        Index("ix_tasks_project_status_order", "project_id", "status", "order_index"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(foreign_key="projects.id", index=True)

    title: str
    description: str | None = None
    status: str = Field(default=DEFAULT_TASK_STATUS, index=True)
    order_index: int = Field(default=0, ge=0)

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
