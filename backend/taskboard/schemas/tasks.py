"""Schemas for task create/update/status/reorder API operations."""

from __future__ import annotations

from datetime import datetime
from typing import Self
from uuid import UUID

from pydantic import AliasChoices, Field, field_validator, model_validator
from sqlmodel import SQLModel

from taskboard.models.tasks import DEFAULT_TASK_STATUS, TaskStatus

_ERR_TITLE_REQUIRED = "title is required"
_NON_NULLABLE_UPDATE_FIELDS = ("title", "status", "order_index")
RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


def _clean_title(value: str) -> str:
    title = value.strip()
    if not title:
        raise ValueError(_ERR_TITLE_REQUIRED)
    return title


class TaskBase(SQLModel):
    """Shared task fields used across create and read payloads."""

    title: str
    description: str | None = None
    status: TaskStatus = DEFAULT_TASK_STATUS


class TaskCreate(TaskBase):
    """Payload for creating a task; it is appended to the end of its column."""

    project_id: UUID = Field(validation_alias=AliasChoices("project_id", "projectId"))

    @field_validator("title")
    @classmethod
    def validate_title(cls, value: str) -> str:
        """Reject empty or whitespace-only titles."""
        return _clean_title(value)


class TaskUpdate(SQLModel):
    """Payload for partial task updates."""

    title: str | None = None
    description: str | None = None
    status: TaskStatus | None = None
    order_index: int | None = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("order_index", "orderIndex"),
    )

    @model_validator(mode="after")
    def validate_required_fields(self) -> Self:
        """Keep explicit titles non-empty; `null` cannot clear a required field."""
        for name in _NON_NULLABLE_UPDATE_FIELDS:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        if self.title is not None:
            self.title = _clean_title(self.title)
        return self


class TaskStatusUpdate(SQLModel):
    """Payload for moving a task to another column."""

    status: TaskStatus
    order_index: int | None = Field(
        default=None,
        ge=0,
        validation_alias=AliasChoices("order_index", "orderIndex"),
        description="Destination position; omitted keeps the current index.",
    )


class TaskReorderItem(SQLModel):
    """One task's final position in a reorder batch."""

    id: UUID
    order_index: int = Field(ge=0, validation_alias=AliasChoices("order_index", "orderIndex"))
    status: TaskStatus


class TaskReorderRequest(SQLModel):
    """Reorder batch, typically the full contents of the affected columns."""

    tasks: list[TaskReorderItem] = Field(default_factory=list)


class TaskReorderResponse(SQLModel):
    """Result of a fully applied reorder batch."""

    ok: bool = True
    updated: int = 0


class TaskRead(TaskBase):
    """Task payload returned from read endpoints."""

    id: UUID
    project_id: UUID
    status: str
    order_index: int
    created_at: datetime
    updated_at: datetime
