"""Schemas for project create/update/read API operations."""

from __future__ import annotations

from datetime import datetime
from typing import Self
from uuid import UUID

from pydantic import field_validator, model_validator
from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)
_ERR_NAME_REQUIRED = "name is required"


def _clean_name(value: str) -> str:
    name = value.strip()
    if not name:
        raise ValueError(_ERR_NAME_REQUIRED)
    return name


class ProjectBase(SQLModel):
    """Shared project fields used across create and read payloads."""

    name: str
    description: str | None = None


class ProjectCreate(ProjectBase):
    """Payload for creating a project owned by the caller."""

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        """Reject empty or whitespace-only names."""
        return _clean_name(value)


class ProjectUpdate(SQLModel):
    """Payload for partial project updates."""

    name: str | None = None
    description: str | None = None

    @model_validator(mode="after")
    def validate_name(self) -> Self:
        """`name` may be omitted but not cleared."""
        if "name" in self.model_fields_set:
            if self.name is None:
                raise ValueError("name cannot be null")
            self.name = _clean_name(self.name)
        return self


class ProjectRead(ProjectBase):
    """Project payload returned from read endpoints."""

    id: UUID
    owner_id: str
    created_at: datetime
    updated_at: datetime
