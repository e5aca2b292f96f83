"""Shared SQLModel base exposing the `objects` query manager."""

from __future__ import annotations

from typing import Any, ClassVar

from sqlmodel import SQLModel

from taskboard.db.query_manager import ManagerDescriptor, ModelManager


class QueryModel(SQLModel, table=False):
    """Base class for table models queried through `Model.objects`."""

    objects: ClassVar[ModelManager[Any]] = ManagerDescriptor()  # type: ignore[assignment]
