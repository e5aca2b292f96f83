"""Structured error payload schemas used by API responses."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel


class ErrorResponse(SQLModel):
    """Error envelope returned by every failing request."""

    detail: str | dict[str, object] | list[object] = Field(
        description="Error payload; a message string or a structured object.",
        examples=["Not Found", {"message": "Failed to fetch tasks", "operation": "scan_tasks"}],
    )
    request_id: str | None = Field(
        default=None,
        description="Request correlation identifier injected by middleware.",
    )
    code: str | None = Field(
        default=None,
        description="Optional machine-readable error code.",
        examples=["store_failure", "reorder_failed"],
    )
    retryable: bool | None = Field(
        default=None,
        description="Whether a client should retry the call unchanged.",
    )


class ReorderItemOutcome(SQLModel):
    """Per-task result reported when a reorder batch fails."""

    task_id: str
    outcome: str = Field(examples=["updated", "not_found", "failed", "rolled_back", "skipped"])
    error: str | None = None


class ReorderFailureDetail(SQLModel):
    """`detail` body of a failed reorder batch."""

    message: str
    operation: str
    applied: bool = Field(
        description="True when some items of the batch were written and kept.",
    )
    results: list[ReorderItemOutcome] = Field(default_factory=list)


class ReorderErrorResponse(ErrorResponse):
    """Error envelope of a reorder batch that did not fully apply."""

    detail: ReorderFailureDetail
