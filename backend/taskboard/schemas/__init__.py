"""Public schema exports shared across API route modules."""

from taskboard.schemas.common import OkResponse
from taskboard.schemas.errors import ErrorResponse, ReorderErrorResponse, ReorderFailureDetail
from taskboard.schemas.health import HealthStatusResponse
from taskboard.schemas.projects import ProjectCreate, ProjectRead, ProjectUpdate
from taskboard.schemas.tasks import (
    TaskCreate,
    TaskRead,
    TaskReorderItem,
    TaskReorderRequest,
    TaskReorderResponse,
    TaskStatusUpdate,
    TaskUpdate,
)

__all__ = [
    "ErrorResponse",
    "HealthStatusResponse",
    "OkResponse",
    "ProjectCreate",
    "ProjectRead",
    "ProjectUpdate",
    "ReorderErrorResponse",
    "ReorderFailureDetail",
    "TaskCreate",
    "TaskRead",
    "TaskReorderItem",
    "TaskReorderRequest",
    "TaskReorderResponse",
    "TaskStatusUpdate",
    "TaskUpdate",
]
