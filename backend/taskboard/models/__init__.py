"""Model exports for SQLAlchemy/SQLModel metadata discovery."""

from taskboard.models.projects import Project
from taskboard.models.tasks import Task

__all__ = [
    "Project",
    "Task",
]
