# ruff: noqa: INP001
"""Schema validation tests for task create/update/reorder payloads."""

from uuid import uuid4

import pytest
from pydantic import ValidationError

from taskboard.schemas.tasks import (
    TaskCreate,
    TaskReorderRequest,
    TaskStatusUpdate,
    TaskUpdate,
)


def test_task_create_defaults_status_and_strips_title() -> None:
    payload = TaskCreate(project_id=uuid4(), title="  Write tests  ")

    assert payload.title == "Write tests"
    assert payload.status == "todo"
    assert payload.description is None


def test_task_create_accepts_camel_case_project_id() -> None:
    project_id = uuid4()

    payload = TaskCreate.model_validate({"projectId": str(project_id), "title": "x"})

    assert payload.project_id == project_id


def test_task_create_rejects_blank_title() -> None:
    with pytest.raises(ValidationError, match="title is required"):
        TaskCreate(project_id=uuid4(), title="   ")


def test_task_create_rejects_unknown_status() -> None:
    with pytest.raises(ValidationError):
        TaskCreate.model_validate({"project_id": str(uuid4()), "title": "x", "status": "blocked"})


def test_task_update_tracks_only_sent_fields() -> None:
    payload = TaskUpdate.model_validate({"description": None, "orderIndex": 3})

    assert payload.model_dump(exclude_unset=True) == {"description": None, "order_index": 3}


@pytest.mark.parametrize("field", ["title", "status", "order_index"])
def test_task_update_rejects_null_for_required_fields(field: str) -> None:
    with pytest.raises(ValidationError, match=f"{field} cannot be null"):
        TaskUpdate.model_validate({field: None})


def test_task_update_rejects_blank_title() -> None:
    with pytest.raises(ValidationError, match="title is required"):
        TaskUpdate.model_validate({"title": "  "})


def test_task_status_update_order_index_is_optional() -> None:
    assert TaskStatusUpdate.model_validate({"status": "done"}).order_index is None
    assert TaskStatusUpdate.model_validate({"status": "done", "orderIndex": 0}).order_index == 0


def test_task_status_update_rejects_negative_index() -> None:
    with pytest.raises(ValidationError):
        TaskStatusUpdate.model_validate({"status": "done", "order_index": -1})


def test_task_reorder_request_parses_items() -> None:
    task_id = uuid4()

    payload = TaskReorderRequest.model_validate(
        {"tasks": [{"id": str(task_id), "orderIndex": 2, "status": "in_progress"}]},
    )

    assert payload.tasks[0].id == task_id
    assert payload.tasks[0].order_index == 2
    assert payload.tasks[0].status == "in_progress"


def test_task_reorder_request_defaults_to_empty_batch() -> None:
    assert TaskReorderRequest.model_validate({}).tasks == []
