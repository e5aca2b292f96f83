# ruff: noqa

from __future__ import annotations

from uuid import uuid4

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field
from starlette.requests import Request

from taskboard.core import error_handling
from taskboard.core.error_handling import (
    REQUEST_ID_HEADER,
    _error_payload,
    _get_request_id,
    _http_exception_exception_handler,
    _request_validation_exception_handler,
    _response_validation_exception_handler,
    _task_store_exception_handler,
    install_error_handling,
)
from taskboard.services.ordering import ReorderBatchError, ReorderItemResult
from taskboard.services.task_store import TaskStoreError


def _assert_request_id_echoed(resp) -> dict:
    body = resp.json()
    assert isinstance(body.get("request_id"), str) and body["request_id"]
    assert resp.headers.get(REQUEST_ID_HEADER) == body["request_id"]
    return body


def test_request_validation_error_includes_request_id():
    app = FastAPI()
    install_error_handling(app)

    @app.get("/columns")
    def columns(limit: int) -> dict[str, int]:
        return {"limit": limit}

    client = TestClient(app)
    resp = client.get("/columns?limit=abc")

    assert resp.status_code == 422
    body = _assert_request_id_echoed(resp)
    assert isinstance(body.get("detail"), list)


def test_request_validation_error_handles_bytes_input_without_500():
    class Payload(BaseModel):
        title: str

    app = FastAPI()
    install_error_handling(app)

    @app.post("/tasks")
    def create(payload: Payload) -> dict[str, str]:
        return {"title": payload.title}

    client = TestClient(app, raise_server_exceptions=False)
    resp = client.post(
        "/tasks",
        content=b"plain-text-body",
        headers={"content-type": "text/plain"},
    )

    assert resp.status_code == 422
    body = _assert_request_id_echoed(resp)
    assert isinstance(body.get("detail"), list)


def test_http_exception_includes_request_id():
    app = FastAPI()
    install_error_handling(app)

    @app.get("/tasks/missing")
    def missing() -> None:
        raise HTTPException(status_code=404, detail="Task with ID x not found")

    client = TestClient(app)
    resp = client.get("/tasks/missing")

    assert resp.status_code == 404
    body = _assert_request_id_echoed(resp)
    assert body["detail"] == "Task with ID x not found"


def test_unhandled_exception_returns_500_with_request_id():
    app = FastAPI()
    install_error_handling(app)

    @app.get("/boom")
    def boom() -> None:
        raise RuntimeError("boom")

    client = TestClient(app, raise_server_exceptions=False)
    resp = client.get("/boom")

    assert resp.status_code == 500
    body = _assert_request_id_echoed(resp)
    assert body["detail"] == "Internal Server Error"


def test_response_validation_error_returns_500_with_request_id():
    class Out(BaseModel):
        title: str = Field(min_length=1)

    app = FastAPI()
    install_error_handling(app)

    @app.get("/bad", response_model=Out)
    def bad() -> dict[str, str]:
        return {"title": ""}

    client = TestClient(app, raise_server_exceptions=False)
    resp = client.get("/bad")

    assert resp.status_code == 500
    body = _assert_request_id_echoed(resp)
    assert body["detail"] == "Internal Server Error"


def test_store_error_maps_to_500_with_operation():
    app = FastAPI()
    install_error_handling(app)

    @app.get("/store")
    def store() -> None:
        raise TaskStoreError("insert", "Failed to insert task: disk full")

    client = TestClient(app, raise_server_exceptions=False)
    resp = client.get("/store")

    assert resp.status_code == 500
    body = _assert_request_id_echoed(resp)
    assert body["code"] == "store_failure"
    assert body["retryable"] is False
    assert body["detail"] == {
        "message": "Failed to insert task: disk full",
        "operation": "insert",
    }


def test_reorder_batch_error_reports_item_outcomes():
    missing_id = uuid4()
    other_id = uuid4()
    app = FastAPI()
    install_error_handling(app)

    @app.post("/reorder")
    def reorder() -> None:
        raise ReorderBatchError(
            "reorder",
            f"Task with ID {missing_id} not found",
            results=[
                ReorderItemResult(task_id=other_id, outcome="rolled_back"),
                ReorderItemResult(
                    task_id=missing_id,
                    outcome="not_found",
                    error=f"Task with ID {missing_id} not found",
                ),
            ],
            applied=False,
        )

    client = TestClient(app, raise_server_exceptions=False)
    resp = client.post("/reorder")

    assert resp.status_code == 404
    body = _assert_request_id_echoed(resp)
    assert body["code"] == "reorder_failed"
    assert body["detail"]["applied"] is False
    assert [item["outcome"] for item in body["detail"]["results"]] == [
        "rolled_back",
        "not_found",
    ]
    assert body["detail"]["results"][1]["task_id"] == str(missing_id)


def test_client_provided_request_id_is_preserved():
    app = FastAPI()
    install_error_handling(app)

    @app.get("/columns")
    def columns(limit: int) -> dict[str, int]:
        return {"limit": limit}

    client = TestClient(app)
    resp = client.get("/columns?limit=abc", headers={REQUEST_ID_HEADER: "  req-123  "})

    assert resp.status_code == 422
    assert resp.json()["request_id"] == "req-123"
    assert resp.headers.get(REQUEST_ID_HEADER) == "req-123"


def test_slow_request_emits_slow_log(monkeypatch: pytest.MonkeyPatch) -> None:
    warnings: list[tuple[str, dict[str, object]]] = []

    def _fake_warning(message: str, *args: object, **kwargs: object) -> None:
        _ = args
        extra = kwargs.get("extra")
        warnings.append((message, extra if isinstance(extra, dict) else {}))

    perf_ticks = iter((100.0, 100.2))

    monkeypatch.setattr(error_handling.settings, "request_log_slow_ms", 1)
    monkeypatch.setattr(error_handling, "perf_counter", lambda: next(perf_ticks))
    monkeypatch.setattr(error_handling.logger, "warning", _fake_warning)

    app = FastAPI()
    install_error_handling(app)

    @app.get("/slow")
    def slow() -> dict[str, str]:
        return {"ok": "1"}

    client = TestClient(app)
    resp = client.get("/slow")

    assert resp.status_code == 200
    assert any(
        message == "http.request.slow" and extra.get("slow_threshold_ms") == 1
        for message, extra in warnings
    )


def test_health_route_skips_request_logs_when_disabled(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    infos: list[str] = []
    monkeypatch.setattr(error_handling.settings, "request_log_include_health", False)
    monkeypatch.setattr(
        error_handling.logger,
        "info",
        lambda message, *args, **kwargs: infos.append(message),
    )

    app = FastAPI()
    install_error_handling(app)

    @app.get("/healthz")
    def healthz() -> dict[str, bool]:
        return {"ok": True}

    client = TestClient(app)
    resp = client.get("/healthz")

    assert resp.status_code == 200
    assert resp.json() == {"ok": True}
    assert isinstance(resp.headers.get(REQUEST_ID_HEADER), str)
    assert "http.request.complete" not in infos


def test_get_request_id_returns_none_for_missing_or_invalid_state() -> None:
    req = Request({"type": "http", "headers": [], "state": {}})
    assert _get_request_id(req) is None

    req = Request({"type": "http", "headers": [], "state": {"request_id": 123}})
    assert _get_request_id(req) is None

    req = Request({"type": "http", "headers": [], "state": {"request_id": ""}})
    assert _get_request_id(req) is None


def test_error_payload_omits_request_id_when_none() -> None:
    assert _error_payload(detail="x", request_id=None) == {"detail": "x"}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("handler", "expected"),
    [
        (_request_validation_exception_handler, "Expected RequestValidationError"),
        (_response_validation_exception_handler, "Expected ResponseValidationError"),
        (_http_exception_exception_handler, "Expected StarletteHTTPException"),
        (_task_store_exception_handler, "Expected TaskStoreError"),
    ],
)
async def test_exception_wrappers_reject_wrong_exception(handler, expected: str) -> None:
    req = Request({"type": "http", "headers": [], "state": {}})
    with pytest.raises(TypeError, match=expected):
        await handler(req, Exception("x"))


def test_json_safe_covers_bytes_bytearray_and_fallback_str() -> None:
    assert error_handling._json_safe(b"\xff") == "\ufffd"
    assert error_handling._json_safe(bytearray(b"\xff")) == "\ufffd"
    assert error_handling._json_safe(memoryview(b"\xff")) == "\ufffd"

    task_id = uuid4()
    assert error_handling._json_safe({"task_id": task_id}) == {"task_id": str(task_id)}
