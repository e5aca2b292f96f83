"""Request-id middleware, request logging, and JSON exception handlers."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from time import perf_counter
from typing import Any
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from taskboard.core.config import settings
from taskboard.core.logging import get_logger
from taskboard.services.ordering import ReorderBatchError
from taskboard.services.task_store import TaskStoreError

REQUEST_ID_HEADER = "X-Request-Id"
HEALTH_PATHS = frozenset({"/health", "/healthz", "/readyz"})
logger = get_logger(__name__)


def _get_request_id(request: Request) -> str | None:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    return None


def _error_payload(*, detail: Any, request_id: str | None) -> dict[str, Any]:
    payload: dict[str, Any] = {"detail": detail}
    if request_id is not None:
        payload["request_id"] = request_id
    return payload


def _json_safe(value: Any) -> Any:
    if isinstance(value, bytes | bytearray | memoryview):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, dict):
        return {str(key): _json_safe(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_json_safe(item) for item in value]
    if value is None or isinstance(value, str | int | float | bool):
        return value
    return str(value)


def _json_response(
    request: Request,
    *,
    status_code: int,
    detail: Any,
    headers: dict[str, str] | None = None,
    **extra: Any,
) -> JSONResponse:
    request_id = _get_request_id(request)
    payload = _error_payload(detail=detail, request_id=request_id)
    payload.update({key: value for key, value in extra.items() if value is not None})
    response_headers = dict(headers or {})
    if request_id is not None:
        response_headers[REQUEST_ID_HEADER] = request_id
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(payload),
        headers=response_headers,
    )


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Attach a request id to each request and log completion timing."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        incoming = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
        request_id = incoming or uuid4().hex
        request.state.request_id = request_id

        started = perf_counter()
        response = await call_next(request)
        elapsed_ms = (perf_counter() - started) * 1000.0
        response.headers[REQUEST_ID_HEADER] = request_id

        if request.url.path in HEALTH_PATHS and not settings.request_log_include_health:
            return response
        log_extra = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(elapsed_ms, 2),
        }
        threshold = settings.request_log_slow_ms
        if threshold and elapsed_ms >= threshold:
            logger.warning(
                "http.request.slow",
                extra={**log_extra, "slow_threshold_ms": threshold},
            )
        else:
            logger.info("http.request.complete", extra=log_extra)
        return response


async def _request_validation_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    return _json_response(
        request,
        status_code=422,
        detail=_json_safe(exc.errors()),
    )


async def _response_validation_handler(
    request: Request,
    exc: ResponseValidationError,
) -> JSONResponse:
    logger.error(
        "http.response.validation_failed",
        extra={"request_id": _get_request_id(request), "errors": _json_safe(exc.errors())},
    )
    return _json_response(request, status_code=500, detail="Internal Server Error")


async def _http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    return _json_response(
        request,
        status_code=exc.status_code,
        detail=_json_safe(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def _task_store_error_handler(request: Request, exc: TaskStoreError) -> JSONResponse:
    detail: dict[str, object] = {"message": str(exc), "operation": exc.operation}
    code = "store_failure"
    if isinstance(exc, ReorderBatchError):
        code = "reorder_failed"
        detail["applied"] = exc.applied
        detail["results"] = [result.as_dict() for result in exc.results]
    return _json_response(
        request,
        status_code=exc.status_code,
        detail=detail,
        code=code,
        retryable=False,
    )


async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "http.request.unhandled_exception",
        extra={"request_id": _get_request_id(request), "path": request.url.path},
        exc_info=exc,
    )
    return _json_response(request, status_code=500, detail="Internal Server Error")


async def _request_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, RequestValidationError):
        msg = "Expected RequestValidationError"
        raise TypeError(msg)
    return await _request_validation_handler(request, exc)


async def _response_validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, ResponseValidationError):
        msg = "Expected ResponseValidationError"
        raise TypeError(msg)
    return await _response_validation_handler(request, exc)


async def _http_exception_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    if not isinstance(exc, StarletteHTTPException):
        msg = "Expected StarletteHTTPException"
        raise TypeError(msg)
    return await _http_exception_handler(request, exc)


async def _task_store_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, TaskStoreError):
        msg = "Expected TaskStoreError"
        raise TypeError(msg)
    return await _task_store_error_handler(request, exc)


def install_error_handling(app: FastAPI) -> None:
    """Register request-id middleware and JSON exception handlers on an app."""
    app.add_middleware(RequestIdMiddleware)
    app.add_exception_handler(RequestValidationError, _request_validation_exception_handler)
    app.add_exception_handler(ResponseValidationError, _response_validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_exception_handler)
    app.add_exception_handler(TaskStoreError, _task_store_exception_handler)
    app.add_exception_handler(Exception, _unhandled_exception_handler)
