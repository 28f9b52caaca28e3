from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from login_limiter import RateLimitedError
from persistence.errors import StorageIOError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(
        self,
        *,
        code: str,
        message: str,
        status_code: int,
        details: list[dict[str, Any]] | None = None,
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or []


def request_id(request: Request) -> str:
    rid = getattr(request.state, "request_id", None)
    if not rid:
        rid = uuid.uuid4().hex[:12]
        request.state.request_id = rid
    return rid


def ok(request: Request, data: Any) -> dict[str, Any]:
    return {"data": data, "meta": {"requestId": request_id(request)}}


def error_response(request: Request, err: ApiError, *, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=err.status_code,
        content={
            "error": {"code": err.code, "message": err.message, "details": err.details},
            "meta": {"requestId": request_id(request)},
        },
        headers=headers,
    )


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError):
        return error_response(request, exc)

    @app.exception_handler(RateLimitedError)
    async def rate_limited_handler(request: Request, exc: RateLimitedError):
        err = ApiError(
            code="RATE_LIMITED",
            message=str(exc),
            status_code=429,
            details=[{"issue": "rate_limited"}],
        )
        return error_response(request, err, headers={"Retry-After": str(int(exc.retry_after_seconds) + 1)})

    @app.exception_handler(StorageIOError)
    async def storage_error_handler(request: Request, exc: StorageIOError):
        # The in-memory change stands; only durability failed.
        logger.error("PERSISTENCE FAILED on %s: %s", request.url.path, exc)
        err = ApiError(code="PERSISTENCE_FAILED", message="Could not save changes", status_code=500)
        return error_response(request, err)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(p) for p in e.get("loc", ()) if p != "body"), "issue": e.get("msg", "")}
            for e in exc.errors()
        ]
        err = ApiError(code="VALIDATION_ERROR", message="Invalid input", status_code=400, details=details)
        return error_response(request, err)
