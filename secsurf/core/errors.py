"""
core/errors.py

Uniform error envelope and exception handlers.

Non-developer summary:
----------------------
Every error the service returns has the same shape:
{ error: { code, message, requestId, details? } }.
Error responses go back through the security-headers middleware like any
other response, so they carry the same headers.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

log = logging.getLogger("secsurf.errors")

STATUS_CODES: Dict[int, str] = {
    400: "BAD_REQUEST",
    401: "UNAUTHENTICATED",
    403: "PERMISSION_DENIED",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    422: "VALIDATION_ERROR",
    500: "INTERNAL_ERROR",
}


def _get_request_id(request: Request) -> Optional[str]:
    rid = getattr(request.state, "request_id", None)
    return rid or request.headers.get("X-Request-ID")


def error_envelope(
    *,
    code: str,
    message: str,
    status: int,
    request_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> JSONResponse:
    body: Dict[str, Any] = {
        "error": {
            "code": code,
            "message": message,
            "requestId": request_id,
        }
    }
    if details:
        body["error"]["details"] = details
    return JSONResponse(status_code=status, content=body)


class AppError(Exception):
    """
    Raise for well-defined failures that should reach the client as-is:

        raise AppError("NOT_READY", "Service is starting.", status=503)
    """

    def __init__(self, code: str, message: str, *, status: int = 400, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.status = status
        self.details = details or {}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    code = STATUS_CODES.get(exc.status_code, "ERROR")
    msg = exc.detail if isinstance(exc.detail, str) else "Request failed."
    return error_envelope(
        code=code,
        message=msg,
        status=exc.status_code,
        request_id=_get_request_id(request),
    )


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return error_envelope(
        code=exc.code,
        message=exc.message,
        status=exc.status,
        request_id=_get_request_id(request),
        details=exc.details,
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_envelope(
        code="VALIDATION_ERROR",
        message="Request validation failed.",
        status=422,
        request_id=_get_request_id(request),
        details={"fields": exc.errors()},
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all. Internal details are logged, never returned."""
    log.error("unhandled error", exc_info=exc, extra={"path": request.url.path})
    return error_envelope(
        code="INTERNAL_ERROR",
        message="Unexpected error occurred.",
        status=500,
        request_id=_get_request_id(request),
    )


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
