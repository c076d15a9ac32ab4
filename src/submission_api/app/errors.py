"""Exception handlers that render every failure as a ``{success: false}`` envelope.

Underlying error detail (storage messages, exception text) is only included
when ``DEBUG`` is on.
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from submission_api.app.config import get_settings
from submission_api.domain.errors import PersistenceError, SubmissionError, ValidationError

logger = logging.getLogger(__name__)


def error_response(
    status_code: int,
    message: str,
    errors: Optional[list[str]] = None,
    detail: Optional[str] = None,
    **extra,
) -> JSONResponse:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    if detail and get_settings().debug:
        body["error"] = detail
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body)


async def submission_error_handler(request: Request, exc: SubmissionError) -> JSONResponse:
    if isinstance(exc, ValidationError):
        return error_response(exc.status_code, exc.message, errors=exc.errors)
    if isinstance(exc, PersistenceError):
        return error_response(exc.status_code, exc.message, detail=exc.detail)
    return error_response(exc.status_code, exc.message)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON or missing body: same 400 envelope as domain validation."""
    errors = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"])
        errors.append(f"{location}: {error['msg']}")
    return error_response(400, "Validation failed", errors=errors)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        logger.info("404 - Route not found: %s %s", request.method, request.url.path)
        return error_response(
            404,
            "Endpoint not found",
            requestedUrl=request.url.path,
            method=request.method,
        )
    return error_response(exc.status_code, str(exc.detail))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, "Internal server error", detail=str(exc))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(SubmissionError, submission_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
