"""Map ConsoleError subclasses to HTTP responses.

Routers let ConsoleError propagate; the handlers registered here turn it
into a JSON body:

  ValidationError           422  {"detail": ..., "errors": [{field, message}]}
  NotFoundError             404  {"detail": ...}
  DuplicateEmailError       409
  DuplicateEnrollmentError  409
  StoreUnavailableError     503

Request-shape failures caught by FastAPI (wrong JSON types, bad query
parameters) are reshaped into the same 422 body.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from edu_console.services.errors import (
    ConsoleError,
    DuplicateEmailError,
    DuplicateEnrollmentError,
    NotFoundError,
    StoreUnavailableError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def _status_code(exc: ConsoleError) -> int:
    if isinstance(exc, ValidationError):
        return status.HTTP_422_UNPROCESSABLE_CONTENT
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, (DuplicateEmailError, DuplicateEnrollmentError)):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, StoreUnavailableError):
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ConsoleError)
    async def console_error_handler(request: Request, exc: ConsoleError) -> JSONResponse:
        status_code = _status_code(exc)
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc)
        else:
            logger.info("%s %s -> %d: %s", request.method, request.url.path, status_code, exc)

        body: dict = {"detail": str(exc)}
        if isinstance(exc, ValidationError):
            body["errors"] = [{"field": e.field, "message": e.message} for e in exc.errors]
        return JSONResponse(status_code=status_code, content=body)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            {
                "field": ".".join(str(p) for p in err["loc"][1:]) or str(err["loc"][0]),
                "message": err["msg"],
            }
            for err in exc.errors()
        ]
        logger.info("%s %s -> 422: %d invalid field(s)", request.method, request.url.path, len(errors))
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
            content={"detail": "request validation failed", "errors": errors},
        )
