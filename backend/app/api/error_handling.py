# backend/app/api/error_handling.py
import logging
from typing import List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.app.core.errors import ServiceError
from backend.app.storage.errors import ConstraintViolation

logger = logging.getLogger(__name__)

_VALUE_ERROR_PREFIX = "Value error, "


def _error_response(
    status_code: int,
    message: str,
    code: str,
    errors: Optional[List[dict]] = None,
) -> JSONResponse:
    content = {"detail": message, "code": code}
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content)


def _field_errors(exc: RequestValidationError) -> List[dict]:
    errors = []
    for error in exc.errors():
        # loc starts with "body"/"query"/...; the rest names the field
        location = [str(part) for part in error.get("loc", ())[1:]]
        message = str(error.get("msg", "Invalid value"))
        if message.startswith(_VALUE_ERROR_PREFIX):
            message = message[len(_VALUE_ERROR_PREFIX):]
        errors.append({"field": ".".join(location) or None, "message": message})
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain, storage and request-validation errors to JSON responses."""

    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError):
        log_fn = logger.error if exc.status_code >= 500 else logger.info
        if exc.disclose:
            log_fn("%s %s -> %s %s", request.method, request.url.path, exc.status_code, exc.message)
        else:
            # Only the uniform message goes back; the reason stays here
            log_fn(
                "%s %s -> %s %s (%s)",
                request.method,
                request.url.path,
                exc.status_code,
                exc.message,
                exc.reason or "no reason given",
            )
        return _error_response(exc.status_code, exc.message, exc.error_code)

    @app.exception_handler(ConstraintViolation)
    async def handle_constraint_violation(request: Request, exc: ConstraintViolation):
        logger.warning(
            "Constraint violation on %s %s: %s", request.method, request.url.path, exc.message
        )
        return _error_response(400, exc.message, "conflict")

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = _field_errors(exc)
        message = errors[0]["message"] if errors else "Invalid request"
        return _error_response(400, message, "validation_error", errors)

    @app.exception_handler(Exception)
    async def handle_uncaught(request: Request, exc: Exception):
        logger.error(
            "Unhandled exception on %s %s: %s",
            request.method,
            request.url.path,
            exc,
            exc_info=True,
        )
        return _error_response(500, "Internal server error", "server_error")
