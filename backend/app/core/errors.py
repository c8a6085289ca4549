# backend/app/core/errors.py
"""
Service-layer exceptions mapped to HTTP responses.

Every error has a public `message`, an HTTP `status_code` and a stable
`error_code`. Errors with `disclose = False` never expose anything beyond
their public message: the optional `reason` is written to the server log
only. Authentication failures use this so that the client cannot tell a
bad username from a bad password, or a bad TOTP code from a bad recovery
code.
"""
from typing import Optional


class ServiceError(Exception):
    """Base class for errors raised by services and request dependencies."""

    status_code: int = 400
    error_code: str = "validation_error"
    disclose: bool = True

    def __init__(
        self,
        message: str,
        *,
        reason: Optional[str] = None,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason
        if status_code is not None:
            self.status_code = status_code
        if error_code is not None:
            self.error_code = error_code


class ValidationError(ServiceError):
    """Request is malformed or incomplete (400)."""
    status_code = 400
    error_code = "validation_error"


class AuthenticationError(ServiceError):
    """Missing or bad credentials (401). Never discloses which factor failed."""
    status_code = 401
    error_code = "unauthorized"
    disclose = False


class ForbiddenError(ServiceError):
    """Authenticated but lacking a role or entitlement (403)."""
    status_code = 403
    error_code = "forbidden"


class NotFoundError(ServiceError):
    """Requested resource not found (404)."""
    status_code = 404
    error_code = "not_found"


class ConflictError(ServiceError):
    """Duplicate username/email and similar uniqueness clashes (400)."""
    status_code = 400
    error_code = "conflict"


class ResourceStateError(ServiceError):
    """Resource exists but is in the wrong state, e.g. a used code (400)."""
    status_code = 400
    error_code = "invalid_state"


__all__ = [
    "ServiceError",
    "ValidationError",
    "AuthenticationError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "ResourceStateError",
]
