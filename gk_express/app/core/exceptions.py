"""
Custom exceptions and error handlers for consistent error responses.

Every failure a service can raise maps to one AppException subclass, and
every AppException is rendered as ``{"error_code", "message", "details"}``
with the subclass's HTTP status.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from typing import Any, Dict, Optional

logger = logging.getLogger("gk_express.errors")


class AppException(Exception):
    """
    Base application exception.

    Subclasses fix ``error_code`` and ``status_code``; instances carry the
    message and optional structured details.
    """
    error_code = "ERR_INTERNAL_001"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppException):
    """Malformed input, a missing required field or an unknown status."""
    error_code = "ERR_VALIDATION_001"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class AuthenticationError(AppException):
    """Missing, invalid or expired credentials."""
    error_code = "ERR_AUTH_001"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication failed"


class ForbiddenError(AppException):
    """Authenticated, but the office or role may not act on the resource."""
    error_code = "ERR_PERM_001"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Insufficient permissions"


class NotFoundError(AppException):
    error_code = "ERR_NOT_FOUND_001"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, resource_id: Any = None):
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        else:
            message = f"{resource} not found"
        super().__init__(message, details={"resource": resource, "id": resource_id})


class ConflictError(AppException):
    """A unique key (e.g. a user's email) is already taken."""
    error_code = "ERR_CONFLICT_001"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Resource already exists"


class InternalError(AppException):
    """Persistence or unexpected failure. The message is not stable."""


# Global Exception Handlers

def _error_response(status_code: int, error_code: str, message: Any, details: Dict[str, Any], headers=None):
    return JSONResponse(
        status_code=status_code,
        content={"error_code": error_code, "message": message, "details": details},
        headers=headers
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render a domain error with its own status and code."""
    headers = None
    if exc.status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    if exc.status_code >= 500:
        logger.error("%s: %s", exc.error_code, exc.message, extra={"path": request.url.path})
    return _error_response(exc.status_code, exc.error_code, exc.message, exc.details, headers)


# Status codes raised by FastAPI itself (e.g. HTTPBearer without a header)
HTTP_ERROR_CODES = {
    400: "ERR_BAD_REQUEST",
    401: "ERR_UNAUTHORIZED",
    403: "ERR_FORBIDDEN",
    404: "ERR_NOT_FOUND",
    405: "ERR_METHOD_NOT_ALLOWED",
    409: "ERR_CONFLICT",
    500: "ERR_INTERNAL_SERVER"
}


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    error_code = HTTP_ERROR_CODES.get(exc.status_code, "ERR_UNKNOWN")
    return _error_response(exc.status_code, error_code, exc.detail, {}, getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Body or query that does not fit the schema. Malformed input is a 400."""
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "ERR_VALIDATION",
        "Validation error",
        {"errors": jsonable_encoder(exc.errors())}
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "error_type": type(exc).__name__,
            "correlation_id": getattr(request.state, "correlation_id", None)
        }
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "ERR_INTERNAL_SERVER",
        "An internal server error occurred",
        {}
    )
