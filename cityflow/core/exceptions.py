"""Application exceptions and their HTTP rendering.

Every error raised by services is an ``AppError``. Because it subclasses
``HTTPException`` FastAPI already knows its status code; the handlers
registered by ``register_exception_handlers`` only shape the JSON body
and decide how loudly to log.
"""

import logging
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from cityflow.core.config import settings

logger = logging.getLogger(__name__)


class AppError(HTTPException):
    """Base exception for all application errors.

    Operational errors are expected conditions (bad input, missing
    resources). Non-operational errors point at infrastructure problems.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        is_operational: bool = True,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(status_code=status_code, detail=message, headers=headers)
        self.message = message
        self.is_operational = is_operational

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Render the error as a response body."""
        return {"error": self.message}


class ValidationError(AppError):
    """Raised when input data fails validation."""

    def __init__(self, message: str = "Validation failed", details: Any = None) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        if self.details is not None:
            body["details"] = self.details
        return body


class PlanGenerationRejectedError(AppError):
    """Raised when the AI refuses to plan an unrealistic trip.

    This is recoverable: the user can fix the plan and try again.
    """

    def __init__(self, message: str, error_type: str) -> None:
        super().__init__(message, status.HTTP_400_BAD_REQUEST)
        self.error_type = error_type

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        body["error_type"] = self.error_type
        return body


class UnauthorizedError(AppError):
    """Raised when the request carries no valid credentials."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(
            message,
            status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(AppError):
    """Raised when the user may not perform the action."""

    def __init__(self, message: str = "Forbidden") -> None:
        super().__init__(message, status.HTTP_403_FORBIDDEN)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message: str = "Resource not found") -> None:
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class ConflictError(AppError):
    """Raised when the resource state does not allow the action."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status.HTTP_409_CONFLICT)


class DatabaseError(AppError):
    """Raised when a database operation fails."""

    def __init__(
        self,
        message: str = "Database operation failed",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR, is_operational=False)
        self.original_error = original_error


class ExternalServiceError(AppError):
    """Raised when a third-party service (OpenRouter) fails."""

    def __init__(
        self,
        message: str = "External service error",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, status.HTTP_502_BAD_GATEWAY, is_operational=False)
        self.original_error = original_error


# ==================== Handlers ====================


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render an AppError and log it according to its severity."""
    if exc.is_operational:
        logger.warning(
            f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}"
        )
    else:
        original = getattr(exc, "original_error", None)
        logger.error(
            f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}"
            + (f" ({original})" if original else "")
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render FastAPI request validation failures like ValidationError."""
    details = [
        {
            "field": ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0]),
            "message": error["msg"],
        }
        for error in exc.errors()
    ]
    logger.warning(f"{request.method} {request.url.path} -> 400: validation failed")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Validation failed", "details": details},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler for unexpected exceptions."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    content: dict[str, Any] = {"error": "Internal Server Error"}
    if settings.DEBUG:
        content["details"] = str(exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the application's exception handlers."""
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
