"""
Exception taxonomy and global exception handling.
Standardizes error responses using a Problem Details style body.
"""

from typing import Any, Dict, Optional

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)


class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(AppError):
    """The batch payload cannot be normalized. Aborts the whole request."""
    def __init__(self, message: str = "Invalid input", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_400_BAD_REQUEST, details)


class AmbiguousBatchShapeError(ValidationError):
    """The payload matches more than one accepted batch shape."""


class NotFoundError(AppError):
    """A referenced id does not exist."""
    def __init__(self, message: str = "Entity not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_404_NOT_FOUND, details)


class UploadError(AppError):
    """Blob storage rejected a write."""
    def __init__(self, message: str = "Image upload failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_502_BAD_GATEWAY, details)


class ConstraintError(AppError):
    """Uniqueness or foreign-key violation surfaced by the database."""
    def __init__(self, message: str = "Constraint violation", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_409_CONFLICT, details)


class TransactionTimeoutError(AppError):
    """A visit transaction ran past its execution deadline."""
    def __init__(self, message: str = "Transaction timed out", details: Optional[Dict[str, Any]] = None):
        super().__init__(message, status.HTTP_504_GATEWAY_TIMEOUT, details)


class CompensationError(AppError):
    """Cleanup of stored media failed. Logged, never returned to callers."""


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all uncaught exceptions globally."""

    if isinstance(exc, AppError):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "success": False,
                "error": {
                    "code": exc.__class__.__name__,
                    "message": exc.message,
                    "details": exc.details,
                    "path": request.url.path,
                },
            },
        )

    logger.exception("Unexpected error occurred", path=request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": {
                "code": "InternalServerError",
                "message": "An unexpected error occurred. Please try again later.",
                "path": request.url.path,
            },
        },
    )
