"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes, the parcel error kinds raised by
ParcelStore, and global exception handlers.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict

logger = logging.getLogger("tracker")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ParcelError(AppException):
    """
    Base of the parcel error kinds.

    Carries the store operation that failed and the key it was called
    with (a parcel number, or a client id for get_by_client).
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int,
        operation: str,
        key: Any = None,
        details: Dict[str, Any] = None,
    ):
        self.operation = operation
        self.key = key
        super().__init__(
            message=message,
            error_code=error_code,
            status_code=status_code,
            details={"operation": operation, "key": key, **(details or {})},
        )


class ParcelNotFoundError(ParcelError):
    """Raised when no parcel matches the requested number."""

    def __init__(self, number: int, operation: str):
        super().__init__(
            message=f"parcel with number {number} does not exist",
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            operation=operation,
            key=number,
        )


class StatusGateViolationError(ParcelError):
    """Raised when an address change or delete targets a parcel that is not registered."""

    def __init__(self, number: int, operation: str, current_status: str):
        self.current_status = current_status
        super().__init__(
            message=f"parcel with number {number} is not registered (status '{current_status}')",
            error_code="ERR_PARCEL_STATUS_001",
            status_code=status.HTTP_409_CONFLICT,
            operation=operation,
            key=number,
            details={"status": current_status},
        )


class StatusConflictError(ParcelError):
    """Raised when a parcel's status changed between reading it and advancing it."""

    def __init__(self, number: int, operation: str, expected_status: str, current_status: str):
        self.current_status = current_status
        super().__init__(
            message=(
                f"parcel with number {number} changed status from '{expected_status}' "
                f"to '{current_status}' concurrently"
            ),
            error_code="ERR_PARCEL_STATUS_002",
            status_code=status.HTTP_409_CONFLICT,
            operation=operation,
            key=number,
            details={"expected_status": expected_status, "status": current_status},
        )


class StorageFailureError(ParcelError):
    """Raised when the database fails to execute or decode a parcel query."""

    def __init__(self, operation: str, key: Any = None, reason: str = ""):
        message = f"parcel {operation} failed"
        if key is not None:
            message = f"{message} for key {key}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(
            message=message,
            error_code="ERR_STORAGE_001",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            operation=operation,
            key=key,
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        404: "ERR_NOT_FOUND",
        405: "ERR_METHOD_NOT_ALLOWED",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": exc.errors()
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception: %s", type(exc).__name__)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
