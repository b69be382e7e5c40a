"""
Custom exceptions and error handlers for the part template locator.
Provides consistent error handling across the algorithms and all endpoints.
"""

import asyncio
import logging
import traceback
from functools import wraps
from typing import Dict, Optional

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError

logger = logging.getLogger(__name__)


# Custom exception classes
class MVException(Exception):
    """Base exception for the template locator."""

    def __init__(self, message: str, status_code: int = 500, details: Optional[Dict] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class InvalidInputException(MVException):
    """Exception raised when images or search parameters are degenerate."""

    def __init__(self, reason: str, details: Optional[Dict] = None):
        super().__init__(
            message=f"Invalid input: {reason}",
            status_code=400,
            details={"reason": reason, **(details or {})},
        )


class ProcessingException(MVException):
    """Exception raised when image processing fails."""

    def __init__(self, operation: str, reason: str):
        super().__init__(
            message=f"Processing failed for {operation}: {reason}",
            status_code=500,
            details={"operation": operation, "reason": reason},
        )


class OperationTimeoutException(MVException):
    """Exception raised when an operation exceeds its time budget."""

    def __init__(self, operation: str, timeout_seconds: float):
        super().__init__(
            message=f"Operation {operation} timed out after {timeout_seconds:g} seconds",
            status_code=504,
            details={"operation": operation, "timeout_seconds": timeout_seconds},
        )


# Exception handlers for FastAPI
async def mv_exception_handler(request: Request, exc: MVException) -> JSONResponse:
    """
    Handler for custom locator exceptions.

    Args:
        request: FastAPI request
        exc: MVException instance

    Returns:
        JSON response with error details
    """
    logger.error(f"MVException: {exc.message}", extra={"details": exc.details})

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message, "details": exc.details, "type": exc.__class__.__name__},
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handler for request validation errors.

    Args:
        request: FastAPI request
        exc: Validation exception

    Returns:
        JSON response with validation error details
    """
    errors = []
    for error in exc.errors():
        errors.append(
            {
                "field": ".".join(str(loc) for loc in error["loc"][1:]),
                "message": error["msg"],
                "type": error["type"],
            }
        )

    logger.warning(f"Validation error: {errors}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "Validation failed", "details": errors, "type": "ValidationError"},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler for unexpected exceptions.

    Args:
        request: FastAPI request
        exc: Any exception

    Returns:
        JSON response with generic error message
    """
    logger.error(f"Unexpected error: {exc}", exc_info=True)

    debug_mode = getattr(request.app.state, "debug", False)

    if debug_mode:
        # Never enable debug mode in production: it exposes stack traces
        logger.warning("Debug mode is enabled - exposing stack traces")
        return JSONResponse(
            status_code=500,
            content={
                "error": "Internal server error",
                "details": {
                    "exception": str(exc),
                    "type": exc.__class__.__name__,
                    "traceback": traceback.format_exc(),
                },
                "type": "InternalError",
            },
        )

    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": {}, "type": "InternalError"},
    )


# Maps exception types to (status_code, error_message, log_level, detail_builder)
EXCEPTION_MAPPING = {
    ValidationError: (400, "Validation failed", "warning", lambda e: {"details": e.errors()}),
    ValueError: (400, "Invalid value", "error", lambda e: {"details": str(e)}),
}


def safe_endpoint(func):
    """
    Decorator to wrap endpoint functions with error handling.

    Custom exceptions are re-raised for the registered handlers; common
    builtin exceptions are mapped through EXCEPTION_MAPPING.
    """

    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            if asyncio.iscoroutinefunction(func):
                return await func(*args, **kwargs)
            else:
                return func(*args, **kwargs)

        except (MVException, HTTPException):
            raise

        except Exception as e:
            exception_type = type(e)

            if exception_type in EXCEPTION_MAPPING:
                status_code, error_msg, log_level, detail_builder = EXCEPTION_MAPPING[
                    exception_type
                ]

                log_message = f"{exception_type.__name__} in {func.__name__}: {e}"
                if log_level == "warning":
                    logger.warning(log_message)
                else:
                    logger.error(log_message)

                detail = {"error": error_msg}
                detail.update(detail_builder(e))

                raise HTTPException(status_code=status_code, detail=detail)

            logger.error(f"Unexpected error in {func.__name__}: {e}", exc_info=True)
            raise HTTPException(
                status_code=500, detail={"error": "Internal server error", "details": str(e)}
            )

    return wrapper


def register_exception_handlers(app):
    """
    Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(MVException, mv_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Exception handlers registered")
