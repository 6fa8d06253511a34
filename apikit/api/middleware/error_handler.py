"""Exception handlers routing failures into the error response pipeline.

Handlers raise ``AppError`` to fail a request. FastAPI's own errors
(unknown routes, disallowed methods, request validation) are converted into
an ``AppError`` first, so every failure leaves the service in the same
envelope and goes through the same logging.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import Response
from loguru import logger
from starlette.exceptions import HTTPException

from apikit.api.utils.decoder import format_validation_errors
from apikit.api.utils.responses import fail
from apikit.core.exceptions import AppError


async def app_error_handler(request: Request, exc: Exception) -> Response:
    """Handle AppError exceptions raised by endpoints.

    Args:
        request: The request that failed
        exc: The AppError to report

    Returns:
        Response: The error envelope produced by ``fail``

    Raises:
        TypeError: If exc is not an AppError instance
    """
    # Type narrowing - this handler is only registered for AppError
    if not isinstance(exc, AppError):
        raise TypeError(f"Expected AppError, got {type(exc).__name__}")

    _ = request
    return fail(exc)


async def validation_error_handler(request: Request, exc: Exception) -> Response:
    """Handle FastAPI RequestValidationError exceptions.

    Field errors are joined into the message of a 422 AppError.

    Args:
        request: The request that failed validation
        exc: The RequestValidationError to report

    Returns:
        Response: 422 error envelope

    Raises:
        TypeError: If exc is not a RequestValidationError instance
    """
    if not isinstance(exc, RequestValidationError):
        raise TypeError(f"Expected RequestValidationError, got {type(exc).__name__}")

    error = AppError(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        format_validation_errors(exc.errors()),
    ).add_debugf("request validation failed for {} {}", request.method, request.url.path)
    return fail(error)


async def http_exception_handler(request: Request, exc: Exception) -> Response:
    """Handle Starlette HTTPException.

    The exception's status and detail become the AppError status and
    message; its headers (e.g. ``Allow`` on 405) are kept.

    Args:
        request: The request that failed
        exc: The HTTPException to report

    Returns:
        Response: Error envelope with the exception's status

    Raises:
        TypeError: If exc is not an HTTPException instance
    """
    if not isinstance(exc, HTTPException):
        raise TypeError(f"Expected HTTPException, got {type(exc).__name__}")

    error = AppError(exc.status_code, str(exc.detail)).add_debugf(
        "{} {} raised HTTP {}", request.method, request.url.path, exc.status_code
    )
    return fail(error, headers=exc.headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI application.

    Unhandled exceptions are left to ``RecovererMiddleware``.

    Args:
        app: The FastAPI application instance
    """
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)

    logger.info("Exception handlers registered")
