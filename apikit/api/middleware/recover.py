"""Panic recovery middleware.

Any exception a handler lets escape is logged with its full traceback and
answered with a generic 500 envelope, so internal details never reach the
client.
"""

import traceback

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from apikit.api.utils.responses import fail
from apikit.core.exceptions import AppError


class RecovererMiddleware(BaseHTTPMiddleware):
    """Recover from unhandled exceptions and respond with HTTP 500."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Run the handler, converting unhandled exceptions into a 500.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint.

        Returns:
            Response: The handler's response, or a generic 500 envelope.
        """
        try:
            return await call_next(request)
        except Exception as exc:  # noqa: BLE001 - last line of defense
            stack = "".join(traceback.format_exception(exc))
            logger.error(
                "[panic-recover] {} {}\n{}",
                repr(exc),
                str(request.url),
                stack,
                exception_type=type(exc).__name__,
            )
            return fail(AppError.internal_server_std())
