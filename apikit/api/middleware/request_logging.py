"""HTTP request logging with timing.

Logs one line per request once the response is ready:

    [<request-id>] GET [200] /users?page=2 12.5ms

The status is the one actually sent, including error envelopes produced by
the exception handlers and the recoverer. Paths listed in
``LogConfig.excluded_paths`` are not logged and requests slower than
``slow_request_threshold_ms`` get an extra warning.
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from apikit.core.config import LogConfig
from apikit.core.constants import MILLISECONDS_PER_SECOND
from apikit.core.context import RequestContext


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for logging HTTP requests.

    Must run inside ``RequestContextMiddleware`` to see the request id;
    without it the id is logged as an empty string.

    Args:
        app: The ASGI application.
        log_config: Logging configuration.
    """

    def __init__(self, app: ASGIApp, *, log_config: LogConfig) -> None:
        super().__init__(app)
        self.log_config = log_config
        self.excluded_paths = set(log_config.excluded_paths)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process the request and log it.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint.

        Returns:
            Response: The response from the application.

        Raises:
            Exception: Any exception raised by the application is re-raised
                after logging.
        """
        if request.url.path in self.excluded_paths:
            return await call_next(request)

        request_id = RequestContext.get_request_id() or ""
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * MILLISECONDS_PER_SECOND
            logger.error(
                "[{}] {} [failed] {}?{} {}ms: {}",
                request_id,
                request.method,
                request.url.path,
                request.url.query,
                round(duration_ms, 2),
                type(exc).__name__,
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * MILLISECONDS_PER_SECOND
        logger.info(
            "[{}] {} [{}] {}?{} {}ms",
            request_id,
            request.method,
            response.status_code,
            request.url.path,
            request.url.query,
            round(duration_ms, 2),
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(duration_ms, 2),
        )

        if duration_ms > self.log_config.slow_request_threshold_ms:
            logger.warning(
                "Slow request detected",
                duration_ms=round(duration_ms, 2),
                threshold_ms=self.log_config.slow_request_threshold_ms,
            )

        return response
