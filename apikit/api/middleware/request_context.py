"""Request id middleware.

Each request gets an identifier, taken from the request id header when the
client (or an upstream proxy) sent one, otherwise generated here. The id is
stored in ``RequestContext``, bound to every Loguru line written while the
request is handled, and echoed back on the response.
"""

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from apikit.api.constants import REQUEST_ID_HEADER
from apikit.core.context import RequestContext, generate_request_id


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Middleware to extract or generate the request id.

    Args:
        app: The ASGI application.
        header_name: Header carrying the request id.
    """

    def __init__(self, app: ASGIApp, *, header_name: str = REQUEST_ID_HEADER) -> None:
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        """Process the request with the request id in context.

        Args:
            request: The incoming request.
            call_next: The next middleware/endpoint.

        Returns:
            Response: Response with the request id header.
        """
        request_id = (
            request.headers.get(self.header_name)
            or RequestContext.get_request_id()
            or generate_request_id()
        )

        token = RequestContext.set_request_id(request_id)
        try:
            with logger.contextualize(request_id=request_id):
                response = await call_next(request)
                response.headers[self.header_name] = request_id
                return response
        finally:
            # The id must not outlive the request in the caller's context
            RequestContext.reset_request_id(token)
