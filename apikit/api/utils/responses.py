"""JSON and CSV response builders.

Every endpoint answers through these helpers so success and error bodies
share one encoder (orjson) and one set of rules:

- ``ok``/``created``/``no_content`` wrap a success payload
- ``fail`` is the single way an ``AppError`` reaches the client: it logs the
  error, applies the cancellation override, then renders the envelope with
  the error's own status on the status line
- ``csv`` writes a text/csv body verbatim

None of the builders raise. An encoding failure is logged and converted into
a 500 error envelope, because the response pipeline is the last place a
failure could be reported.
"""

from collections.abc import Mapping
from http import HTTPStatus
from typing import Any, Self

import orjson
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel
from starlette.responses import Response

from apikit.api.constants import CSV_CONTENT_TYPE, JSON_CONTENT_TYPE
from apikit.core.exceptions import AppError


class ORJSONResponse(JSONResponse):
    """FastAPI response class serializing with orjson.

    Renders ``AppError`` instances as their error envelope and pydantic
    models through ``model_dump``.

    Attributes:
        media_type: The media type for the response.
    """

    media_type = JSON_CONTENT_TYPE

    def render(self, content: Any) -> bytes:  # noqa: ANN401 - accepts any JSON-serializable content
        """Render the content as JSON using orjson.

        Args:
            content: The content to serialize to JSON.

        Returns:
            bytes: The JSON-encoded bytes.
        """
        if isinstance(content, AppError):
            content = content.to_dict()
        elif isinstance(content, BaseModel):
            content = content.model_dump(mode="json")

        # Use consistent sorting for predictable output
        return orjson.dumps(content, option=orjson.OPT_SORT_KEYS)


class APIResponse:
    """Status code, payload and extra headers of one response.

    A response is configured, then rendered once into a Starlette response.
    Extra headers are applied together with ``Content-Type`` and may
    override it.

    Args:
        status_code: HTTP status code.
        data: JSON-serializable payload; ignored for 204 responses.
        headers: Extra response headers.
    """

    def __init__(
        self,
        status_code: int,
        data: Any = None,  # noqa: ANN401 - accepts any JSON-serializable content
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.status_code = int(status_code)
        self.data = data
        self.headers: dict[str, str] = dict(headers or {})

    def add_headers(self, headers: Mapping[str, str]) -> Self:
        """Merge extra headers into the response."""
        self.headers.update(headers)
        return self

    def render(self) -> Response:
        """Build the Starlette response.

        Returns:
            Response: The rendered response.

        Raises:
            TypeError: If the payload cannot be encoded as JSON.
            ValueError: If the payload cannot be encoded as JSON.
        """
        if self.status_code == HTTPStatus.NO_CONTENT:
            return Response(
                status_code=self.status_code,
                headers=self.headers,
                media_type=JSON_CONTENT_TYPE,
            )

        return ORJSONResponse(
            content=self.data,
            status_code=self.status_code,
            headers=self.headers,
        )


def _render_write_error(exc: Exception) -> Response:
    """Log an encoding failure and answer with a 500 error envelope."""
    logger.error("respond.send.error: {}", exc)

    error = AppError.internal_server(str(exc)).add_debug(exc)
    error.log()
    return APIResponse(error.status, error).render()


def send_response(
    status_code: int,
    data: Any,  # noqa: ANN401 - accepts any JSON-serializable content
    headers: Mapping[str, str] | None = None,
) -> Response:
    """Render a JSON response, converting encoding failures into a 500.

    Args:
        status_code: HTTP status code.
        data: JSON-serializable payload.
        headers: Extra response headers.

    Returns:
        Response: The rendered response, or a 500 error envelope if the
            payload could not be encoded.
    """
    try:
        return APIResponse(status_code, data, headers).render()
    except (TypeError, ValueError) as exc:
        return _render_write_error(exc)


# 2xx JSON Response------------------------------------------------------------


def ok(
    data: Any,  # noqa: ANN401 - accepts any JSON-serializable content
    headers: Mapping[str, str] | None = None,
) -> Response:
    """Respond with 200. Use for GET and PUT."""
    return send_response(HTTPStatus.OK, data, headers)


def created(
    data: Any,  # noqa: ANN401 - accepts any JSON-serializable content
    headers: Mapping[str, str] | None = None,
) -> Response:
    """Respond with 201. Use for POST requests that create a resource."""
    return send_response(HTTPStatus.CREATED, data, headers)


def no_content(
    data: Any = None,  # noqa: ANN401 - ignored, kept for call-site symmetry
    headers: Mapping[str, str] | None = None,
) -> Response:
    """Respond with 204 and an empty body. Use for DELETE."""
    _ = data
    return send_response(HTTPStatus.NO_CONTENT, None, headers)


# 4xx & 5XX JSON Response------------------------------------------------------


def fail(error: AppError, headers: Mapping[str, str] | None = None) -> Response:
    """Respond with an error envelope.

    Logs the error, rewrites its status to 460 if the client cancelled the
    request, then renders it with ``error.status`` as the status line.

    Args:
        error: The error to report.
        headers: Extra response headers.

    Returns:
        Response: The error response.
    """
    error.log()
    error.overwrite_status_code()

    return send_response(error.status, error, headers)


# 2xx CSV Response-------------------------------------------------------------


def csv(data: str, headers: Mapping[str, str] | None = None) -> Response:
    """Respond with 200 and a text/csv body written verbatim.

    Args:
        data: The CSV document.
        headers: Extra response headers.

    Returns:
        Response: The CSV response, or a 500 error envelope if the body
            could not be encoded.
    """
    try:
        body = data.encode("utf-8")
    except (AttributeError, UnicodeEncodeError) as exc:
        error = AppError.internal_server(str(exc)).add_debug(exc)
        error.log()
        return APIResponse(error.status, error).render()

    # Set explicitly so Starlette does not append a charset
    return Response(
        content=body,
        status_code=int(HTTPStatus.OK),
        headers={
            "content-type": CSV_CONTENT_TYPE,
            **{key.lower(): value for key, value in (headers or {}).items()},
        },
    )


def msg(message: Any) -> dict[str, Any]:  # noqa: ANN401 - any JSON value
    """Wrap a value as ``{"message": value}``."""
    return {"message": message}
