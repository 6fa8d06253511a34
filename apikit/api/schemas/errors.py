"""Schema of the JSON error envelope.

``AppError.to_dict`` produces this shape; the model documents it in the
OpenAPI schema and lets clients parse error bodies:

    {
        "status": 409,
        "error": "email already registered",
        "conflict_data": {"user_id": 42},
        "error_details": {"code": "L0401", "description": "...", "link": "..."}
    }

The ``status`` field always equals the HTTP status line of the response.
"""

from typing import Any

from pydantic import BaseModel, Field

from apikit.core.error_codes import ErrorDetails


class ErrorResponse(BaseModel):
    """Error envelope returned for every failed request."""

    status: int = Field(
        ...,
        description="HTTP status code, mirrored in the status line",
        examples=[400, 404, 460, 500],
    )

    error: str = Field(
        ...,
        description="Human-readable error message",
        examples=["email is required", "something went wrong"],
    )

    conflict_data: Any | None = Field(
        default=None,
        description="Structured data describing a conflict (409 responses)",
        examples=[{"existing_id": 42}],
    )

    error_details: ErrorDetails | None = Field(
        default=None,
        description="Catalogued internal error code with a support link",
    )


# OpenAPI ``responses`` entry for routes that can fail with an AppError
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    "4XX": {"model": ErrorResponse, "description": "Client error"},
    "5XX": {"model": ErrorResponse, "description": "Server error"},
}
