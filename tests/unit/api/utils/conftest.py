"""Fixtures for API utils tests."""

from collections.abc import Callable
from typing import Any

import pytest
from starlette.requests import Request
from starlette.types import Message


type RequestFactory = Callable[..., Request]


@pytest.fixture
def make_request() -> RequestFactory:
    """Build real Starlette requests from a body and query string.

    Returns:
        RequestFactory: Factory accepting ``body``, ``query``,
            ``content_type`` and ``disconnect`` keyword arguments.
    """

    def factory(
        body: bytes = b"",
        query: str = "",
        *,
        disconnect: bool = False,
        method: str = "POST",
        content_type: str = "application/json",
    ) -> Request:
        scope: dict[str, Any] = {
            "type": "http",
            "method": method,
            "path": "/users",
            "raw_path": b"/users",
            "query_string": query.encode(),
            "headers": [(b"content-type", content_type.encode())],
            "scheme": "http",
            "server": ("test", 80),
        }

        async def receive() -> Message:
            if disconnect:
                return {"type": "http.disconnect"}
            return {"type": "http.request", "body": body, "more_body": False}

        return Request(scope, receive)

    return factory
