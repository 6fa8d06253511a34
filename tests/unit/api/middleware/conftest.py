"""Fixtures for API middleware tests."""

from typing import cast

import pytest
from fastapi import Request
from pytest_mock import MockerFixture, MockType
from starlette.datastructures import URL
from starlette.responses import Response as StarletteResponse

from apikit.api.middleware.recover import RecovererMiddleware
from apikit.api.middleware.request_context import RequestContextMiddleware
from apikit.api.middleware.request_logging import RequestLoggingMiddleware
from apikit.core.config import LogConfig


@pytest.fixture
def mock_request(mocker: MockerFixture) -> MockType:
    """Create mock FastAPI Request with configurable attributes.

    Returns:
        MockType: Mock request object with standard HTTP request attributes.
    """
    request = mocker.Mock(spec=Request)
    request.method = "GET"
    request.url = mocker.Mock(spec=URL)
    request.url.path = "/api/users"
    request.url.query = "page=2"
    request.url.__str__ = mocker.Mock(return_value="http://test/api/users?page=2")
    request.headers = {}

    return cast("MockType", request)


@pytest.fixture
def mock_response(mocker: MockerFixture) -> MockType:
    """Create mock Starlette Response.

    Returns:
        MockType: Mock response object.
    """
    response = mocker.Mock(spec=StarletteResponse)
    response.status_code = 200
    response.headers = {}
    return cast("MockType", response)


@pytest.fixture
def mock_call_next(mocker: MockerFixture, mock_response: MockType) -> MockType:
    """Create mock call_next returning the mock response.

    Returns:
        MockType: Async mock standing in for the next handler.
    """
    return cast("MockType", mocker.AsyncMock(return_value=mock_response))


@pytest.fixture
def request_context_middleware(mocker: MockerFixture) -> RequestContextMiddleware:
    """Create RequestContextMiddleware instance.

    Returns:
        RequestContextMiddleware: New middleware instance.
    """
    # BaseHTTPMiddleware requires an app parameter
    return RequestContextMiddleware(mocker.Mock())


@pytest.fixture
def log_config() -> LogConfig:
    """Provide a LogConfig with a short slow request threshold.

    Returns:
        LogConfig: Logging configuration for the middleware.
    """
    return LogConfig(excluded_paths=["/health"], slow_request_threshold_ms=500)


@pytest.fixture
def request_logging_middleware(
    mocker: MockerFixture, log_config: LogConfig
) -> RequestLoggingMiddleware:
    """Create RequestLoggingMiddleware instance.

    Returns:
        RequestLoggingMiddleware: New middleware instance.
    """
    return RequestLoggingMiddleware(mocker.Mock(), log_config=log_config)


@pytest.fixture
def recoverer_middleware(mocker: MockerFixture) -> RecovererMiddleware:
    """Create RecovererMiddleware instance.

    Returns:
        RecovererMiddleware: New middleware instance.
    """
    return RecovererMiddleware(mocker.Mock())
