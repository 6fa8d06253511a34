"""Root conftest.py for the apikit test suite.

This file contains project-wide fixtures and pytest configuration.
"""

from collections.abc import Generator
from contextlib import suppress

import pytest
from loguru import logger

from apikit.core.config import get_settings
from apikit.core.context import RequestContext
from apikit.core.logging import _state


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests that test individual components in isolation"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that test multiple components"
    )


@pytest.fixture(autouse=True)
def clean_lru_cache() -> Generator[None]:
    """Clear the settings cache before and after each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clean_context() -> Generator[None]:
    """Clear the request context before and after each test."""
    RequestContext.clear()
    yield
    RequestContext.clear()


@pytest.fixture(autouse=True)
def keep_test_sinks() -> Generator[None]:
    """Stop create_app from replacing the Loguru sinks used by the tests.

    Tests that exercise setup_logging reset the flag themselves.
    """
    configured = _state.configured
    _state.configured = True
    yield
    _state.configured = configured


@pytest.fixture
def log_messages() -> Generator[list[str]]:
    """Capture the text of every Loguru message emitted during the test.

    Yields:
        list[str]: Rendered log messages, in emission order.
    """
    messages: list[str] = []
    handler_id = logger.add(
        lambda message: messages.append(message.record["message"]),
        level="DEBUG",
        format="{message}",
    )
    yield messages
    with suppress(ValueError):
        logger.remove(handler_id)
