"""Shared fixtures for integration tests.

The application under test is built with ``create_app`` and extended with a
small users API exercising every part of the toolkit: decoding, success and
error envelopes, CSV output, cancellation and crash recovery.
"""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient
from pydantic import BaseModel, Field
from starlette.responses import Response

from apikit.api.main import create_app
from apikit.api.utils.decoder import Validatable, decode_query, decode_validated
from apikit.api.utils.responses import created, csv, msg, no_content, ok
from apikit.core.config import LogConfig, Settings
from apikit.core.error_codes import ErrorCode
from apikit.core.exceptions import AppError, new, wrap


class CreateUser(Validatable):
    """Body of POST /users."""

    email: str = ""
    name: str = ""

    def validate_payload(self) -> AppError | None:
        """Require an email address."""
        if not self.email:
            return AppError.key_required("email")
        return None


class ListUsersQuery(BaseModel):
    """Query of GET /users."""

    page: int = 1
    tags: list[str] = Field(default_factory=list)


USERS = {1: {"id": 1, "email": "alice@example.com", "name": "Alice"}}


def _add_users_api(app: FastAPI) -> None:
    """Mount the example endpoints."""

    @app.post("/users")
    async def create_user(request: Request) -> Response:
        payload = await decode_validated(request, CreateUser)
        if payload.email == USERS[1]["email"]:
            raise AppError.conflict("email already registered").add_conflict_data(
                {"user_id": 1}
            )
        return created({"id": 2, "email": payload.email, "name": payload.name})

    @app.get("/users")
    async def list_users(request: Request) -> Response:
        query = decode_query(request, ListUsersQuery)
        return ok({"page": query.page, "tags": query.tags, "users": list(USERS.values())})

    @app.get("/users/{user_id}")
    async def get_user(user_id: int) -> Response:
        if user_id not in USERS:
            raise AppError.not_found("user not found").add_debugf("user {}", user_id)
        return ok(USERS[user_id])

    @app.delete("/users/{user_id}")
    async def delete_user(user_id: int) -> Response:
        _ = user_id
        return no_content()

    @app.get("/users/{user_id}/greeting")
    async def greet(user_id: int) -> Response:
        return ok(msg(f"hello {USERS[user_id]['name']}"))

    @app.get("/reports/users.csv")
    async def users_report() -> Response:
        rows = ["id,email"] + [f"{u['id']},{u['email']}" for u in USERS.values()]
        return csv(
            "\n".join(rows) + "\n",
            {"Content-Disposition": 'attachment; filename="users.csv"'},
        )

    @app.get("/premium")
    async def premium() -> Response:
        raise AppError.payment_required("subscription required").add_error_detail(
            ErrorCode.NO_ACTIVE_SUBSCRIPTION.form("trial expired")
        )

    @app.get("/orders")
    async def orders() -> Response:
        cause = wrap(new("context canceled"), "dial tcp")
        raise AppError.internal_server("load orders").add_debug(cause)

    @app.get("/boom")
    async def boom() -> Response:
        raise RuntimeError("database password is hunter2")


@pytest.fixture
def settings() -> Settings:
    """Provide settings for the application under test.

    Returns:
        Settings: Test settings.
    """
    return Settings(
        app_name="users",
        app_version="1.2.3",
        environment="development",
        log_config=LogConfig(log_level="DEBUG", excluded_paths=["/health"]),
    )


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    """Provide the application under test.

    Returns:
        FastAPI: App built with create_app plus the users API.
    """
    application = create_app(settings)
    _add_users_api(application)
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Provide an HTTP client bound to the application.

    Yields:
        AsyncClient: Client sending requests through the ASGI stack.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as test_client:
        yield test_client
