"""FastAPI application factory.

``create_app`` wires the toolkit into an application:
- Logging configured from settings
- ``ORJSONResponse`` as default response class
- Exception handlers feeding the error envelope pipeline
- Middleware in the order they must wrap each other
- Service info endpoints

Middleware are executed in reverse order of registration, so the last one
added is the first to see the request.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from apikit.api.middleware.error_handler import register_exception_handlers
from apikit.api.middleware.recover import RecovererMiddleware
from apikit.api.middleware.request_context import RequestContextMiddleware
from apikit.api.middleware.request_logging import RequestLoggingMiddleware
from apikit.api.routes import create_service_router
from apikit.api.schemas.errors import ERROR_RESPONSES
from apikit.api.schemas.service import ServiceInfo
from apikit.api.utils.responses import ORJSONResponse
from apikit.core.config import Settings, get_settings
from apikit.core.logging import setup_logging


@asynccontextmanager
async def lifespan(app_instance: FastAPI) -> AsyncGenerator[None]:
    """Log application startup and shutdown.

    Args:
        app_instance: The FastAPI application instance.

    Yields:
        None: Nothing is yielded, this is just a lifespan context.
    """
    logger.info(
        "Application startup complete - {} v{}",
        app_instance.title,
        app_instance.version,
    )

    yield

    logger.info("Application shutdown complete")


def create_app(
    settings: Settings | None = None,
    service_info: ServiceInfo | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional settings instance. If not provided, will use
            get_settings().
        service_info: Identity reported by the info endpoints. Defaults to
            one built from the settings at call time.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    if service_info is None:
        service_info = ServiceInfo.create(settings.app_name, settings.app_version)

    setup_logging(settings)

    application = FastAPI(
        title=service_info.name,
        version=service_info.version,
        debug=settings.debug,
        docs_url=settings.docs_url,
        redoc_url=settings.redoc_url,
        openapi_url=settings.openapi_url,
        default_response_class=ORJSONResponse,
        responses=ERROR_RESPONSES,
        lifespan=lifespan,
    )

    # Register exception handlers BEFORE middleware
    register_exception_handlers(application)

    # 3. Recoverer (innermost, catches what the handlers let through)
    application.add_middleware(RecovererMiddleware)

    # 2. Request logging (sees the final status, including recovered 500s)
    application.add_middleware(RequestLoggingMiddleware, log_config=settings.log_config)

    # 1. Request context (outermost, sets the request id for everything else)
    application.add_middleware(
        RequestContextMiddleware, header_name=settings.request_id_header
    )

    application.include_router(create_service_router(service_info))

    return application
