"""Service info endpoints shared by every service built on the toolkit."""

from fastapi import APIRouter
from starlette.responses import Response

from apikit.api.schemas.service import IndexResponse, ServiceInfo
from apikit.api.utils.responses import ok


def create_service_router(info: ServiceInfo) -> APIRouter:
    """Build the router serving the service identity.

    Args:
        info: Identity captured at startup.

    Returns:
        APIRouter: Router with ``GET /`` (name and version) and
            ``GET /health`` (full identity with start time).
    """
    router = APIRouter(tags=["service"])

    @router.get("/", response_model=IndexResponse)
    async def index() -> Response:
        """Return the service name and version."""
        return ok(IndexResponse(name=info.name, version=info.version))

    @router.get("/health", response_model=ServiceInfo)
    async def health() -> Response:
        """Return the service identity with its start time."""
        return ok(info)

    return router
