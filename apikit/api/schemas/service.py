"""Service identity reported by the info endpoints."""

from datetime import UTC, datetime
from typing import Self

from pydantic import BaseModel, ConfigDict, Field


class ServiceInfo(BaseModel):
    """Name, version and start time of the running service.

    Built once at startup with ``create`` and handed to the components that
    report it. Instances are immutable.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Name of the service", examples=["users"])
    version: str = Field(..., description="Version of the service", examples=["1.2.3"])
    uptime: datetime = Field(
        ...,
        description="When the service started (UTC)",
        examples=["2024-06-14T12:00:00+00:00"],
    )
    epoch: int = Field(
        ...,
        description="When the service started, in Unix seconds",
        examples=[1718366400],
    )

    @classmethod
    def create(cls, name: str, version: str) -> Self:
        """Capture the service identity with the current time as start time."""
        started = datetime.now(UTC)
        return cls(
            name=name,
            version=version,
            uptime=started,
            epoch=int(started.timestamp()),
        )


class IndexResponse(BaseModel):
    """Body of the index endpoint."""

    name: str
    version: str
