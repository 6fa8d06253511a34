"""Catalog of internal error codes.

Each catalogued code pairs a stable code string with a link to the support
document explaining it. Handlers attach a code to an ``AppError`` with a
use-site description:

    >>> details = ErrorCode.NO_ACTIVE_SUBSCRIPTION.form("trial expired")
    >>> details.code
    'L0401'

The catalog is an enum so it is fixed at import time and safe to read from
any request.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

ERROR_CODES_DOC_URL = (
    "https://support.gopherhut.com/docs/error-codes-and-what-they-mean"
)


class ErrorDetails(BaseModel):
    """Internal error code, readable description and support link.

    Serialized as the ``error_details`` member of the error envelope. Empty
    description and link are left out of the serialized form.
    """

    model_config = ConfigDict(frozen=True)

    code: str = Field(..., description="Internal error code", examples=["L0401"])
    description: str = Field(
        default="",
        description="Readable explanation for this occurrence",
        examples=["subscription expired on 2024-06-01"],
    )
    link: str = Field(
        default="",
        description="Link to the support document for the code",
        examples=[f"{ERROR_CODES_DOC_URL}#L0401"],
    )

    def to_dict(self) -> dict[str, str]:
        """Return the serialized form, omitting empty optional fields."""
        return self.model_dump(exclude_defaults=True)


class ErrorCode(Enum):
    """Platform error codes.

    Members carry the code string and its support link.
    """

    NO_ACTIVE_SUBSCRIPTION = ("L0401", f"{ERROR_CODES_DOC_URL}#L0401")
    """The account has no active subscription for the requested feature."""

    def __init__(self, code: str, link: str) -> None:
        self.code = code
        self.link = link

    def form(self, description: str) -> ErrorDetails:
        """Build the details for this code.

        Args:
            description: Use-site explanation of the failure.

        Returns:
            ErrorDetails: Details carrying this code and its link.
        """
        return ErrorDetails(code=self.code, description=description, link=self.link)

    @classmethod
    def lookup(cls, code: str) -> "ErrorCode | None":
        """Find the catalogued member for a code string."""
        for member in cls:
            if member.code == code:
                return member
        return None
