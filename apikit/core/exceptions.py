"""Application error model for consistent HTTP error handling.

This module defines the error value every request handler uses to report a
failure, whatever its root cause (validation, internal fault, cancellation).

Key components:
- **DebugError**: Internal error that records the call stack where it was
  created, optionally wrapping a lower-level cause
- **RequestCancelledError**: DebugError tagging a client-side cancellation
- **AppError**: Exception carrying an HTTP status, a client-facing message,
  a chain of internal debug causes, conflict data and catalogued details

Features:
- **Status mapping**: Named constructors for the common 4xx/5xx statuses
- **Debug chain**: Wrap records accumulate innermost first, the latest one
  is logged with a truncated stack trace
- **Envelope serialization**: ``{"status", "error", "conflict_data"?,
  "error_details"?}``; debug causes are never serialized
- **Cancellation override**: Rewrites the status to 460 when the failure
  was caused by the client going away

Constructing an AppError never fails. Invalid status updates are dropped and
reported through the return value instead of raising.
"""

import asyncio
import traceback
from collections.abc import Iterator, Mapping
from http import HTTPStatus
from typing import Any, Self

import orjson
from loguru import logger

from apikit.core.constants import (
    MAX_STACK_TRACE_LIMIT,
    REQUEST_CANCELLED,
    STATUS_CLIENT_CANCELLED,
    STD_INTERNAL_MESSAGE,
)
from apikit.core.error_codes import ErrorDetails
from apikit.core.types import JsonValue


class DebugError(Exception):
    """Internal error that remembers where it was created.

    Args:
        message: Description of the failure
        cause: Lower-level error this one wraps
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.message = message
        self.cause = cause

        # Capture stack trace at creation time
        self.stack_trace = traceback.format_stack()[:-1]  # Exclude this frame

        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        """Return the message followed by the wrapped cause, if any."""
        if self.cause is not None:
            return f"{self.message}: {self.cause}"
        return self.message


class RequestCancelledError(DebugError):
    """Raised where a client-initiated cancellation is detected."""


def new(message: str) -> DebugError:
    """Return a DebugError with the given message and the current stack."""
    return DebugError(message)


def errorf(format_string: str, *args: object) -> DebugError:
    """Return a DebugError whose message is ``format_string.format(*args)``."""
    return DebugError(format_string.format(*args))


def wrap(err: BaseException | None, message: str) -> DebugError | None:
    """Annotate ``err`` with a message and the current stack.

    Args:
        err: The error to wrap.
        message: Context to prepend to the error text.

    Returns:
        DebugError | None: The wrapping error, or None when ``err`` is None.
    """
    if err is None:
        return None
    return DebugError(message, cause=err)


def wrapf(
    err: BaseException | None, format_string: str, *args: object
) -> DebugError | None:
    """Like ``wrap`` with a ``str.format`` style message."""
    return wrap(err, format_string.format(*args))


_CANCELLATION_TYPES: tuple[type[BaseException], ...] = (
    RequestCancelledError,
    asyncio.CancelledError,
)


def _iter_causes(exc: BaseException) -> Iterator[BaseException]:
    """Walk an exception and its explicit or implicit causes."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def _trace_frames(cause: BaseException) -> list[str]:
    """Return the stack frames of a cause, innermost first."""
    if isinstance(cause, DebugError):
        frames = list(cause.stack_trace)
    elif cause.__traceback__ is not None:
        frames = traceback.format_tb(cause.__traceback__)
    else:
        return []
    frames.reverse()
    return frames


class AppError(Exception):
    """HTTP status code and client-facing message of a failed request.

    Request handlers raise (or return) an AppError; the response pipeline
    logs it and renders it as the JSON error envelope.

    Args:
        status: HTTP status code of the response
        message: Error message sent to the client
    """

    def __init__(self, status: int, message: str) -> None:
        self.status = int(status)
        self.message = message
        self.conflict_data: JsonValue | None = None
        self.error_details: ErrorDetails | None = None
        self._debug_chain: list[BaseException] = [DebugError(message)]
        super().__init__(message)

    # 4xx ---------------------------------------------------------------------

    @classmethod
    def bad_request(cls, message: str) -> Self:
        """400 Bad Request."""
        return cls(HTTPStatus.BAD_REQUEST, message)

    @classmethod
    def unauthorized(cls, message: str) -> Self:
        """401 Unauthorized."""
        return cls(HTTPStatus.UNAUTHORIZED, message)

    @classmethod
    def payment_required(cls, message: str) -> Self:
        """402 Payment Required."""
        return cls(HTTPStatus.PAYMENT_REQUIRED, message)

    @classmethod
    def forbidden(cls, message: str) -> Self:
        """403 Forbidden."""
        return cls(HTTPStatus.FORBIDDEN, message)

    @classmethod
    def not_found(cls, message: str) -> Self:
        """404 Not Found."""
        return cls(HTTPStatus.NOT_FOUND, message)

    @classmethod
    def conflict(cls, message: str) -> Self:
        """409 Conflict."""
        return cls(HTTPStatus.CONFLICT, message)

    @classmethod
    def gone(cls, message: str) -> Self:
        """410 Gone."""
        return cls(HTTPStatus.GONE, message)

    @classmethod
    def unprocessable_entity(cls, message: str) -> Self:
        """422 Unprocessable Entity."""
        return cls(HTTPStatus.UNPROCESSABLE_ENTITY, message)

    @classmethod
    def too_early(cls, message: str) -> Self:
        """425 Too Early."""
        return cls(HTTPStatus.TOO_EARLY, message)

    @classmethod
    def too_many_requests(cls, message: str) -> Self:
        """429 Too Many Requests."""
        return cls(HTTPStatus.TOO_MANY_REQUESTS, message)

    @classmethod
    def key_required(cls, key: str) -> Self:
        """400 with ``"<key> is required"``."""
        return cls.bad_request(f"{key} is required")

    @classmethod
    def invalid_key(cls, value: str, key: str) -> Self:
        """400 with ``"<value> is invalid <key>"``."""
        return cls.bad_request(f"{value} is invalid {key}")

    # 5xx ---------------------------------------------------------------------

    @classmethod
    def internal_server(cls, message: str) -> Self:
        """500 Internal Server Error."""
        return cls(HTTPStatus.INTERNAL_SERVER_ERROR, message)

    @classmethod
    def internal_server_std(cls) -> Self:
        """500 with a generic message that leaks nothing to the client."""
        return cls.internal_server(STD_INTERNAL_MESSAGE)

    # Mutators ----------------------------------------------------------------

    def update_status(self, status_code: int) -> bool:
        """Override the status code.

        Zero and codes that are not recognized HTTP statuses are ignored so
        that a stray value cannot reset the error.

        Args:
            status_code: The new HTTP status code.

        Returns:
            bool: True if the status was changed, False if it was rejected.
        """
        try:
            HTTPStatus(status_code)
        except ValueError:
            logger.debug(
                "Ignoring invalid status code {} for error {!r}",
                status_code,
                self.message,
            )
            return False
        self.status = int(status_code)
        return True

    def update_message(self, message: str) -> None:
        """Override the message sent to the client."""
        self.message = message

    def add_debug(self, cause: BaseException) -> Self:
        """Record a lower-level cause for developers.

        Called once per wrap layer as the error travels up the call stack.
        Only the most recent cause is logged; earlier ones stay available
        through ``debug_chain``.

        Args:
            cause: The underlying error, typically built with ``wrap``.

        Returns:
            Self: This error, for chaining.
        """
        self._debug_chain.append(cause)
        return self

    def add_debugf(self, format_string: str, *args: object) -> Self:
        """Record a debug cause built with ``str.format`` (``{}`` placeholders)."""
        return self.add_debug(errorf(format_string, *args))

    def add_conflict_data(self, data: JsonValue) -> Self:
        """Attach data explaining a conflict; sent to the client."""
        self.conflict_data = data
        return self

    def add_error_detail(self, details: ErrorDetails) -> Self:
        """Attach a catalogued internal error code; sent to the client."""
        self.error_details = details
        return self

    # Accessors ---------------------------------------------------------------

    @property
    def debug(self) -> BaseException | None:
        """The most recent debug cause, if any."""
        if self._debug_chain:
            return self._debug_chain[-1]
        return None

    @property
    def debug_chain(self) -> tuple[BaseException, ...]:
        """All recorded debug causes, innermost first."""
        return tuple(self._debug_chain)

    def get_debug(self) -> BaseException:
        """Return the debug cause, or a new DebugError built from the message."""
        if self.debug is not None:
            return self.debug
        return DebugError(self.message)

    def debug_error(self) -> str:
        """Return the debug cause text if present, else the message."""
        if self.debug is not None:
            return str(self.debug)
        return self.message

    # Classification ----------------------------------------------------------

    def is_bad_request(self) -> bool:
        """Return True if the status is 400."""
        return self.status == HTTPStatus.BAD_REQUEST

    def is_forbidden(self) -> bool:
        """Return True if the status is 403."""
        return self.status == HTTPStatus.FORBIDDEN

    def is_not_found(self) -> bool:
        """Return True if the status is 404."""
        return self.status == HTTPStatus.NOT_FOUND

    def is_internal_server_error(self) -> bool:
        """Return True if the status is exactly 500."""
        return self.status == HTTPStatus.INTERNAL_SERVER_ERROR

    def is_internal_error(self) -> bool:
        """Return True for any 5xx status."""
        return self.status >= HTTPStatus.INTERNAL_SERVER_ERROR

    # Cancellation ------------------------------------------------------------

    def is_cancelled(self) -> bool:
        """Check whether the failure came from the client going away.

        A cancellation tagged with ``RequestCancelledError`` or
        ``asyncio.CancelledError`` anywhere in the latest cause's chain wins.
        Otherwise the message and the latest cause text are searched for
        ``"context canceled"``.

        Returns:
            bool: True if the request was cancelled by the client.
        """
        debug = self.debug
        if debug is not None and any(
            isinstance(cause, _CANCELLATION_TYPES) for cause in _iter_causes(debug)
        ):
            return True

        if REQUEST_CANCELLED in self.message:
            return True
        return debug is not None and REQUEST_CANCELLED in str(debug)

    def overwrite_status_code(self) -> bool:
        """Set the status to 460 if the client cancelled the request.

        Must run once, right before the error is serialized.

        Returns:
            bool: True if the status was rewritten.
        """
        if not self.is_cancelled():
            return False
        self.status = STATUS_CLIENT_CANCELLED
        return True

    # Serialization -----------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Build the JSON error envelope.

        Returns:
            dict[str, Any]: ``status`` and ``error``, plus ``conflict_data``
                and ``error_details`` when they are set.
        """
        envelope: dict[str, Any] = {
            "status": self.status,
            "error": self.message,
        }
        if self.conflict_data is not None:
            envelope["conflict_data"] = self.conflict_data
        if self.error_details is not None:
            envelope["error_details"] = self.error_details.to_dict()
        return envelope

    def to_json(self) -> bytes:
        """Encode the error envelope with orjson."""
        return orjson.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Rebuild an error from its envelope.

        The debug chain is not part of the envelope, so the result has none.

        Args:
            data: A decoded error envelope.

        Returns:
            Self: The reconstructed error.
        """
        error = cls(int(data.get("status", 0)), str(data.get("error", "")))
        error._debug_chain.clear()
        error.conflict_data = data.get("conflict_data")
        if (details := data.get("error_details")) is not None:
            error.error_details = ErrorDetails.model_validate(details)
        return error

    @classmethod
    def from_json(cls, raw: bytes | str) -> Self:
        """Decode an error envelope produced by ``to_json``."""
        return cls.from_dict(orjson.loads(raw))

    # Logging -----------------------------------------------------------------

    def log(self) -> None:
        """Log the error, its latest debug cause and the top of its stack.

        At most ``MAX_STACK_TRACE_LIMIT`` frames are written, innermost first.
        """
        logger.error("[error-msg] {} {}", self.status, self.message)

        debug = self.debug
        if debug is None:
            return

        logger.error("[debug-error] {}", debug)
        frames = _trace_frames(debug)[:MAX_STACK_TRACE_LIMIT]
        if frames:
            logger.error("[debug-error-trace]\n{}", "".join(frames).rstrip())

    def __str__(self) -> str:
        """Return the client-facing message."""
        return self.message

    def __repr__(self) -> str:
        """Return a detailed representation of the error."""
        class_name = self.__class__.__name__
        return f"{class_name}(status={self.status}, message={self.message!r})"
