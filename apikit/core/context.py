"""Request context management for request ids."""

import time
from contextvars import ContextVar, Token

# Context variable for storing the request id across async boundaries
_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


class RequestContext:
    """Manages request context using contextvars for async-safe storage.

    The request id is set once per request by the request context middleware
    and read by the logging middleware and anything else that wants to echo
    it into log lines.
    """

    @staticmethod
    def set_request_id(request_id: str) -> Token[str | None]:
        """Set the request id for the current context.

        Args:
            request_id: The request id to store in the context.

        Returns:
            Token[str | None]: Token restoring the previous value when passed
                to ``reset_request_id``.
        """
        return _request_id_var.set(request_id)

    @staticmethod
    def reset_request_id(token: Token[str | None]) -> None:
        """Restore the request id that was current before ``set_request_id``."""
        _request_id_var.reset(token)

    @staticmethod
    def get_request_id() -> str | None:
        """Get the request id from the current context.

        Returns:
            str | None: The request id if set, None otherwise.
        """
        return _request_id_var.get()

    @staticmethod
    def clear() -> None:
        """Clear all context variables."""
        _request_id_var.set(None)


def generate_request_id() -> str:
    """Generate a request id from the nanosecond clock.

    Returns:
        str: Decimal string of the current time in nanoseconds.

    Examples:
        >>> generate_request_id().isdigit()
        True
    """
    return str(time.time_ns())
