"""Core application constants."""

# Time constants
MILLISECONDS_PER_SECOND = 1000

# Error logging
MAX_STACK_TRACE_LIMIT = 5

# Client cancellation
REQUEST_CANCELLED = "context canceled"
STATUS_CLIENT_CANCELLED = 460

# Generic message for errors whose details must not reach the client
STD_INTERNAL_MESSAGE = "something went wrong"
