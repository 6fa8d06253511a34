"""apikit - helpers for building HTTP JSON APIs on FastAPI.

The toolkit standardizes how an API service represents failures and shapes
its responses:

- **Core Layer**: the application error model, internal error catalog,
  configuration, request context and structured logging
- **API Layer**: response builders, request decoding, middleware for
  request ids, request logging and panic recovery, and service info routes

Every component is a thin wrapper around one request/response cycle; no
state is shared between requests apart from read-only configuration.
"""

__version__ = "0.1.0"
