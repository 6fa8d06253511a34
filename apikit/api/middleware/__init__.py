"""Middleware and exception handlers for cross-cutting request concerns.

- **RequestContextMiddleware**: Extracts or generates the request id
- **RequestLoggingMiddleware**: Logs one line per request with timing
- **RecovererMiddleware**: Turns unhandled exceptions into a generic 500
- **error_handler**: Routes AppError and framework errors into ``fail``

Registration order (outermost first):
1. Request context (sets the request id)
2. Request logging (logs with the request id and final status)
3. Recoverer (catches what the handlers let through)
"""
