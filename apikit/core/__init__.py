"""Core package for framework-independent functionality.

- **config**: Settings loaded from the environment with pydantic-settings
- **constants**: Shared constants (status codes, limits)
- **context**: Request id storage using contextvars
- **error_codes**: Catalog of internal error codes with support links
- **exceptions**: The AppError model and traced debug errors
- **logging**: Loguru setup with console and JSON formatters
- **types**: Type aliases for JSON-shaped data
"""
