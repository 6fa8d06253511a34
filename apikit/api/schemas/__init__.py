"""Pydantic schema models for API responses.

- **errors**: The JSON error envelope
- **service**: Service identity reported by the info endpoints
"""
