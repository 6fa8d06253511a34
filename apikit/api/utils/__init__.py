"""Utility modules for the API layer.

- **responses**: Success, failure and CSV response builders using orjson
- **decoder**: JSON body and query string decoding into pydantic models
"""
