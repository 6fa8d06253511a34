"""API-related constants."""

# HTTP Headers
REQUEST_ID_HEADER = "X-Request-Id"

# Content types
JSON_CONTENT_TYPE = "application/json"
CSV_CONTENT_TYPE = "text/csv"
