"""HTTP layer built on FastAPI.

Key components:
- **main**: Application factory wiring middleware, handlers and routes
- **routes**: Service name/version and health endpoints
- **middleware**: Cross-cutting concerns for all requests
  - Request id propagation
  - Request logging with timing
  - Panic recovery into a generic 500
  - Exception handlers feeding the failure pipeline
- **schemas**: Pydantic models documenting the response envelopes
- **utils**: Response builders (orjson) and request decoding
"""
