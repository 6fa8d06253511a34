"""Type aliases for dynamic data structures used across the toolkit.

All types defined here should be JSON-serializable so they can be logged
and rendered into response bodies.
"""

# JSON-compatible type that represents any valid JSON value
type JsonValue = (
    dict[str, "JsonValue"] | list["JsonValue"] | str | int | float | bool | None
)
