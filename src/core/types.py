"""Type aliases for dynamic data structures throughout the application.

All types defined here are JSON-serializable so they can flow into
structured logs and API responses unchanged.
"""

from typing import Any

# JSON-compatible type that represents any valid JSON value.
# Request payloads are parsed into this loose shape before validation.
type JsonValue = (
    dict[str, "JsonValue"] | list["JsonValue"] | str | int | float | bool | None
)

# Context dictionary attached to structured log records
type LogContext = dict[str, Any]
