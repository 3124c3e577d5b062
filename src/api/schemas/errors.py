"""Error response schema shared by every exception handler.

Error bodies are intentionally small and stable::

    {"error": "User not found"}
    {"error": "Validation failed", "details": ["age must be ..."]}

``details`` is only present for validation failures, where it carries the
ordered list of rule violations. Internal error text is never included.
"""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standardized error response model for API errors."""

    error: str = Field(
        ...,
        description="Human-readable, client-safe error message",
        examples=["User not found", "Validation failed", "Malformed JSON"],
    )

    details: list[str] | None = Field(
        default=None,
        description="Ordered validation error messages",
        examples=[["fullname is required (string min 2 chars)"]],
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"error": "User not found"},
                {
                    "error": "Validation failed",
                    "details": [
                        "fullname is required (string min 2 chars)",
                        "age must be an integer between 0 and 150",
                    ],
                },
                {"error": "Unhandled server error"},
            ]
        }
    }

    def to_content(self) -> dict[str, object]:
        """Serialize for a JSON response, omitting empty details."""
        return self.model_dump(mode="json", exclude_none=True)
