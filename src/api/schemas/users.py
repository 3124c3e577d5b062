"""Response schemas for the users resource and the health check."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class UserResponse(BaseModel):
    """A stored user record."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(
        ...,
        description="Server-generated UUID",
        examples=["3f1c2b6e-5d4a-4e8b-9c7d-1a2b3c4d5e6f"],
    )
    fullname: str = Field(..., examples=["John Doe"])
    study_level: str = Field(..., examples=["Master"])
    age: int = Field(..., examples=[25])


class UserUpdatedResponse(BaseModel):
    """Confirmation returned by a successful update."""

    message: str = Field(..., examples=["User updated"])
    user: UserResponse


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str = Field(..., examples=["User deleted"])


class HealthResponse(BaseModel):
    """Liveness probe result."""

    status: Literal["OK", "ERROR"]
    database: Literal["connected", "disconnected"]
