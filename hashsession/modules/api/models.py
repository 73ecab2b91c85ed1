"""
Session API data models.

These models define the request and response bodies of the demo
session service.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from ..session.scheduler import RESERVED_FIELD


# Request Models (API Input)


class UpdateSessionRequest(BaseModel):
    """Field changes to apply to the current session."""

    updates: Dict[str, Any] = Field(
        default_factory=dict, description="Fields to set; a null value removes the field"
    )
    remove: List[str] = Field(default_factory=list, description="Fields to remove")
    max_age: Optional[int] = Field(
        None, description="New session lifetime in milliseconds", gt=0
    )

    @field_validator("updates")
    @classmethod
    def validate_field_names(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        """Reject the reserved lifetime field; it is managed by the engine."""
        if RESERVED_FIELD in v:
            raise ValueError(f"'{RESERVED_FIELD}' is reserved; use max_age instead")
        return v


# Response Models (API Output)


class SessionView(BaseModel):
    """Current state of a session as seen by the request."""

    session_id: str = Field(..., description="Session token")
    is_new: bool = Field(..., description="Session was created by this request")
    max_age: int = Field(..., description="Session lifetime in milliseconds")
    data: Dict[str, Any] = Field(default_factory=dict, description="Session fields")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    redis: str
