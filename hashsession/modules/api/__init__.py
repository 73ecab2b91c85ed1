"""
API Module - Black Box Interface

Purpose: Request/response models for the session HTTP service
Interface: Pydantic models
Hidden: Validation rules

The API module only describes data - all session logic lives in the
session module.
"""

from .models import HealthResponse, SessionView, UpdateSessionRequest

__all__ = ["HealthResponse", "SessionView", "UpdateSessionRequest"]
