"""
Session Module - Black Box Interface

Purpose: Per-request sessions persisted as Redis hashes
Interface: SessionManager.get_or_create(), regenerate(), destroy();
           Session mapping with flush(), touch(), destroy(), regenerate()
Hidden: Change tracking, flush coalescing, field encoding, token generation

Every field change made during one unit of work is written in one batch.
"""

from .context import UnitOfWork
from ...errors import SerializationError, SessionError, StoreError, TokenGenerationError
from .manager import SessionManager
from .options import SessionOptions
from .session import Session

__all__ = [
    "Session",
    "SessionError",
    "SessionManager",
    "SessionOptions",
    "SerializationError",
    "StoreError",
    "TokenGenerationError",
    "UnitOfWork",
]
