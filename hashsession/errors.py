"""Session engine error taxonomy, shared by every module."""


class SessionError(Exception):
    """Base class for all session engine errors."""


class StoreError(SessionError):
    """The key-value store failed (connection, timeout or protocol error)."""

    def __init__(self, message: str, key: str = None):
        super().__init__(message)
        self.key = key


class TokenGenerationError(SessionError):
    """The random token source failed."""


class SerializationError(SessionError):
    """A field value could not be encoded or decoded."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.field = field
