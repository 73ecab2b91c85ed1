"""Session token generation."""

import secrets

from ...errors import TokenGenerationError


def generate_token(length: int = 10) -> str:
    """
    Generate a URL-safe random session token.

    Args:
        length: Number of random bytes (the token is base64url of these bytes)

    Returns:
        Token string

    Raises:
        TokenGenerationError: If the system random source fails
    """
    if length <= 0:
        raise ValueError(f"Token length must be positive, got {length}")
    try:
        return secrets.token_urlsafe(length)
    except (OSError, NotImplementedError) as e:
        raise TokenGenerationError(f"Random source failed: {e}") from e
