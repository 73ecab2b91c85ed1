"""Typed session engine options."""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from ..config import parse_duration

DEFAULT_TOKEN_LENGTH = 10
DEFAULT_KEY_PREFIX = "hash:koa-session:"
DEFAULT_MAX_AGE = 1000 * 60 * 60 * 24 * 30  # 30 days in ms
DEFAULT_COOKIE_NAME = "sid"


@dataclass
class SessionOptions:
    """Session engine configuration. Either ``client`` or ``uri`` is required."""
    client: Optional[Any] = None
    uri: Optional[str] = None
    keys: List[str] = field(default_factory=list)
    token_length: int = DEFAULT_TOKEN_LENGTH
    key_prefix: str = DEFAULT_KEY_PREFIX
    max_age: Union[int, str] = DEFAULT_MAX_AGE
    cookie_name: str = DEFAULT_COOKIE_NAME
    fallback_on_error: bool = False

    def __post_init__(self):
        if self.client is None and not self.uri:
            raise ValueError("SessionOptions requires a Redis client or a uri")
        if self.token_length <= 0:
            raise ValueError(f"token_length must be positive, got {self.token_length}")
        self.max_age = parse_duration(self.max_age)

    @classmethod
    def from_config(cls, config, client: Optional[Any] = None) -> "SessionOptions":
        """Build options from the config module."""
        return cls(
            client=client,
            uri=None if client is not None else config.get("redis_url"),
            keys=config.get("session_keys") or [],
            token_length=config.get("session_token_length", DEFAULT_TOKEN_LENGTH),
            key_prefix=config.get("session_key_prefix", DEFAULT_KEY_PREFIX),
            max_age=config.get("session_max_age", DEFAULT_MAX_AGE),
            cookie_name=config.get("session_cookie_name", DEFAULT_COOKIE_NAME),
            fallback_on_error=config.get("session_fallback_on_error", False),
        )
