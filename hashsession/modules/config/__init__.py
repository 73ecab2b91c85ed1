"""
Config Module - Black Box Interface

Purpose: Application configuration management
Interface: get_config(), parse_duration()
Hidden: Config sources, validation logic, environment parsing

Can be replaced with different config systems (Consul, etcd, AWS Parameter Store).
"""

import os
import re
from typing import Any, Dict, Union


# Configuration Contract: Required and Optional Keys

REQUIRED_CONFIG_KEYS = {
    "redis_url": "Redis connection URL",
    "session_keys": "Cookie signing keys, newest first",
    "session_token_length": "Random bytes per session token",
    "session_key_prefix": "Prefix of session hash keys in Redis",
    "session_max_age": "Session lifetime in milliseconds",
    "session_cookie_name": "Name of the session token cookie",
    "host": "API server bind address",
    "port": "API server port",
    "log_level": "Logging level (DEBUG, INFO, WARNING, ERROR)",
}

OPTIONAL_CONFIG_KEYS = {
    "redis_password": {
        "description": "Redis authentication password",
        "default": None,
    },
    "session_fallback_on_error": {
        "description": "Start a fresh session when the session lookup fails",
        "default": False,
    },
}

_DURATION_UNITS = {
    "ms": 1,
    "s": 1000,
    "m": 1000 * 60,
    "h": 1000 * 60 * 60,
    "d": 1000 * 60 * 60 * 24,
    "w": 1000 * 60 * 60 * 24 * 7,
}

_DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h|d|w)?\s*$", re.IGNORECASE)


def parse_duration(value: Union[int, str]) -> int:
    """
    Convert a duration to milliseconds.

    Accepts integer milliseconds or strings such as "500ms", "10s", "15m",
    "2h", "30d" and "1w". A bare number string is milliseconds.

    Raises:
        ValueError: If the value is not a positive duration
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        millis = int(value)
    elif isinstance(value, str):
        match = _DURATION_PATTERN.match(value)
        if not match:
            raise ValueError(f"Invalid duration: {value!r}")
        amount, unit = match.groups()
        millis = int(float(amount) * _DURATION_UNITS[(unit or "ms").lower()])
    else:
        raise ValueError(f"Invalid duration: {value!r}")

    if millis <= 0:
        raise ValueError(f"Duration must be positive: {value!r}")
    return millis


class ConfigModule:
    """Configuration management module."""

    def __init__(self):
        """Initialize with environment variables."""
        self._config = self._load_from_env()
        self._validate_required_keys()

    def _validate_required_keys(self) -> None:
        """
        Validate that all required configuration keys are present.

        Raises:
            ValueError: If required keys are missing
        """
        missing_keys = []
        for key in REQUIRED_CONFIG_KEYS:
            if key not in self._config or self._config[key] in (None, []):
                missing_keys.append(key)

        if missing_keys:
            raise ValueError(
                f"Missing required configuration keys: {', '.join(missing_keys)}. "
                f"Check environment variables and deployment configuration."
            )

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment."""
        redis_url = os.getenv("REDIS_URL")
        if not redis_url:
            # Parse Redis port (might be in tcp://host:port format from K8s)
            redis_port_env = os.getenv("REDIS_PORT", "6379")
            if redis_port_env.startswith("tcp://"):
                redis_port = int(redis_port_env.split(":")[-1])
            else:
                redis_port = int(redis_port_env)
            redis_url = (
                f"redis://{os.getenv('REDIS_HOST', 'localhost')}:{redis_port}"
                f"/{int(os.getenv('REDIS_DB', '0'))}"
            )

        session_keys = os.getenv("SESSION_KEYS", "")

        return {
            # Redis settings
            "redis_url": redis_url,
            "redis_password": os.getenv("REDIS_PASSWORD"),  # Optional: for authenticated Redis
            # Session settings
            "session_keys": [key.strip() for key in session_keys.split(",") if key.strip()],
            "session_token_length": int(os.getenv("SESSION_TOKEN_LENGTH", "10")),
            "session_key_prefix": os.getenv("SESSION_KEY_PREFIX", "hash:koa-session:"),
            "session_max_age": parse_duration(os.getenv("SESSION_MAX_AGE", "30d")),
            "session_cookie_name": os.getenv("SESSION_COOKIE_NAME", "sid"),
            "session_fallback_on_error": (
                os.getenv("SESSION_FALLBACK_ON_ERROR", "false").lower() == "true"
            ),
            # API settings
            "host": os.getenv("API_HOST", "0.0.0.0"),
            "port": int(os.getenv("API_PORT", "8080")),
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
        }

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value."""
        return self._config.get(key, default)

    @staticmethod
    def get_config_schema() -> Dict[str, Any]:
        """
        Get the configuration schema (contract) for this module.

        Returns:
            Dictionary with 'required' and 'optional' key specifications

        Example:
            >>> schema = ConfigModule.get_config_schema()
            >>> print(schema['required']['redis_url'])
            'Redis connection URL'
        """
        return {
            "required": REQUIRED_CONFIG_KEYS.copy(),
            "optional": OPTIONAL_CONFIG_KEYS.copy(),
        }


# Singleton instance
_instance = None


def get_config() -> ConfigModule:
    """Get the configuration module singleton."""
    global _instance
    if _instance is None:
        _instance = ConfigModule()
    return _instance


__all__ = ["get_config", "parse_duration", "ConfigModule"]
