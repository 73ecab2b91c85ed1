"""
Field value codec.

Session fields are stored as JSON text in the hash record. ``encode`` returns
``None`` for ``None`` so callers can treat an absent value as a removal
instead of persisting a placeholder.
"""

import json
from typing import Any, Optional

from ...errors import SerializationError


def encode(value: Any, field: Optional[str] = None) -> Optional[str]:
    """
    Encode a field value into its stored text form.

    Args:
        value: Application value (str, int, float, bool, list, dict)
        field: Field name, used only for error reporting

    Returns:
        JSON text, or None when the value is None

    Raises:
        SerializationError: If the value is not JSON serializable
    """
    if value is None:
        return None
    try:
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Cannot encode field {field!r}: {e}", field=field) from e


def decode(raw: str, field: Optional[str] = None) -> Any:
    """
    Decode a stored field value.

    Raises:
        SerializationError: If the stored text is not valid JSON
    """
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Cannot decode field {field!r}: {e}", field=field) from e
