"""Token carrier interface."""
from typing import Any, Optional, Protocol


class TokenCarrier(Protocol):
    """
    Protocol for session token transport.

    The ``context`` argument is the unit of work: carriers read the inbound
    request from ``context.request`` and stage outgoing state in
    ``context.carrier_state`` until ``apply`` writes it to the response.
    Signing and overwrite-on-set are always on.
    """

    def get_token(self, context: Any) -> Optional[str]:
        """Return the verified token for this unit of work, or None."""
        ...

    def set_token(self, context: Any, token: str, max_age_ms: int) -> None:
        """Stage the token to be sent back with the response."""
        ...

    def clear_token(self, context: Any) -> None:
        """Stage removal of the token from the client."""
        ...

    def apply(self, context: Any, response: Any) -> None:
        """Write staged token state to the response."""
        ...
