import base64
import hashlib
import hmac
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

logger = logging.getLogger(__name__)

_STATE_KEY = "cookies"


@dataclass
class StagedCookie:
    """Outgoing token cookie; ``value`` None means expire it."""
    value: Optional[str]
    max_age: Optional[int] = None  # seconds


class SignedCookieCarrier:
    """
    Session token in an HMAC-signed cookie.

    The token travels in ``<name>`` and its signature in ``<name>.sig``:
    base64url(HMAC-SHA1(key, "<name>=<token>")) without padding. New
    signatures use the first key; any key verifies, so keys can rotate.
    """

    def __init__(
        self,
        keys: Sequence[str],
        cookie_name: str = "sid",
        path: str = "/",
        same_site: str = "lax",
        secure: bool = False,
    ):
        if not keys:
            raise ValueError("SignedCookieCarrier requires at least one signing key")
        self.keys: List[bytes] = [k.encode("utf-8") if isinstance(k, str) else k for k in keys]
        self.cookie_name = cookie_name
        self.signature_name = f"{cookie_name}.sig"
        self.path = path
        self.same_site = same_site
        self.secure = secure

    def sign(self, value: str, key: Optional[bytes] = None) -> str:
        data = f"{self.cookie_name}={value}".encode("utf-8")
        digest = hmac.new(key or self.keys[0], data, hashlib.sha1).digest()
        return base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")

    def verify(self, value: str, signature: str) -> bool:
        return any(
            hmac.compare_digest(self.sign(value, key), signature) for key in self.keys
        )

    def get_token(self, context: Any) -> Optional[str]:
        """
        Return the token for this unit of work.

        A token staged earlier in the same unit of work takes precedence over
        the inbound cookie, so a cleared token stays cleared.
        """
        staged = self._staged(context)
        if self.cookie_name in staged:
            return staged[self.cookie_name].value

        cookies = getattr(context.request, "cookies", None) or {}
        token = cookies.get(self.cookie_name)
        if not token:
            return None

        signature = cookies.get(self.signature_name)
        if not signature or not self.verify(token, signature):
            logger.warning("Rejected session cookie with missing or invalid signature")
            return None
        return token

    def set_token(self, context: Any, token: str, max_age_ms: int) -> None:
        # Round up: Max-Age=0 would expire the cookie immediately
        self._staged(context)[self.cookie_name] = StagedCookie(token, -(-max_age_ms // 1000))

    def clear_token(self, context: Any) -> None:
        self._staged(context)[self.cookie_name] = StagedCookie(None)

    def apply(self, context: Any, response: Any) -> None:
        """Set or expire the token cookies on a Starlette response."""
        staged = self._staged(context).get(self.cookie_name)
        if staged is None:
            return

        if staged.value is None:
            response.delete_cookie(self.cookie_name, path=self.path)
            response.delete_cookie(self.signature_name, path=self.path)
            return

        for name, value in (
            (self.cookie_name, staged.value),
            (self.signature_name, self.sign(staged.value)),
        ):
            response.set_cookie(
                name,
                value,
                max_age=staged.max_age,
                path=self.path,
                httponly=True,
                samesite=self.same_site,
                secure=self.secure,
            )

    def _staged(self, context: Any) -> dict:
        return context.carrier_state.setdefault(_STATE_KEY, {})
