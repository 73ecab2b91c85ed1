"""
Carrier Module - Black Box Interface

Purpose: Transport the session token between client and server
Interface: get_token(), set_token(), clear_token(), apply()
Hidden: Cookie names, signing, key rotation, cookie attributes

Replaceable with any carrier (header, query parameter) implementing TokenCarrier.
"""

from .cookies import SignedCookieCarrier, StagedCookie
from .interfaces import TokenCarrier

__all__ = ["SignedCookieCarrier", "StagedCookie", "TokenCarrier"]
