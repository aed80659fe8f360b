"""
Error taxonomy for sessionseal.

Anything a malicious or stale client can cause (tampered cookie, expired token,
unknown key) is a TokenError and degrades to "no session". Anything pointing at a
server-side resource problem is surfaced to the caller.
"""


class SessionError(Exception):
    """Base class for all sessionseal errors."""


class InvalidConfiguration(SessionError, ValueError):
    """Raised at startup for an unusable configuration (empty key ring, bad TTL)."""


class TokenError(SessionError):
    """Inbound token could not be turned into a live session."""


class MalformedToken(TokenError):
    """Bad framing, bad base64url, or a payload that does not describe a session."""


class AuthenticationFailure(TokenError):
    """Tag or AEAD check failed against every key in the ring."""


class SessionExpired(TokenError):
    """Token is authentic but its expiry has elapsed."""


class StoreUnavailable(SessionError):
    """Session store I/O failed. Never swallowed."""


class SessionDestroyed(SessionError):
    """Mutation attempted on a destroyed session."""
