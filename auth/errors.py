"""
Auth error taxonomy.

Verification failures are not exceptions: auth.jwt.decode_and_verify returns None
and the HTTP layer answers 401. Only fatal conditions are raised.
"""


class AuthError(Exception):
    """Base class for auth errors."""


class ConfigurationError(AuthError):
    """Required auth configuration is missing or unreadable (fatal at startup)."""


class CryptoUnavailableError(AuthError):
    """HMAC-SHA256 cannot be computed in this runtime (fatal, never degrade to no auth)."""
