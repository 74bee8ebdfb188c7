"""
auth/errors.py -- Failure kinds raised by the authentication core.

Every failure surfaces to the caller as its own class. Nothing here is
recovered internally. The route layer collapses all of them into one generic
401 so clients cannot tell which check failed. The distinct classes (and
their `code` strings) exist for log records and audit trails.

Hierarchy:

    AuthError
      HashingError                     password tier
      MalformedHashError
      MissingOrMalformedHeaderError    extraction tier
      AccessTokenError                 access-token tier
        BadSignatureError
        MalformedTokenError
        AccessTokenExpiredError        (also a TokenExpiredError)
      RefreshTokenError                refresh-token tier
        RefreshTokenNotFoundError
        RefreshTokenRevokedError
        RefreshTokenExpiredError       (also a TokenExpiredError)
        PersistenceError

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for every failure raised by auth/."""

    code = "auth_error"


class TokenExpiredError(AuthError):
    """Mixin base shared by the access-token and refresh-token expiry kinds."""

    code = "expired"


# ---------------------------------------------------------------------------
# Password tier
# ---------------------------------------------------------------------------


class HashingError(AuthError):
    """The KDF could not produce a hash (e.g. working memory unavailable)."""

    code = "hashing_failure"


class MalformedHashError(AuthError):
    """The stored hash string is not a recognised Argon2 encoding."""

    code = "malformed_hash"


# ---------------------------------------------------------------------------
# Extraction tier
# ---------------------------------------------------------------------------


class MissingOrMalformedHeaderError(AuthError):
    code = "missing_or_malformed_header"


# ---------------------------------------------------------------------------
# Access-token tier
# ---------------------------------------------------------------------------


class AccessTokenError(AuthError):
    code = "invalid_access_token"


class BadSignatureError(AccessTokenError):
    """Signature mismatch: tampered token, wrong secret, or disallowed alg."""

    code = "bad_signature"


class MalformedTokenError(AccessTokenError):
    """Token does not parse into the expected claim shape."""

    code = "malformed"


class AccessTokenExpiredError(AccessTokenError, TokenExpiredError):
    code = "expired"


# ---------------------------------------------------------------------------
# Refresh-token tier
# ---------------------------------------------------------------------------


class RefreshTokenError(AuthError):
    code = "invalid_refresh_token"


class RefreshTokenNotFoundError(RefreshTokenError):
    """No row for this token value, or nothing left to revoke."""

    code = "not_found"


class RefreshTokenRevokedError(RefreshTokenError):
    code = "revoked"


class RefreshTokenExpiredError(RefreshTokenError, TokenExpiredError):
    code = "expired"


class PersistenceError(RefreshTokenError):
    """The storage collaborator failed. The caller decides whether to retry."""

    code = "persistence_failure"
