"""
auth/tokens.py -- Stateless access tokens (JWT, HS256).

Security design decisions:
  JWT: python-jose with HS256. A token carries iss ("chirpy"), sub (user UUID),
       iat and exp. Nothing backs it server-side: integrity and expiry are
       derived from the string alone, so an access token cannot be revoked
       before it expires. Keep the TTL short; revocation lives in the
       refresh-token tier (auth/refresh.py).

  Validation order matters. The signature is checked (algorithm pinned to
       HS256) before any claim is read. Only then are exp, iss and sub
       trusted. A correctly signed but expired token is still rejected.

  Failure kinds stay distinct (BadSignatureError / AccessTokenExpiredError /
       MalformedTokenError) for logging. The route layer maps all of them to
       the same 401.

The secret is passed in explicitly rather than read from Settings so the codec
stays a pure function of its inputs.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timedelta, timezone

from jose import jws, jwt
from jose.exceptions import ExpiredSignatureError, JWSError, JWTError
from jose.utils import base64url_decode

from auth.errors import AccessTokenExpiredError, BadSignatureError, MalformedTokenError

ISSUER = "chirpy"

_ALGORITHM = "HS256"

_DECODE_OPTIONS = {
    "require_iat": True,
    "require_exp": True,
    "require_iss": True,
    "require_sub": True,
    "verify_aud": False,
}


def create_access_token(
    subject: uuid.UUID,
    secret: str,
    expires_in: timedelta,
    *,
    now: datetime | None = None,
) -> str:
    """Encode a signed JWT for subject that expires expires_in after now.

    Args:
        subject:    User ID stored as the JWT sub claim.
        secret:     HS256 signing key.
        expires_in: Lifetime of the token. A negative value yields a token
                    that is already expired.
        now:        Issue time. Defaults to the current UTC time; pass it
                    explicitly to get a deterministic token.
    """
    issued_at = now or datetime.now(timezone.utc)
    claims = {
        "iss": ISSUER,
        "sub": str(subject),
        "iat": issued_at,
        "exp": issued_at + expires_in,
    }
    return jwt.encode(claims, secret, algorithm=_ALGORITHM)


def validate_access_token(token: str, secret: str) -> uuid.UUID:
    """Verify a JWT and return its subject as a UUID.

    Raises:
        MalformedTokenError:     not a three-segment JWT, missing or invalid
                                 claims, wrong issuer, or sub is not a UUID.
        BadSignatureError:       signature does not match secret (tampering,
                                 wrong key, or an alg other than HS256).
        AccessTokenExpiredError: signature is good but exp is in the past.
    """
    _check_shape(token)

    try:
        jws.verify(token, secret, algorithms=[_ALGORITHM])
    except JWSError as exc:
        raise BadSignatureError("Access token signature is invalid.") from exc

    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[_ALGORITHM],
            issuer=ISSUER,
            options=_DECODE_OPTIONS,
        )
    except ExpiredSignatureError as exc:
        raise AccessTokenExpiredError("Access token has expired.") from exc
    except JWTError as exc:
        raise MalformedTokenError(f"Access token claims are invalid: {exc}") from exc

    try:
        return uuid.UUID(claims["sub"])
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedTokenError("Access token subject is not a valid user ID.") from exc


def _check_shape(token: str) -> None:
    """Reject strings that are not a compact JWS before the key is used.

    Only the segment count and the header are inspected. The payload is left
    to jws.verify, so any edit to it surfaces as a bad signature, even one
    that also breaks its base64url encoding.
    """
    if token.count(".") < 2:
        raise MalformedTokenError("Access token is not a well-formed JWT.")
    header_segment = token.split(".", 1)[0]
    try:
        header = json.loads(base64url_decode(header_segment.encode("ascii")))
    except ValueError as exc:
        raise MalformedTokenError("Access token header is not valid JSON.") from exc
    if not isinstance(header, dict):
        raise MalformedTokenError("Access token header is not a JSON object.")
