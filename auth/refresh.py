"""
auth/refresh.py -- Opaque, persisted, revocable refresh tokens.

A refresh token is 32 random bytes rendered as 64 hex characters (256 bits of
entropy, brute force infeasible). Unlike the access token it means nothing on
its own: every check goes to the repository row keyed by the token value.

Row lifecycle:

    Active --revoke()--> Revoked    terminal, revoked_at set once
    Active --time------> Expired    terminal, derived from now > expires_at

validate() reports NotFound, Revoked and Expired as separate errors (checked
in that order). Clients never see the difference; the log line does.

revoke() succeeds on any row that is not yet revoked, expired rows included.
Revoking a missing or already revoked token raises RefreshTokenNotFoundError
so callers can tell "nothing to revoke" from "revoked".

No in-process state or locking here. Atomicity of revoke is the repository's
job (see UserStore.mark_refresh_token_revoked). Storage errors surface as
PersistenceError immediately; there are no retries.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
import secrets
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError

from auth.errors import (
    PersistenceError,
    RefreshTokenExpiredError,
    RefreshTokenNotFoundError,
    RefreshTokenRevokedError,
)
from auth.models import RefreshToken

logger = logging.getLogger("chirpy.auth")

DEFAULT_REFRESH_TTL = timedelta(days=60)

_TOKEN_BYTES = 32


class RefreshTokenRepository(Protocol):
    """Row-level contract the refresh-token service needs from storage."""

    def insert_refresh_token(
        self,
        token: str,
        user_id: uuid.UUID,
        created_at: datetime,
        expires_at: datetime,
    ) -> None: ...

    def get_refresh_token(self, token: str) -> RefreshToken | None: ...

    def mark_refresh_token_revoked(self, token: str, revoked_at: datetime) -> bool: ...


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_refresh_token() -> str:
    """Return a new 64-hex-char token from the OS CSPRNG."""
    return secrets.token_hex(_TOKEN_BYTES)


class RefreshTokenStore:
    """Issue, validate and revoke refresh tokens against a repository.

    Args:
        repo:  Storage collaborator (UserStore in production).
        ttl:   Fixed lifetime from creation. Defaults to 60 days.
        clock: Returns the current aware UTC datetime. Tests inject a fake
               clock to move past expiry without sleeping.
    """

    def __init__(
        self,
        repo: RefreshTokenRepository,
        ttl: timedelta = DEFAULT_REFRESH_TTL,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repo = repo
        self._ttl = ttl
        self._clock = clock

    def issue(self, user_id: uuid.UUID) -> str:
        """Create and persist a refresh token for user_id.

        The token is only returned after the row is committed. On any storage
        error PersistenceError is raised and the generated value is discarded.
        """
        token = generate_refresh_token()
        now = self._clock()
        try:
            self._repo.insert_refresh_token(token, user_id, now, now + self._ttl)
        except SQLAlchemyError as exc:
            logger.error("Refresh token insert failed for user %s: %s", user_id, exc.__class__.__name__)
            raise PersistenceError("Could not store refresh token.") from exc
        return token

    def validate(self, token: str) -> uuid.UUID:
        """Return the owning user ID of an active refresh token.

        Raises RefreshTokenNotFoundError, RefreshTokenRevokedError or
        RefreshTokenExpiredError, in that order of precedence.
        """
        record = self._lookup(token)
        if record is None:
            raise RefreshTokenNotFoundError("Refresh token not found.")
        if record.is_revoked:
            raise RefreshTokenRevokedError("Refresh token has been revoked.")
        if record.is_expired(self._clock()):
            raise RefreshTokenExpiredError("Refresh token has expired.")
        return record.user_id

    def revoke(self, token: str) -> None:
        """Revoke a refresh token.

        Raises RefreshTokenNotFoundError if the token does not exist or is
        already revoked.
        """
        try:
            revoked = self._repo.mark_refresh_token_revoked(token, self._clock())
        except SQLAlchemyError as exc:
            logger.error("Refresh token revoke failed: %s", exc.__class__.__name__)
            raise PersistenceError("Could not revoke refresh token.") from exc
        if not revoked:
            raise RefreshTokenNotFoundError("No active refresh token to revoke.")

    def _lookup(self, token: str) -> RefreshToken | None:
        try:
            return self._repo.get_refresh_token(token)
        except SQLAlchemyError as exc:
            logger.error("Refresh token lookup failed: %s", exc.__class__.__name__)
            raise PersistenceError("Could not read refresh token.") from exc
