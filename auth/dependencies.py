"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

Two credentials travel in the same Authorization: Bearer <token> header:
  - access tokens (JWT) on every authenticated endpoint -> get_current_user()
  - refresh tokens (opaque hex) on /refresh and /revoke -> get_bearer_token()

Every failure kind from auth/ collapses into one 401 body here so a client
cannot tell which check failed. The specific kind is written to the log for
audit.

Layer rule: auth/dependencies.py may import from fastapi (for Depends and
HTTPException) because it is part of the FastAPI dependency injection system.
It does not import from api/.
"""

from __future__ import annotations

import logging
import uuid

from fastapi import Depends, HTTPException, Request

from auth.bearer import extract_bearer_token
from auth.errors import AccessTokenError, MissingOrMalformedHeaderError
from auth.models import User
from auth.refresh import RefreshTokenStore
from auth.store import UserStore
from auth.tokens import validate_access_token
from core.config import get_settings

logger = logging.getLogger("chirpy.auth")


def unauthorized(message: str = "Authentication required.") -> HTTPException:
    """Build the single 401 response shared by every auth failure."""
    return HTTPException(
        status_code=401,
        detail={"code": "unauthorized", "message": message},
    )


def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store


def get_refresh_store(request: Request) -> RefreshTokenStore:
    return request.app.state.refresh_store


def get_bearer_token(request: Request) -> str:
    """Return the raw token from the Authorization header, or raise 401."""
    try:
        return extract_bearer_token(request.headers.get("Authorization"))
    except MissingOrMalformedHeaderError as exc:
        logger.info("Rejected request to %s: %s", request.url.path, exc.code)
        raise unauthorized("Missing or invalid token.") from exc


def get_current_user_id(token: str = Depends(get_bearer_token)) -> uuid.UUID:
    """Validate the bearer access token and return its subject.

    Use as a FastAPI dependency:
        @router.put("/users")
        def route(user_id: uuid.UUID = Depends(get_current_user_id)): ...
    """
    try:
        return validate_access_token(token, get_settings().secret_key)
    except AccessTokenError as exc:
        logger.info("Access token rejected: %s", exc.code)
        raise unauthorized("Invalid token.") from exc


def get_current_user(
    user_id: uuid.UUID = Depends(get_current_user_id),
    user_store: UserStore = Depends(get_user_store),
) -> User:
    """Require a valid access token whose subject still exists.

    A token outlives a deleted account (it cannot be revoked), so the user row
    is re-checked here.
    """
    user = user_store.get_by_id(user_id)
    if user is None:
        logger.info("Access token subject %s no longer exists", user_id)
        raise unauthorized("Invalid token.")
    return user
