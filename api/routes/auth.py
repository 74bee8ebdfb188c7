"""
api/routes/auth.py -- Account, login and token lifecycle endpoints.

Routes:
  POST /api/users    -- create account (public)
  PUT  /api/users    -- change own email + password (access token)
  POST /api/login    -- password login; returns access + refresh tokens
  POST /api/refresh  -- mint a new access token (refresh token)
  POST /api/revoke   -- revoke a refresh token (refresh token); 204

Security:
  authenticate_user() provides timing equalization -- use it, never inline.
  Every authentication failure returns the same 401 body. The specific
  failure kind (bad_signature, expired, revoked, ...) goes to the log only.
  Cache-Control: no-store on every response that carries a token.

Handlers are plain def: Argon2 is CPU and memory bound, so FastAPI runs them
on its thread pool instead of blocking the event loop.
"""

from __future__ import annotations

import logging
import uuid
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError

from api.models import LoginRequest, LoginResponse, TokenResponse, UserCredentials, UserResponse
from auth.dependencies import (
    get_bearer_token,
    get_current_user,
    get_refresh_store,
    get_user_store,
    unauthorized,
)
from auth.errors import PersistenceError, RefreshTokenError, RefreshTokenRevokedError
from auth.models import User
from auth.passwords import authenticate_user, hash_password
from auth.refresh import RefreshTokenStore
from auth.store import UserStore
from auth.tokens import create_access_token
from core.config import get_settings

logger = logging.getLogger("chirpy.api")

# Auth policy:
# - POST /api/users:    public -- account creation
# - PUT  /api/users:    requires access token (get_current_user)
# - POST /api/login:    public -- login endpoint must be unauthenticated
# - POST /api/refresh:  requires refresh token in the Bearer header
# - POST /api/revoke:   requires refresh token in the Bearer header
router = APIRouter()


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@router.post("/users", response_model=UserResponse, status_code=201)
def create_user(
    body: UserCredentials,
    user_store: UserStore = Depends(get_user_store),
) -> UserResponse:
    """Create a new account from an email and password."""
    new_user = User(email=body.email, hashed_password=hash_password(body.password))
    try:
        user_id = user_store.create_user(new_user)
    except IntegrityError as exc:
        raise HTTPException(
            status_code=409,
            detail={"code": "conflict", "message": "A user with that email already exists."},
        ) from exc

    logger.info("Created user %s", user_id)
    return _user_to_response(user_store.get_by_id(user_id))


@router.put("/users", response_model=UserResponse)
def update_user(
    body: UserCredentials,
    current_user: User = Depends(get_current_user),
    user_store: UserStore = Depends(get_user_store),
) -> UserResponse:
    """Replace the caller's email and password. The caller is the token subject."""
    try:
        updated = user_store.update_credentials(current_user.id, body.email, hash_password(body.password))
    except IntegrityError as exc:
        raise HTTPException(
            status_code=409,
            detail={"code": "conflict", "message": "A user with that email already exists."},
        ) from exc
    return _user_to_response(updated)


# ---------------------------------------------------------------------------
# Login and token lifecycle
# ---------------------------------------------------------------------------


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    user_store: UserStore = Depends(get_user_store),
    refresh_store: RefreshTokenStore = Depends(get_refresh_store),
) -> JSONResponse:
    """Authenticate with email and password; return an access and a refresh token.

    Returns the same generic error for unknown email and wrong password to
    avoid leaking account existence.
    """
    user = authenticate_user(user_store, body.email, body.password)
    if user is None:
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": "unauthorized", "message": "Incorrect email or password."}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    settings = get_settings()
    token = create_access_token(user.id, settings.secret_key, _access_ttl(body.expires_in_seconds))
    refresh_token = refresh_store.issue(user.id)
    logger.info("User %s logged in, issued access and refresh token", user.id)

    view = UserResponse.from_user(user)
    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(**view.model_dump(), token=token, refresh_token=refresh_token).model_dump(),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/refresh", response_model=TokenResponse)
def refresh(
    token: str = Depends(get_bearer_token),
    refresh_store: RefreshTokenStore = Depends(get_refresh_store),
) -> JSONResponse:
    """Exchange an active refresh token for a new access token."""
    user_id = _validate_refresh_token(refresh_store, token)
    settings = get_settings()
    access = create_access_token(user_id, settings.secret_key, timedelta(seconds=settings.access_token_expire_seconds))
    resp = JSONResponse(status_code=200, content=TokenResponse(token=access).model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/revoke", status_code=204)
def revoke(
    token: str = Depends(get_bearer_token),
    refresh_store: RefreshTokenStore = Depends(get_refresh_store),
) -> Response:
    """Revoke a refresh token. Unknown or already revoked tokens get 401."""
    try:
        refresh_store.revoke(token)
    except PersistenceError:
        raise
    except RefreshTokenError as exc:
        logger.info("Refresh token revoke rejected: %s", exc.code)
        raise unauthorized("Invalid token.") from exc
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _access_ttl(requested_seconds: int | None) -> timedelta:
    """Clamp a client-requested lifetime to (0, configured maximum]."""
    maximum = get_settings().access_token_expire_seconds
    if requested_seconds is not None and 0 < requested_seconds <= maximum:
        return timedelta(seconds=requested_seconds)
    return timedelta(seconds=maximum)


def _validate_refresh_token(refresh_store: RefreshTokenStore, token: str) -> uuid.UUID:
    try:
        return refresh_store.validate(token)
    except PersistenceError:
        raise
    except RefreshTokenRevokedError as exc:
        # Reuse of a revoked token is worth a louder line than a typo.
        logger.warning("Revoked refresh token presented")
        raise unauthorized("Invalid token.") from exc
    except RefreshTokenError as exc:
        logger.info("Refresh token rejected: %s", exc.code)
        raise unauthorized("Invalid token.") from exc


def _user_to_response(user: User | None) -> UserResponse:
    if user is None:
        raise HTTPException(
            status_code=500,
            detail={"code": "internal_error", "message": "User not found after write."},
        )
    return UserResponse.from_user(user)
