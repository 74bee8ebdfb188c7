"""
API request and response models for Chirpy REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from auth.models import User
from chirps.models import Chirp

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class UserCredentials(BaseModel):
    """Request body for POST /api/users and PUT /api/users.

    Email is stripped and lowercased so lookups are case-insensitive. The
    password is taken verbatim; whitespace in it is significant.
    """

    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=1, max_length=1024)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class LoginRequest(UserCredentials):
    """Request body for POST /api/login.

    expires_in_seconds is honoured only when it is positive and not longer than
    the configured access-token lifetime. Otherwise the default applies.
    """

    expires_in_seconds: Optional[int] = None


class ChirpCreate(BaseModel):
    """Request body for POST /api/chirps.

    Length is checked in the route (400, not 422) after the author is known.
    """

    body: str


class PolkaWebhookData(BaseModel):
    user_id: str = ""


class PolkaWebhook(BaseModel):
    """Request body for POST /api/polka/webhooks.

    Only the "user.upgraded" event carries meaning. Other events are
    acknowledged and ignored, so data may be absent for them.
    """

    event: str
    data: PolkaWebhookData = Field(default_factory=PolkaWebhookData)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserResponse(BaseModel):
    """Public view of a user. The password hash is never included."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    is_chirpy_red: bool = False
    created_at: str
    updated_at: str

    @classmethod
    def from_user(cls, user: User) -> "UserResponse":
        return cls(
            id=str(user.id),
            email=user.email,
            is_chirpy_red=user.is_chirpy_red,
            created_at=user.created_at.isoformat() if user.created_at else "",
            updated_at=user.updated_at.isoformat() if user.updated_at else "",
        )


class LoginResponse(UserResponse):
    """Response for POST /api/login: user view plus both tokens."""

    token: str
    refresh_token: str


class ChirpResponse(BaseModel):
    """Public view of a chirp."""

    model_config = ConfigDict(frozen=True)

    id: str
    created_at: str
    updated_at: str
    body: str
    user_id: str

    @classmethod
    def from_chirp(cls, chirp: Chirp) -> "ChirpResponse":
        return cls(
            id=str(chirp.id),
            created_at=chirp.created_at.isoformat() if chirp.created_at else "",
            updated_at=chirp.updated_at.isoformat() if chirp.updated_at else "",
            body=chirp.body,
            user_id=str(chirp.user_id),
        )


class TokenResponse(BaseModel):
    """Response for POST /api/refresh."""

    model_config = ConfigDict(frozen=True)

    token: str


class ResetResponse(BaseModel):
    """Response for POST /admin/reset."""

    model_config = ConfigDict(frozen=True)

    users_deleted: int


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/healthz."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
