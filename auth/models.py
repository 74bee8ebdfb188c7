"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, one derived property at most).
Stores and routes do the work.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class User:
    """A Chirpy account.

    email is stored lowercased; the store enforces uniqueness.
    hashed_password is an Argon2id PHC string produced by auth.passwords.
    It is never logged or returned by the API.
    is_chirpy_red flips to True when the billing webhook reports an upgrade.
    """

    email: str
    hashed_password: str
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    is_chirpy_red: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class RefreshToken:
    """A persisted, long-lived, revocable credential.

    State is derived, never stored as a column:
    - revoked once revoked_at is set (terminal, never cleared)
    - expired once now > expires_at (terminal, no row mutation)
    - active otherwise

    All timestamps are timezone-aware UTC.
    """

    token: str  # 64 hex chars, primary key
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    expires_at: datetime
    revoked_at: datetime | None = None

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at
