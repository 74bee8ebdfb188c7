"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper.
UserStore is the repository; _row_to_user / _row_to_refresh_token are the
mappers. Route and service code never touches SQL directly.

UserStore satisfies auth.refresh.RefreshTokenRepository. The refresh-token
service only needs insert / get / mark-revoked by primary key.

Security:
  All queries use bound parameters. No f-strings in SQL.

  mark_refresh_token_revoked() is a single conditional UPDATE
  (WHERE token = ? AND revoked_at IS NULL). Two concurrent revokes of the same
  token cannot both succeed, and revoked_at is never overwritten.

Timestamps are stored as ISO 8601 UTC strings and mapped back to aware
datetimes.

refresh_tokens.user_id (and chirps.user_id, see chirps/store.py) references
users.id ON DELETE CASCADE. SQLite only honours that with
PRAGMA foreign_keys=ON, which is set on every connection.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, ForeignKey, MetaData, String, Table, Text, create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from auth.models import RefreshToken, User

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

# Shared with chirps/store.py so chirps.user_id can reference users.id.
metadata = MetaData()

_users = Table(
    "users",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("is_chirpy_red", Boolean, nullable=False, default=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_refresh_tokens = Table(
    "refresh_tokens",
    metadata,
    Column("token", String(64), primary_key=True),
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
    Column("expires_at", String(32), nullable=False),
    Column("revoked_at", String(32)),  # NULL = not revoked
)


# ---------------------------------------------------------------------------
# SQLite pragmas
# ---------------------------------------------------------------------------


def _set_sqlite_pragmas(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode and foreign key enforcement.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _to_iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


def _from_iso(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _is_memory_url(db_url: str) -> bool:
    return db_url in ("sqlite://", "sqlite:///") or ":memory:" in db_url or "mode=memory" in db_url


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User and RefreshToken rows.

    Usage:
        store = UserStore("sqlite:///:memory:")
        user_id = store.create_user(User(email="a@example.com", hashed_password=hash_password("pw")))
        user = store.get_by_email("a@example.com")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        engine_kwargs: dict = {}
        if db_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_url(db_url):
                # One connection for every thread, or each thread gets an empty database.
                engine_kwargs["poolclass"] = StaticPool
        self.engine: Engine = create_engine(db_url, **engine_kwargs)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_sqlite_pragmas)
        metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # User queries
    # ------------------------------------------------------------------

    def create_user(self, user: User) -> uuid.UUID:
        """Insert a new user and return its ID.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        The route layer turns that into a 409.
        """
        now = _to_iso(_now())
        with self.engine.connect() as conn:
            conn.execute(
                _users.insert().values(
                    id=str(user.id),
                    email=user.email,
                    hashed_password=user.hashed_password,
                    is_chirpy_red=user.is_chirpy_red,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return user.id

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email. Callers lowercase before calling."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: uuid.UUID) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == str(user_id))).fetchone()
        return _row_to_user(row) if row is not None else None

    def update_credentials(self, user_id: uuid.UUID, email: str, hashed_password: str) -> User | None:
        """Replace a user's email and password hash.

        Returns the updated User, or None if user_id was not found.
        Raises IntegrityError if the new email belongs to another account.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == str(user_id))
                .values(email=email, hashed_password=hashed_password, updated_at=_to_iso(_now()))
            )
            conn.commit()
        if result.rowcount == 0:
            return None
        return self.get_by_id(user_id)

    def update_password_hash(self, user_id: uuid.UUID, hashed_password: str) -> None:
        """Swap in a re-hashed password after an Argon2 parameter change."""
        with self.engine.connect() as conn:
            conn.execute(
                _users.update()
                .where(_users.c.id == str(user_id))
                .values(hashed_password=hashed_password, updated_at=_to_iso(_now()))
            )
            conn.commit()

    def upgrade_to_chirpy_red(self, user_id: uuid.UUID) -> bool:
        """Set is_chirpy_red on a user. Returns False if user_id was not found.

        Upgrading an account that is already Chirpy Red is a no-op that still
        returns True, so a redelivered webhook is harmless.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == str(user_id))
                .values(is_chirpy_red=True, updated_at=_to_iso(_now()))
            )
            conn.commit()
        return result.rowcount > 0

    def delete_all_users(self) -> int:
        """Delete every user. Refresh tokens and chirps go with them via ON DELETE CASCADE.

        Dev-only reset. Returns the number of users removed.
        """
        with self.engine.connect() as conn:
            result = conn.execute(_users.delete())
            conn.commit()
        return result.rowcount

    # ------------------------------------------------------------------
    # Refresh token queries
    # ------------------------------------------------------------------

    def insert_refresh_token(
        self,
        token: str,
        user_id: uuid.UUID,
        created_at: datetime,
        expires_at: datetime,
    ) -> None:
        """Insert a new, unrevoked refresh token row.

        Raises IntegrityError on a duplicate token value or an unknown user_id.
        """
        created = _to_iso(created_at)
        with self.engine.connect() as conn:
            conn.execute(
                _refresh_tokens.insert().values(
                    token=token,
                    user_id=str(user_id),
                    created_at=created,
                    updated_at=created,
                    expires_at=_to_iso(expires_at),
                    revoked_at=None,
                )
            )
            conn.commit()

    def get_refresh_token(self, token: str) -> RefreshToken | None:
        """Look up a refresh token row by its value. O(1) via primary key."""
        with self.engine.connect() as conn:
            row = conn.execute(_refresh_tokens.select().where(_refresh_tokens.c.token == token)).fetchone()
        return _row_to_refresh_token(row) if row is not None else None

    def mark_refresh_token_revoked(self, token: str, revoked_at: datetime) -> bool:
        """Set revoked_at on a token that exists and is not yet revoked.

        Returns True if this call revoked it, False if the token does not
        exist or was already revoked.
        """
        stamp = _to_iso(revoked_at)
        with self.engine.connect() as conn:
            result = conn.execute(
                _refresh_tokens.update()
                .where((_refresh_tokens.c.token == token) & (_refresh_tokens.c.revoked_at.is_(None)))
                .values(revoked_at=stamp, updated_at=stamp)
            )
            conn.commit()
        return result.rowcount > 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /api/healthz."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError:
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=uuid.UUID(row.id),
        email=row.email,
        hashed_password=row.hashed_password,
        is_chirpy_red=bool(row.is_chirpy_red),
        created_at=_from_iso(row.created_at),
        updated_at=_from_iso(row.updated_at),
    )


def _row_to_refresh_token(row) -> RefreshToken:
    return RefreshToken(
        token=row.token,
        user_id=uuid.UUID(row.user_id),
        created_at=_from_iso(row.created_at),
        updated_at=_from_iso(row.updated_at),
        expires_at=_from_iso(row.expires_at),
        revoked_at=_from_iso(row.revoked_at),
    )
