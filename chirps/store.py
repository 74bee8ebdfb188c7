"""
chirps/store.py -- SQLAlchemy Core persistence for chirps.

The chirps table lives in the same MetaData as users (auth/store.py), so
chirps.user_id can carry a real foreign key with ON DELETE CASCADE. For the
same reason ChirpStore does not open its own engine: it is handed the
UserStore engine, which already enables SQLite foreign keys per connection.

Pattern: Repository + Data Mapper, as in auth/store.py.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    chirps = ChirpStore(user_store.engine)
    chirp = chirps.create_chirp("hello", user.id)
    chirps.list_chirps()
    chirps.delete_chirp(chirp.id)
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, ForeignKey, String, Table, Text
from sqlalchemy.engine import Engine

from auth.store import metadata
from chirps.models import Chirp

_chirps = Table(
    "chirps",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("body", Text, nullable=False),
    Column("user_id", String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


def _now_iso() -> str:
    # Fixed microsecond precision keeps created_at strings sortable.
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


class ChirpStore:
    """Repository for Chirp rows.

    Raises sqlalchemy.exc.IntegrityError from create_chirp() when user_id
    does not reference an existing user.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        metadata.create_all(self.engine)

    def create_chirp(self, body: str, user_id: uuid.UUID) -> Chirp:
        chirp = Chirp(body=body, user_id=user_id)
        now = _now_iso()
        with self.engine.connect() as conn:
            conn.execute(
                _chirps.insert().values(
                    id=str(chirp.id),
                    body=chirp.body,
                    user_id=str(user_id),
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        chirp.created_at = chirp.updated_at = datetime.fromisoformat(now)
        return chirp

    def list_chirps(self) -> list[Chirp]:
        """Return every chirp, oldest first."""
        with self.engine.connect() as conn:
            rows = conn.execute(_chirps.select().order_by(_chirps.c.created_at.asc(), _chirps.c.id)).fetchall()
        return [_row_to_chirp(r) for r in rows]

    def get_chirp(self, chirp_id: uuid.UUID) -> Chirp | None:
        with self.engine.connect() as conn:
            row = conn.execute(_chirps.select().where(_chirps.c.id == str(chirp_id))).fetchone()
        return _row_to_chirp(row) if row is not None else None

    def delete_chirp(self, chirp_id: uuid.UUID) -> bool:
        """Delete one chirp. Returns False if it did not exist."""
        with self.engine.connect() as conn:
            result = conn.execute(_chirps.delete().where(_chirps.c.id == str(chirp_id)))
            conn.commit()
        return result.rowcount > 0


def _row_to_chirp(row) -> Chirp:
    return Chirp(
        id=uuid.UUID(row.id),
        body=row.body,
        user_id=uuid.UUID(row.user_id),
        created_at=datetime.fromisoformat(row.created_at),
        updated_at=datetime.fromisoformat(row.updated_at),
    )
