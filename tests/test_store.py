"""Unit tests for auth/store.py -- UserStore user and refresh token rows.

Covers:
- user create / lookup by email and id
- duplicate email -> IntegrityError
- update_credentials on existing and missing users
- mark_refresh_token_revoked is conditional (no double revoke)
- delete_all_users cascades to refresh tokens
- upgrade_to_chirpy_red is idempotent and misses unknown users
- an in-memory URL gets a StaticPool
- timestamps round-trip as aware UTC datetimes
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.pool import StaticPool

from auth.models import User
from auth.store import UserStore

NOW = datetime(2026, 5, 1, 9, 30, tzinfo=timezone.utc)


class TestUsers:
    def test_create_and_lookup(self, store: UserStore) -> None:
        u = User(email="a@example.com", hashed_password="$argon2id$placeholder")
        user_id = store.create_user(u)
        assert user_id == u.id

        by_email = store.get_by_email("a@example.com")
        by_id = store.get_by_id(u.id)
        assert by_email is not None and by_id is not None
        assert by_email.id == by_id.id == u.id
        assert by_email.created_at is not None
        assert by_email.created_at.tzinfo is not None

    def test_lookups_miss(self, store: UserStore) -> None:
        assert store.get_by_email("missing@example.com") is None
        assert store.get_by_id(uuid.uuid4()) is None

    def test_duplicate_email_rejected(self, store: UserStore) -> None:
        store.create_user(User(email="dup@example.com", hashed_password="x"))
        with pytest.raises(IntegrityError):
            store.create_user(User(email="dup@example.com", hashed_password="y"))

    def test_update_credentials(self, store: UserStore, user: User) -> None:
        updated = store.update_credentials(user.id, "new@example.com", "new-hash")
        assert updated is not None
        assert updated.email == "new@example.com"
        assert updated.hashed_password == "new-hash"
        assert store.get_by_email("walt@example.com") is None

    def test_update_credentials_missing_user(self, store: UserStore) -> None:
        assert store.update_credentials(uuid.uuid4(), "x@example.com", "h") is None

    def test_update_credentials_email_collision(self, store: UserStore, user: User) -> None:
        store.create_user(User(email="taken@example.com", hashed_password="x"))
        with pytest.raises(IntegrityError):
            store.update_credentials(user.id, "taken@example.com", "h")

    def test_ping(self, store: UserStore) -> None:
        assert store.ping() is True

    def test_memory_database_uses_one_shared_connection(self, store: UserStore) -> None:
        assert isinstance(store.engine.pool, StaticPool)

    def test_upgrade_to_chirpy_red(self, store: UserStore, user: User) -> None:
        assert store.upgrade_to_chirpy_red(user.id) is True
        assert store.get_by_id(user.id).is_chirpy_red is True
        assert store.upgrade_to_chirpy_red(user.id) is True
        assert store.upgrade_to_chirpy_red(uuid.uuid4()) is False


class TestRefreshTokenRows:
    def test_insert_and_get(self, store: UserStore, user: User) -> None:
        store.insert_refresh_token("a" * 64, user.id, NOW, NOW + timedelta(days=60))
        row = store.get_refresh_token("a" * 64)
        assert row is not None
        assert row.user_id == user.id
        assert row.created_at == NOW
        assert row.expires_at == NOW + timedelta(days=60)
        assert row.revoked_at is None
        assert row.is_revoked is False

    def test_get_missing(self, store: UserStore) -> None:
        assert store.get_refresh_token("b" * 64) is None

    def test_duplicate_token_rejected(self, store: UserStore, user: User) -> None:
        store.insert_refresh_token("c" * 64, user.id, NOW, NOW + timedelta(days=1))
        with pytest.raises(IntegrityError):
            store.insert_refresh_token("c" * 64, user.id, NOW, NOW + timedelta(days=1))

    def test_mark_revoked_only_once(self, store: UserStore, user: User) -> None:
        store.insert_refresh_token("d" * 64, user.id, NOW, NOW + timedelta(days=1))
        assert store.mark_refresh_token_revoked("d" * 64, NOW) is True
        assert store.mark_refresh_token_revoked("d" * 64, NOW + timedelta(hours=1)) is False
        assert store.get_refresh_token("d" * 64).revoked_at == NOW

    def test_mark_revoked_missing(self, store: UserStore) -> None:
        assert store.mark_refresh_token_revoked("e" * 64, NOW) is False

    def test_delete_all_users_cascades(self, store: UserStore, user: User) -> None:
        store.insert_refresh_token("f" * 64, user.id, NOW, NOW + timedelta(days=1))
        assert store.delete_all_users() == 1
        assert store.get_by_id(user.id) is None
        assert store.get_refresh_token("f" * 64) is None
