"""
tests/conftest.py -- Shared test fixtures for Chirpy tests.

This module provides:
  - FakeClock: a settable clock for refresh-token expiry without sleeping
  - store / refresh_store / clock: unit-level fixtures over an in-memory DB
  - api_client: TestClient wired to an isolated in-memory DB and a fake clock

In-memory SQLite URLs get a StaticPool in UserStore, so route handlers on the
thread pool and the test body all see the same database.

The app lifespan is swapped for the duration of one api_client test and put
back afterwards, so a test that builds its own TestClient sees the real one.

Environment must be set before any auth/core import:
  DEBUG=true     lets get_settings() auto-generate SECRET_KEY
  PLATFORM=dev   enables POST /admin/reset
  ARGON2_*       cheap hashing parameters so the suite stays fast
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

# CRITICAL: Set env before any auth/core import so get_settings() picks it up.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("PLATFORM", "dev")
os.environ.setdefault("ARGON2_TIME_COST", "1")
os.environ.setdefault("ARGON2_MEMORY_COST", "1024")
os.environ.setdefault("ARGON2_PARALLELISM", "1")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from api.metrics import HitCounter
from auth.models import User
from auth.passwords import hash_password
from auth.refresh import RefreshTokenStore
from auth.store import UserStore
from chirps.store import ChirpStore

# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Callable clock returning a fixed aware UTC datetime until advanced."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def user(store: UserStore) -> User:
    """A persisted user with password 'hunter2'."""
    u = User(email="walt@example.com", hashed_password=hash_password("hunter2"))
    store.create_user(u)
    return u


@pytest.fixture
def chirp_store(store: UserStore) -> ChirpStore:
    return ChirpStore(store.engine)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def refresh_store(store: UserStore, clock: FakeClock) -> RefreshTokenStore:
    return RefreshTokenStore(store, ttl=timedelta(days=60), clock=clock)


# ---------------------------------------------------------------------------
# Integration fixture
# ---------------------------------------------------------------------------


@dataclass
class ApiHarness:
    client: TestClient
    user_store: UserStore
    chirp_store: ChirpStore
    hit_counter: HitCounter
    clock: FakeClock


def _patch_lifespan(harness_state: dict):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        for name, value in harness_state.items():
            setattr(app.state, name, value)
        yield

    return test_lifespan


@pytest.fixture
def api_client() -> Generator[ApiHarness, None, None]:
    """Yield an ApiHarness over a fresh database per test.

    base_url uses localhost so TrustedHostMiddleware accepts the requests.
    The refresh store runs on a FakeClock so tests can jump past expiry.
    """
    user_store = UserStore("sqlite:///:memory:")
    fake_clock = FakeClock(datetime.now(timezone.utc))
    state = {
        "user_store": user_store,
        "refresh_store": RefreshTokenStore(user_store, ttl=timedelta(days=60), clock=fake_clock),
        "chirp_store": ChirpStore(user_store.engine),
        "hit_counter": HitCounter(),
    }

    real_lifespan = app.router.lifespan_context
    app.router.lifespan_context = _patch_lifespan(state)
    try:
        with TestClient(app, base_url="http://localhost", raise_server_exceptions=True) as client:
            yield ApiHarness(
                client=client,
                user_store=user_store,
                chirp_store=state["chirp_store"],
                hit_counter=state["hit_counter"],
                clock=fake_clock,
            )
    finally:
        app.router.lifespan_context = real_lifespan
        user_store.close()
