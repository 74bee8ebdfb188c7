"""
tests/test_webhooks.py -- POST /api/polka/webhooks and the Chirpy Red flag.

Covers:
  - new accounts are not Chirpy Red; the flag shows on user and login views
  - user.upgraded sets the flag (204), repeat delivery is harmless
  - other events are acknowledged without touching any user
  - unknown user -> 404, malformed user id -> 400
  - X-API-Key is enforced only when POLKA_KEY is configured
"""

from __future__ import annotations

import uuid

import pytest

from core.config import get_settings

PASSWORD = "hunter2"


def _event(user_id: str, event: str = "user.upgraded") -> dict:
    return {"event": event, "data": {"user_id": user_id}}


@pytest.fixture
def account(api_client):
    resp = api_client.client.post("/api/users", json={"email": "saul@example.com", "password": PASSWORD})
    assert resp.status_code == 201
    return api_client, resp.json()


def test_new_user_is_not_chirpy_red(account) -> None:
    _, user = account
    assert user["is_chirpy_red"] is False


def test_upgrade_sets_flag(account) -> None:
    harness, user = account
    resp = harness.client.post("/api/polka/webhooks", json=_event(user["id"]))
    assert resp.status_code == 204
    assert harness.user_store.get_by_id(uuid.UUID(user["id"])).is_chirpy_red is True

    login = harness.client.post("/api/login", json={"email": "saul@example.com", "password": PASSWORD})
    assert login.json()["is_chirpy_red"] is True


def test_repeat_delivery_is_harmless(account) -> None:
    harness, user = account
    assert harness.client.post("/api/polka/webhooks", json=_event(user["id"])).status_code == 204
    assert harness.client.post("/api/polka/webhooks", json=_event(user["id"])).status_code == 204


def test_other_events_are_ignored(account) -> None:
    harness, user = account
    resp = harness.client.post("/api/polka/webhooks", json=_event(user["id"], event="user.payment_failed"))
    assert resp.status_code == 204
    assert harness.user_store.get_by_id(uuid.UUID(user["id"])).is_chirpy_red is False


def test_other_events_need_no_data(api_client) -> None:
    resp = api_client.client.post("/api/polka/webhooks", json={"event": "user.deleted"})
    assert resp.status_code == 204


def test_unknown_user_is_404(api_client) -> None:
    resp = api_client.client.post("/api/polka/webhooks", json=_event(str(uuid.uuid4())))
    assert resp.status_code == 404


def test_malformed_user_id_is_400(api_client) -> None:
    resp = api_client.client.post("/api/polka/webhooks", json=_event("not-a-uuid"))
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "invalid_user_id"


class TestApiKey:
    @pytest.fixture(autouse=True)
    def _configure_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(get_settings(), "polka_key", "f271c81ff7084ee5b99a5091b42d486e")

    def test_missing_key_rejected(self, account) -> None:
        harness, user = account
        resp = harness.client.post("/api/polka/webhooks", json=_event(user["id"]))
        assert resp.status_code == 401
        assert harness.user_store.get_by_id(uuid.UUID(user["id"])).is_chirpy_red is False

    def test_wrong_key_rejected(self, account) -> None:
        harness, user = account
        resp = harness.client.post("/api/polka/webhooks", json=_event(user["id"]), headers={"X-API-Key": "nope"})
        assert resp.status_code == 401

    def test_correct_key_accepted(self, account) -> None:
        harness, user = account
        resp = harness.client.post(
            "/api/polka/webhooks",
            json=_event(user["id"]),
            headers={"X-API-Key": "f271c81ff7084ee5b99a5091b42d486e"},
        )
        assert resp.status_code == 204
