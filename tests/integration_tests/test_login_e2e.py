from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from otp_auth.db import UserRepository
from otp_auth.main import create_app
from otp_auth.services.registry import ServiceRegistry
from otp_auth.services.sms import ConsoleCodeSender
from otp_auth.services.store import MemoryStore
from otp_auth.services.tokens import TokenService
from tests.mocks.models import MOCK_PHONE, TEST_JWT_SECRET
from tests.mocks.services import make_otp_service

_SMS_LOGGER = "otp_auth.services.sms"


def _codes_from_log(caplog, phone: str) -> list[str]:
    """Pull delivered codes out of the console sender's log records."""
    return [
        r.args[1]
        for r in caplog.records
        if r.name == _SMS_LOGGER and r.args and r.args[0] == phone
    ]


@pytest.fixture()
def e2e_client(_test_env, tmp_path, clock):
    """Full app with the console delivery channel, as run locally."""

    def _factory() -> ServiceRegistry:
        store = MemoryStore(clock=clock)
        sender = ConsoleCodeSender()
        return ServiceRegistry(
            store,
            UserRepository(str(tmp_path / "e2e.db")),
            sender=sender,
            tokens=TokenService(TEST_JWT_SECRET),
            otp=make_otp_service(store, sender),
        )

    with TestClient(create_app(_factory), raise_server_exceptions=False) as tc:
        yield tc


def _login(client: TestClient, caplog, phone: str = MOCK_PHONE) -> dict:
    resp = client.post("/api/v1/auth/request-otp", json={"phone": phone})
    assert resp.status_code == 200

    code = _codes_from_log(caplog, phone)[-1]
    resp = client.post("/api/v1/auth/verify-otp", json={"phone": phone, "otp": code})
    assert resp.status_code == 200, resp.text
    return resp.json()


def test_full_login_flow(e2e_client, caplog):
    caplog.set_level(logging.INFO, logger=_SMS_LOGGER)

    first = _login(e2e_client, caplog)
    headers = {"Authorization": f"Bearer {first['access_token']}"}

    # The token opens the protected routes
    me = e2e_client.get(f"/api/v1/users/{first['user']['id']}", headers=headers)
    assert me.status_code == 200
    assert me.json()["phone"] == MOCK_PHONE

    listing = e2e_client.get("/api/v1/users", headers=headers).json()
    assert listing["pagination"]["total"] == 1

    # A second login is the same user, not a new registration
    second = _login(e2e_client, caplog)
    assert second["user"]["id"] == first["user"]["id"]
    assert second["user"]["registered_at"] == first["user"]["registered_at"]
    assert e2e_client.get("/api/v1/users", headers=headers).json()["pagination"]["total"] == 1


def test_leading_zero_code_is_delivered_and_accepted(e2e_client, caplog, monkeypatch):
    caplog.set_level(logging.INFO, logger=_SMS_LOGGER)
    monkeypatch.setattr("otp_auth.services.otp.secrets.randbelow", lambda n: 42817)

    resp = e2e_client.post("/api/v1/auth/request-otp", json={"phone": MOCK_PHONE})
    assert resp.status_code == 200
    assert "042817" not in resp.text
    assert "042817" in caplog.text

    resp = e2e_client.post(
        "/api/v1/auth/verify-otp", json={"phone": MOCK_PHONE, "otp": "042817"}
    )
    assert resp.status_code == 200


def test_expired_code_needs_a_new_request(e2e_client, caplog, clock):
    caplog.set_level(logging.INFO, logger=_SMS_LOGGER)

    e2e_client.post("/api/v1/auth/request-otp", json={"phone": MOCK_PHONE})
    stale = _codes_from_log(caplog, MOCK_PHONE)[-1]
    clock.advance(121)

    resp = e2e_client.post("/api/v1/auth/verify-otp", json={"phone": MOCK_PHONE, "otp": stale})
    assert resp.status_code == 401

    _login(e2e_client, caplog)
