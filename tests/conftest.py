"""
Shared test fixtures.

Provides the core services wired to:
  • an in-memory store driven by a fake clock
  • a recording code sender (no SMS, codes are readable by tests)
  • a temporary SQLite database

The `client` fixture runs the full app lifespan against the same wiring,
with the per-client-address limiter disabled.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from otp_auth.db import UserRepository
from otp_auth.main import create_app
from otp_auth.services.otp import OTPService
from otp_auth.services.registry import ServiceRegistry
from otp_auth.services.store import MemoryStore
from otp_auth.services.tokens import TokenService
from tests.mocks.flows import login
from tests.mocks.models import TEST_JWT_SECRET, TEST_TOKEN_EXPIRATION
from tests.mocks.services import FakeClock, RecordingCodeSender, make_otp_service

# ── Core services ──────────────────────────────────────────────────────────


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def store(clock: FakeClock) -> MemoryStore:
    return MemoryStore(clock=clock)


@pytest.fixture()
def sender() -> RecordingCodeSender:
    return RecordingCodeSender()


@pytest.fixture()
def otp_service(store: MemoryStore, sender: RecordingCodeSender) -> OTPService:
    return make_otp_service(store, sender)


@pytest.fixture()
def token_service() -> TokenService:
    return TokenService(TEST_JWT_SECRET, expiration_seconds=TEST_TOKEN_EXPIRATION)


@pytest.fixture()
async def user_repo(tmp_path):
    repo = UserRepository(str(tmp_path / "users.db"))
    await repo.connect()
    yield repo
    await repo.close()


# ── HTTP ───────────────────────────────────────────────────────────────────


@pytest.fixture()
def _test_env(monkeypatch):
    """Disable the per-client-address limiter for API tests."""
    import otp_auth.config as config_mod

    monkeypatch.setattr(config_mod, "ENABLE_RATE_LIMIT", False)


@pytest.fixture()
def services_factory(tmp_path, clock: FakeClock, sender: RecordingCodeSender):
    """Factory handed to create_app(); builds test wiring inside the lifespan."""

    def _factory() -> ServiceRegistry:
        store = MemoryStore(clock=clock)
        return ServiceRegistry(
            store,
            UserRepository(str(tmp_path / "api.db")),
            sender=sender,
            tokens=TokenService(TEST_JWT_SECRET, expiration_seconds=TEST_TOKEN_EXPIRATION),
            otp=make_otp_service(store, sender),
        )

    return _factory


@pytest.fixture()
def client(_test_env, services_factory) -> TestClient:
    """TestClient with the lifespan running (DB open, services wired)."""
    with TestClient(create_app(services_factory), raise_server_exceptions=False) as tc:
        yield tc


@pytest.fixture()
def auth_headers(client: TestClient, sender: RecordingCodeSender) -> dict[str, str]:
    token = login(client, sender)["access_token"]
    return {"Authorization": f"Bearer {token}"}
