"""Tests for the /api/v1/users endpoints."""

import pytest

from otp_auth.services.tokens import TokenService
from tests.mocks.flows import login
from tests.mocks.models import (
    MOCK_PHONE,
    MOCK_PHONE_2,
    MOCK_PHONE_3,
    OTHER_JWT_SECRET,
    TEST_JWT_SECRET,
)

USERS = "/api/v1/users"


@pytest.fixture()
def three_users(client, sender) -> list[dict]:
    """Register three users, oldest first."""
    return [login(client, sender, phone)["user"] for phone in (MOCK_PHONE, MOCK_PHONE_2, MOCK_PHONE_3)]


def _bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class TestAuthRequired:
    def test_no_header(self, client):
        resp = client.get(USERS)
        assert resp.status_code == 401
        assert resp.json()["error"] == "missing_token"
        assert resp.headers["WWW-Authenticate"] == "Bearer"

    def test_wrong_scheme(self, client):
        resp = client.get(USERS, headers={"Authorization": "Token abc"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "invalid_token_format"

    def test_invalid_token(self, client):
        resp = client.get(USERS, headers=_bearer("not-a-jwt"))
        assert resp.status_code == 401
        assert resp.json()["error"] == "invalid_token"

    def test_token_signed_with_other_secret(self, client, three_users):
        token = TokenService(OTHER_JWT_SECRET).issue(three_users[0]["id"])
        assert client.get(USERS, headers=_bearer(token)).status_code == 401

    def test_expired_token(self, client, three_users):
        service = TokenService(TEST_JWT_SECRET, expiration_seconds=-60)
        token = service.issue(three_users[0]["id"])
        assert client.get(USERS, headers=_bearer(token)).status_code == 401

    def test_single_user_requires_token(self, client, three_users):
        assert client.get(f"{USERS}/{three_users[0]['id']}").status_code == 401


class TestListUsers:
    def test_list_newest_first(self, client, auth_headers, three_users):
        resp = client.get(USERS, headers=auth_headers)
        assert resp.status_code == 200

        data = resp.json()
        assert [u["phone"] for u in data["users"]] == [MOCK_PHONE_3, MOCK_PHONE_2, MOCK_PHONE]
        assert data["pagination"] == {"page": 1, "limit": 10, "total": 3, "total_pages": 1}

    def test_list_oldest_first(self, client, auth_headers, three_users):
        resp = client.get(USERS, params={"sort": "registered_at:asc"}, headers=auth_headers)
        assert [u["id"] for u in resp.json()["users"]] == [u["id"] for u in three_users]

    def test_pagination(self, client, auth_headers, three_users):
        resp = client.get(
            USERS,
            params={"page": 2, "limit": 2, "sort": "registered_at:asc"},
            headers=auth_headers,
        )
        data = resp.json()
        assert [u["id"] for u in data["users"]] == [three_users[2]["id"]]
        assert data["pagination"] == {"page": 2, "limit": 2, "total": 3, "total_pages": 2}

    def test_page_past_the_end(self, client, auth_headers, three_users):
        resp = client.get(USERS, params={"page": 5}, headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json()["users"] == []

    def test_search_by_phone_substring(self, client, auth_headers, three_users):
        resp = client.get(USERS, params={"q": "3706"}, headers=auth_headers)
        data = resp.json()
        assert [u["phone"] for u in data["users"]] == [MOCK_PHONE_3]
        assert data["pagination"]["total"] == 1

    @pytest.mark.parametrize(
        "params",
        [
            {"page": 0},
            {"limit": 0},
            {"limit": 101},
            {"sort": "phone:asc"},
            {"q": "1" * 21},
        ],
    )
    def test_invalid_query_params(self, client, auth_headers, params):
        resp = client.get(USERS, params=params, headers=auth_headers)
        assert resp.status_code == 422


class TestGetUser:
    def test_get_user(self, client, auth_headers, three_users):
        target = three_users[1]
        resp = client.get(f"{USERS}/{target['id']}", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json() == target

    def test_get_unknown_user(self, client, auth_headers):
        resp = client.get(f"{USERS}/does-not-exist", headers=auth_headers)
        assert resp.status_code == 404
        assert resp.json()["error"] == "not_found"
