from __future__ import annotations

import json
from collections.abc import Iterator
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from fastapi.testclient import TestClient

from app.api import oauth
from app.api.dependencies import get_memberful_client
from app.core.config import SETTINGS
from app.main import app
from app.services.provider_client import MemberfulClient

PROVIDER_URL = "https://provider.test"
CLIENT_ID = "test-client-id"
CLIENT_SECRET = "test-client-secret-value"

TOKEN_RESPONSE = {
    "access_token": "d4b39Hjxo2m1aPiiLwuZyh6R",
    "expires_in": 899,
    "refresh_token": "J5P7AX7b6L9LTiWEbShzheNV",
    "token_type": "bearer",
}

REFRESH_RESPONSE = {
    "access_token": "wMGRkW7ahw1vFNctr1uCzLQd",
    "expires_in": 899,
    "refresh_token": "AgKtiGrPiBAKtsPGx4kKduuk",
    "token_type": "bearer",
}

MEMBER_RESPONSE = {
    "currentMember": {
        "id": "2406643",
        "email": "member@example.com",
        "fullName": "Zam",
        "subscriptions": [
            {
                "plan": {"id": "65673", "name": "One time success"},
                "active": True,
                "expiresAt": None,
            }
        ],
    }
}


class FakeProvider:
    """Stands in for Memberful behind an httpx.MockTransport.

    Records every request. Each step answers with the (status, body) pair
    stored under its key; tests overwrite an entry to make a step fail.
    """

    def __init__(self) -> None:
        self.calls: list[httpx.Request] = []
        self.responses: dict[str, tuple[int, object]] = {
            "authorization_code": (200, TOKEN_RESPONSE),
            "member": (200, MEMBER_RESPONSE),
            "refresh_token": (200, REFRESH_RESPONSE),
        }

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if request.url.path == "/oauth/token":
            key = json.loads(request.content)["grant_type"]
        elif request.url.path == "/api/graphql/member":
            key = "member"
        else:
            return httpx.Response(404, json={"error": "not_found"})
        status_code, body = self.responses[key]
        return httpx.Response(status_code, json=body)

    def client(self) -> MemberfulClient:
        return MemberfulClient(
            httpx.Client(transport=httpx.MockTransport(self.handler)),
            base_url=PROVIDER_URL,
            client_id=CLIENT_ID,
            client_secret=CLIENT_SECRET,
        )


@pytest.fixture(autouse=True)
def reset_state_repo() -> None:
    """Clear pending states between tests."""
    oauth.state_repo._by_session_id.clear()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def client(provider: FakeProvider) -> Iterator[TestClient]:
    app.dependency_overrides[get_memberful_client] = provider.client
    try:
        yield TestClient(app, follow_redirects=False)
    finally:
        app.dependency_overrides.clear()


def begin_flow(client: TestClient) -> str:
    """Hit the initiator route and return the state from the redirect."""
    resp = client.get(SETTINGS.begin_oauth_flow_path)
    assert resp.status_code == 302
    query = parse_qs(urlparse(resp.headers["location"]).query)
    return query["state"][0]
