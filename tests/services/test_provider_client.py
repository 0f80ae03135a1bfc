from __future__ import annotations

import json

import httpx
import pytest

from app.services.provider_client import (
    MEMBER_QUERY,
    MemberfulClient,
    build_http_client,
)
from tests.conftest import (
    CLIENT_ID,
    CLIENT_SECRET,
    MEMBER_RESPONSE,
    PROVIDER_URL,
    REFRESH_RESPONSE,
    TOKEN_RESPONSE,
    FakeProvider,
)


def test_exchange_code_posts_json_grant(provider: FakeProvider) -> None:
    payload = provider.client().exchange_code("the-code")

    assert payload == TOKEN_RESPONSE
    (request,) = provider.calls
    assert request.method == "POST"
    assert str(request.url) == f"{PROVIDER_URL}/oauth/token"
    assert request.headers["content-type"] == "application/json"
    assert json.loads(request.content) == {
        "grant_type": "authorization_code",
        "code": "the-code",
        "client_id": CLIENT_ID,
        "client_secret": CLIENT_SECRET,
    }


def test_fetch_member_sends_bearer_and_query(provider: FakeProvider) -> None:
    payload = provider.client().fetch_member("access-123")

    assert payload == MEMBER_RESPONSE
    (request,) = provider.calls
    assert request.method == "GET"
    assert request.url.path == "/api/graphql/member"
    assert request.url.params["query"] == MEMBER_QUERY
    assert request.headers["authorization"] == "Bearer access-123"


def test_member_query_requests_profile_fields() -> None:
    for field in ("currentMember", "email", "fullName", "subscriptions", "plan"):
        assert field in MEMBER_QUERY


def test_refresh_posts_refresh_grant(provider: FakeProvider) -> None:
    payload = provider.client().refresh("refresh-456")

    assert payload == REFRESH_RESPONSE
    assert json.loads(provider.calls[0].content) == {
        "grant_type": "refresh_token",
        "refresh_token": "refresh-456",
        "client_id": CLIENT_ID,
        "client_secret": CLIENT_SECRET,
    }


def test_trailing_slash_in_base_url_is_ignored(provider: FakeProvider) -> None:
    client = MemberfulClient(
        httpx.Client(transport=httpx.MockTransport(provider.handler)),
        base_url=f"{PROVIDER_URL}/",
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
    )
    client.exchange_code("c")
    assert provider.calls[0].url.path == "/oauth/token"


def test_non_2xx_raises_http_status_error(provider: FakeProvider) -> None:
    provider.responses["authorization_code"] = (401, {"error": "invalid_client"})
    with pytest.raises(httpx.HTTPStatusError) as excinfo:
        provider.client().exchange_code("c")
    assert excinfo.value.response.status_code == 401


def test_non_json_body_raises_value_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    client = MemberfulClient(
        httpx.Client(transport=httpx.MockTransport(handler)),
        base_url=PROVIDER_URL,
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
    )
    with pytest.raises(ValueError):
        client.exchange_code("c")


def test_non_object_json_raises_value_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=["not", "an", "object"])

    client = MemberfulClient(
        httpx.Client(transport=httpx.MockTransport(handler)),
        base_url=PROVIDER_URL,
        client_id=CLIENT_ID,
        client_secret=CLIENT_SECRET,
    )
    with pytest.raises(ValueError, match="expected a JSON object"):
        client.fetch_member("t")


def test_build_http_client_applies_timeout() -> None:
    with build_http_client(2.5) as http:
        assert http.timeout.connect == 2.5
        assert http.timeout.read == 2.5
