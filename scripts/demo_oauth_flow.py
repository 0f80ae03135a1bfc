"""Demo: walk lobby → begin → callback using FastAPI TestClient.

Memberful is replaced by an httpx.MockTransport, so no network or
credentials are needed. Run with:
    python scripts/demo_oauth_flow.py
"""

from __future__ import annotations

import json
from urllib.parse import parse_qs, urlparse

import httpx
from fastapi.testclient import TestClient

from app.api.dependencies import get_memberful_client
from app.core.config import SETTINGS
from app.main import app
from app.services.provider_client import MemberfulClient

TOKENS = {
    "access_token": "demo-access-1",
    "expires_in": 899,
    "refresh_token": "demo-refresh-1",
    "token_type": "bearer",
}
REFRESHED = {
    **TOKENS,
    "access_token": "demo-access-2",
    "refresh_token": "demo-refresh-2",
}
MEMBER = {
    "currentMember": {
        "id": "1",
        "email": "demo@example.com",
        "fullName": "Demo Member",
        "subscriptions": [],
    }
}


def _fake_memberful(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/api/graphql/member":
        return httpx.Response(200, json=MEMBER)
    grant = json.loads(request.content)["grant_type"]
    body = TOKENS if grant == "authorization_code" else REFRESHED
    return httpx.Response(200, json=body)


def main() -> None:
    app.dependency_overrides[get_memberful_client] = lambda: MemberfulClient(
        httpx.Client(transport=httpx.MockTransport(_fake_memberful)),
        base_url=SETTINGS.memberful_url,
        client_id=SETTINGS.client_id,
        client_secret=SETTINGS.client_secret,
    )
    client = TestClient(app, follow_redirects=False)

    # ── Step 1: lobby ───────────────────────────────────────────────
    r = client.get("/")
    print(f"1. GET  /                      → {r.status_code}  (lobby HTML)")

    # ── Step 2: begin the flow ──────────────────────────────────────
    r = client.get(SETTINGS.begin_oauth_flow_path)
    print(f"2. GET  begin-oauth-flow       → {r.status_code}  {r.headers['location']}")

    # ── Step 3: callback with a forged state ────────────────────────
    r = client.get(SETTINGS.callback_path, params={"code": "c", "state": "forged"})
    print(f"3. GET  callback (bad state)   → {r.status_code}  {r.text}")

    # ── Step 4: the forged attempt consumed the state; start again ──
    r = client.get(SETTINGS.begin_oauth_flow_path)
    state = parse_qs(urlparse(r.headers["location"]).query)["state"][0]
    r = client.get(
        SETTINGS.callback_path, params={"code": "demo-code", "state": state}
    )
    print(f"4. GET  callback (good state)  → {r.status_code}  (results)")

    print("\nAll steps completed.")


if __name__ == "__main__":
    main()
