"""HTTP calls to the Memberful OAuth provider.

Three calls, all blocking and single-attempt:

  POST /oauth/token              grant_type=authorization_code
  GET  /api/graphql/member       Authorization: Bearer <access_token>
  POST /oauth/token              grant_type=refresh_token

The httpx.Client is injected so tests can hand in one backed by
httpx.MockTransport. Timeouts are configured on that client.

Every method returns the decoded JSON body unchanged and raises
httpx.HTTPError (transport failure, timeout, non-2xx status) or
ValueError (body is not JSON). Nothing here logs tokens or the secret.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

TOKEN_PATH = "/oauth/token"
MEMBER_GRAPHQL_PATH = "/api/graphql/member"

# Fields of the authenticated member we ask Memberful for.
# More queries: https://memberful.com/help/custom-development-and-api/memberful-api/
MEMBER_QUERY = """
{
  currentMember {
    id
    email
    fullName
    subscriptions {
      active
      expiresAt
      plan {
        id
        name
      }
    }
  }
}
"""


def build_http_client(timeout_sec: float) -> httpx.Client:
    return httpx.Client(timeout=httpx.Timeout(timeout_sec), follow_redirects=False)


class MemberfulClient:
    def __init__(
        self,
        http: httpx.Client,
        *,
        base_url: str,
        client_id: str,
        client_secret: str,
    ) -> None:
        self._http = http
        self._base_url = base_url.rstrip("/")
        self._client_id = client_id
        self._client_secret = client_secret

    def exchange_code(self, code: str) -> dict[str, Any]:
        """Trade an authorization code for an access/refresh token pair."""
        return self._post_token(
            {
                "grant_type": "authorization_code",
                "code": code,
                "client_id": self._client_id,
                "client_secret": self._client_secret,
            }
        )

    def fetch_member(self, access_token: str) -> dict[str, Any]:
        """Run MEMBER_QUERY on behalf of the member owning *access_token*."""
        response = self._http.get(
            f"{self._base_url}{MEMBER_GRAPHQL_PATH}",
            params={"query": MEMBER_QUERY},
            headers={"Authorization": f"Bearer {access_token}"},
        )
        return self._decode(response)

    def refresh(self, refresh_token: str) -> dict[str, Any]:
        """Trade a refresh token for a new token pair.

        Access tokens live about 15 minutes, refresh tokens about a year.
        """
        return self._post_token(
            {
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": self._client_id,
                "client_secret": self._client_secret,
            }
        )

    def _post_token(self, body: dict[str, str]) -> dict[str, Any]:
        response = self._http.post(f"{self._base_url}{TOKEN_PATH}", json=body)
        return self._decode(response)

    @staticmethod
    def _decode(response: httpx.Response) -> dict[str, Any]:
        logger.debug(
            "Provider responded  %s %s → %d",
            response.request.method,
            response.request.url.path,
            response.status_code,
        )
        response.raise_for_status()
        payload = response.json()
        if not isinstance(payload, dict):
            raise ValueError(
                f"expected a JSON object from {response.request.url.path}, "
                f"got {type(payload).__name__}"
            )
        return payload
