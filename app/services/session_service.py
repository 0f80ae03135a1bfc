"""Signed browser-session cookie (ES256 JWT).

The cookie identifies the browser across the redirect round-trip to
Memberful so the callback can find the state that this browser, and only
this browser, was issued. It carries nothing but a random session id.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

import jwt
from cryptography.hazmat.primitives.asymmetric import ec

# ---------------------------------------------------------------------------
# Key management
# ---------------------------------------------------------------------------
# Ephemeral EC key pair generated on import. A restart invalidates every
# session cookie, which only means in-flight flows have to start over.
_private_key = ec.generate_private_key(ec.SECP256R1())
_public_key = _private_key.public_key()

ALGORITHM = "ES256"
ISSUER = "memberful-oauth-demo"
SESSION_AUDIENCE = "memberful-oauth-demo-session"
# Floor for the cookie lifetime; stretched to cover a longer state TTL.
SESSION_TTL_SEC = 30 * 60

COOKIE_NAME = "session"


def new_session_id() -> str:
    return str(uuid.uuid4())


def create_session_token(
    *, session_id: str, ttl_seconds: int = SESSION_TTL_SEC
) -> str:
    """Build and sign a session JWT for the session cookie."""
    now = datetime.now(UTC)
    payload = {
        "sub": session_id,
        "iss": ISSUER,
        "aud": SESSION_AUDIENCE,
        "exp": now + timedelta(seconds=ttl_seconds),
        "iat": now,
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, _private_key, algorithm=ALGORITHM)


def decode_session_token(token: str) -> dict:
    """Verify a session JWT. Pins algorithm and audience.

    Raises jwt.ExpiredSignatureError, jwt.InvalidTokenError on failure.
    """
    return jwt.decode(
        token,
        _public_key,
        algorithms=[ALGORITHM],
        issuer=ISSUER,
        audience=SESSION_AUDIENCE,
        options={"require": ["sub", "exp", "iat", "jti"]},
    )
