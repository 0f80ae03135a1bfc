from __future__ import annotations

import logging

import jwt
from fastapi import Request

from app.core.config import SETTINGS
from app.services import session_service
from app.services.provider_client import MemberfulClient

logger = logging.getLogger(__name__)


def get_memberful_client(request: Request) -> MemberfulClient:
    """Provider client bound to the process-wide httpx.Client.

    The httpx.Client is opened and closed by the app lifespan in main.py.
    Tests replace this dependency via ``app.dependency_overrides``.
    """
    return MemberfulClient(
        request.app.state.http_client,
        base_url=SETTINGS.memberful_url,
        client_id=SETTINGS.client_id,
        client_secret=SETTINGS.client_secret,
    )


def get_session_id(request: Request) -> str | None:
    """Return the session id from the session cookie, or None.

    A missing, expired or tampered cookie all read as "no session"; the
    caller decides what that means (new session vs. rejected callback).
    """
    cookie = request.cookies.get(session_service.COOKIE_NAME)
    if not cookie:
        return None
    try:
        claims = session_service.decode_session_token(cookie)
    except jwt.ExpiredSignatureError:
        logger.debug("Session cookie expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.debug("Session cookie rejected: %s", e)
        return None
    return claims["sub"]
