from __future__ import annotations

import html
import json
import logging
from typing import Annotated
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse

from app.api.dependencies import get_memberful_client, get_session_id
from app.core.config import SETTINGS
from app.middleware.request_context import request_id_var
from app.repos.state_repo import InMemoryStateRepo
from app.services import session_service, state_service
from app.services.oauth_flow import FlowError, FlowErrorKind, FlowResult, complete_flow
from app.services.provider_client import MemberfulClient

# ---------------------------------------------------------------------------
# OAuth client - Memberful Authorization Code flow
#
# Endpoints (paths from settings):
#   GET  /begin-oauth-flow  - remember a state for this browser, redirect
#                             to Memberful's sign-in page
#   GET  /callback          - Memberful redirects here with ?code=&state=;
#                             verify state, exchange code, query member,
#                             refresh token, render the three responses
#
# The member signs in on Memberful between the two requests (passwordless
# by default: they get an email link that lands them back on /callback).
# ---------------------------------------------------------------------------

logger = logging.getLogger(__name__)

router = APIRouter(tags=["oauth"])

# Module-level singleton (same pattern as the other in-memory repos)
state_repo = InMemoryStateRepo()

RESPONSE_TYPE = "code"

_RESULTS_HTML = """\
<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Memberful OAuth Example - results</title></head>
<body>
  <h2>Results from our access token request:</h2>
  <pre>{token_json}</pre>
  <h2>Results from our member data request:</h2>
  <pre>{member_json}</pre>
  <h2>Results from our refresh token request:</h2>
  <pre>{refresh_json}</pre>
</body>
</html>
"""

_ERROR_HTML = """\
<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Memberful OAuth Example - error</title></head>
<body>
  <h2>{message}</h2>
  <p>Reference: <code>{request_id}</code></p>
  <p><a href="/">Back to the lobby</a></p>
</body>
</html>
"""


def _pretty(payload: dict) -> str:
    return html.escape(json.dumps(payload, indent=2))


def render_results(result: FlowResult) -> str:
    return _RESULTS_HTML.format(
        token_json=_pretty(result.token_response),
        member_json=_pretty(result.member_response),
        refresh_json=_pretty(result.refresh_response),
    )


# ========================== GET /begin-oauth-flow ===========================
# Stands in for whatever part of a real app decides to sign the member in.


@router.get(SETTINGS.begin_oauth_flow_path)
def begin_oauth_flow(
    session_id: Annotated[str | None, Depends(get_session_id)],
) -> RedirectResponse:
    if session_id is None:
        session_id = session_service.new_session_id()
        logger.info("OAUTH FLOW [begin] step 1: new browser session")
    else:
        logger.info("OAUTH FLOW [begin] step 1: existing browser session")

    # --- Generate and remember the state for this session -------------------
    # A second tab in the same session replaces the first tab's state:
    # only the most recent flow of a session can complete.
    state = state_service.begin_flow(
        state_repo, session_id=session_id, ttl_seconds=SETTINGS.state_ttl_sec
    )
    logger.info(
        "OAUTH FLOW [begin] step 2: state stored  ttl=%ds", SETTINGS.state_ttl_sec
    )

    # --- Redirect to Memberful's sign-in page -------------------------------
    params = {
        "response_type": RESPONSE_TYPE,
        "client_id": SETTINGS.client_id,
        "state": state,
    }
    redirect_url = f"{SETTINGS.memberful_url}/oauth/?{urlencode(params)}"
    logger.info(
        "OAUTH FLOW [begin] step 3: redirecting to provider  url=%s",
        SETTINGS.memberful_url,
    )

    # The cookie must outlive the pending state or the callback finds no session
    session_ttl = max(session_service.SESSION_TTL_SEC, SETTINGS.state_ttl_sec)

    response = RedirectResponse(url=redirect_url, status_code=status.HTTP_302_FOUND)
    response.set_cookie(
        key=session_service.COOKIE_NAME,
        value=session_service.create_session_token(
            session_id=session_id, ttl_seconds=session_ttl
        ),
        httponly=True,
        # Lax still sends the cookie on Memberful's top-level redirect back
        samesite="lax",
        secure=SETTINGS.cookie_secure,
        path="/",
        max_age=session_ttl,
    )
    return response


# ========================== GET /callback ===================================
# This path must match the Redirect URL of the custom OAuth app in the
# Memberful dashboard, e.g. https://YOURAPP.com/callback?code=...&state=...


@router.get(SETTINGS.callback_path, response_model=None)
def callback(
    session_id: Annotated[str | None, Depends(get_session_id)],
    client: Annotated[MemberfulClient, Depends(get_memberful_client)],
    code: str = Query(""),
    state: str | None = Query(None),
) -> HTMLResponse | PlainTextResponse:
    # --- Step 1: verify state ---------------------------------------------------
    # FAIL POINT: no outbound call is made for a callback we did not initiate.
    verified = state_service.verify_state(
        state_repo, session_id=session_id, returned=state
    )
    if not verified:
        rejected = FlowError(FlowErrorKind.VALIDATION_FAILED, "state did not verify")
        logger.warning("OAUTH FLOW [callback] FAIL: %s", rejected)
        return PlainTextResponse(
            rejected.user_message, status_code=status.HTTP_400_BAD_REQUEST
        )
    logger.info("OAUTH FLOW [callback] step 1: state verified  ✓")

    # --- Steps 2-4: token exchange, member query, refresh ---------------------
    try:
        result = complete_flow(client, code)
    except FlowError as e:
        # Full detail (status code, provider body) stays server-side.
        logger.error(
            "OAUTH FLOW [callback] FAIL: %s  %s",
            e.kind,
            e.detail,
            exc_info=True,
            extra={"flow_step": str(e.kind), "request_id": request_id_var.get()},
        )
        page = _ERROR_HTML.format(
            message=html.escape(e.user_message),
            request_id=html.escape(request_id_var.get()),
        )
        return HTMLResponse(page, status_code=status.HTTP_502_BAD_GATEWAY)

    logger.info("OAUTH FLOW [callback] step 5: rendering results  ✓")
    return HTMLResponse(render_results(result))
