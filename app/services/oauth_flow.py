from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

import httpx
from pydantic import ValidationError

from app.models.member import Member, MemberQueryResult
from app.models.token_pair import TokenPair
from app.services.provider_client import MemberfulClient

# ---------------------------------------------------------------------------
# Callback orchestration: the provider-facing half of the callback route.
#
#   ExchangingCode → FetchingProfile → RefreshingToken → Done
#
# Each step needs the previous step's output, so they run strictly in order.
# The first failure aborts the flow; earlier results are dropped, never
# rendered on their own.
# ---------------------------------------------------------------------------

logger = logging.getLogger(__name__)


class FlowErrorKind(StrEnum):
    VALIDATION_FAILED = "validation_failed"
    EXCHANGE_FAILED = "exchange_failed"
    PROFILE_FETCH_FAILED = "profile_fetch_failed"
    REFRESH_FAILED = "refresh_failed"


_USER_MESSAGES = {
    FlowErrorKind.VALIDATION_FAILED: "State doesn't match",
    FlowErrorKind.EXCHANGE_FAILED: "Sign-in failed: could not obtain an access token.",
    FlowErrorKind.PROFILE_FETCH_FAILED: "Sign-in failed: could not load member data.",
    FlowErrorKind.REFRESH_FAILED: "Sign-in failed: could not refresh the access token.",
}


class FlowError(Exception):
    """A callback step failed. The cause is chained as ``__cause__``.

    ``detail`` is for the server log; ``user_message`` is safe to show.
    """

    def __init__(self, kind: FlowErrorKind, detail: str) -> None:
        super().__init__(f"{kind}: {detail}")
        self.kind = kind
        self.detail = detail

    @property
    def user_message(self) -> str:
        return _USER_MESSAGES[self.kind]


@dataclass(frozen=True)
class FlowResult:
    # Raw provider payloads, rendered verbatim on the results page
    token_response: dict[str, Any]
    member_response: dict[str, Any]
    refresh_response: dict[str, Any]
    # Parsed views of the same payloads
    tokens: TokenPair
    member: Member
    refreshed: TokenPair


def describe_error(exc: Exception) -> str:
    """One-line description of a provider failure for the server log."""
    if isinstance(exc, httpx.HTTPStatusError):
        body = exc.response.text[:500]
        return f"provider returned {exc.response.status_code}: {body}"
    if isinstance(exc, httpx.TimeoutException):
        return f"timed out: {type(exc).__name__}"
    if isinstance(exc, httpx.HTTPError):
        return f"transport error: {type(exc).__name__}: {exc}"
    if isinstance(exc, ValidationError):
        return f"unexpected response shape: {exc.error_count()} validation error(s)"
    return f"{type(exc).__name__}: {exc}"


_STEP_ERRORS = (httpx.HTTPError, ValidationError, ValueError)


def complete_flow(client: MemberfulClient, code: str) -> FlowResult:
    """Run the three provider calls for an already-validated callback.

    Raises FlowError on the first failing step.
    """
    if not code:
        raise FlowError(
            FlowErrorKind.EXCHANGE_FAILED, "callback carried no authorization code"
        )

    # --- Step 2: access token request ----------------------------------------
    try:
        token_response = client.exchange_code(code)
        tokens = TokenPair.model_validate(token_response)
    except _STEP_ERRORS as e:
        raise FlowError(FlowErrorKind.EXCHANGE_FAILED, describe_error(e)) from e
    logger.info(
        "OAUTH FLOW [callback] step 2: authorization code exchanged  "
        "expires_in=%d token_type=%s",
        tokens.expires_in,
        tokens.token_type,
    )

    # --- Step 3: member data query -------------------------------------------
    try:
        member_response = client.fetch_member(tokens.access_token)
        member = MemberQueryResult.model_validate(member_response).current_member
    except _STEP_ERRORS as e:
        raise FlowError(FlowErrorKind.PROFILE_FETCH_FAILED, describe_error(e)) from e
    logger.info(
        "OAUTH FLOW [callback] step 3: member data fetched  member_id=%s "
        "subscriptions=%d active=%d",
        member.id,
        len(member.subscriptions),
        len(member.active_subscriptions),
    )
    logger.debug("Member data: %s", member.model_dump(by_alias=True))

    # --- Step 4: refresh token request ---------------------------------------
    try:
        refresh_response = client.refresh(tokens.refresh_token)
        refreshed = TokenPair.model_validate(refresh_response)
    except _STEP_ERRORS as e:
        raise FlowError(FlowErrorKind.REFRESH_FAILED, describe_error(e)) from e
    logger.info(
        "OAUTH FLOW [callback] step 4: access token refreshed  expires_in=%d",
        refreshed.expires_in,
    )

    return FlowResult(
        token_response=token_response,
        member_response=member_response,
        refresh_response=refresh_response,
        tokens=tokens,
        member=member,
        refreshed=refreshed,
    )
