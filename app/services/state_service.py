from __future__ import annotations

import hmac
import logging
import secrets
import string

from app.models.pending_state import PendingState
from app.repos.state_repo import StateRepo

# Anti-replay ("state") handling for the authorization request.
#
# begin_flow stores a fresh state for the browser session before we
# redirect to Memberful; verify_state checks what Memberful sends back to
# the callback. Each session has at most one pending state, and a state
# is consumed by the first callback that presents it.

logger = logging.getLogger(__name__)

STATE_ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
STATE_LENGTH = 16


def generate_random_string(length: int, alphabet: str = STATE_ALPHABET) -> str:
    if length < 0:
        raise ValueError(f"length must be >= 0 (got {length})")
    if not alphabet:
        raise ValueError("alphabet must be non-empty")
    return "".join(secrets.choice(alphabet) for _ in range(length))


def begin_flow(repo: StateRepo, *, session_id: str, ttl_seconds: int) -> str:
    """Generate and remember a state for *session_id*. Returns the state."""
    state = generate_random_string(STATE_LENGTH)
    repo.put(
        PendingState.new(session_id=session_id, state=state, ttl_seconds=ttl_seconds)
    )
    return state


def verify_state(
    repo: StateRepo, *, session_id: str | None, returned: str | None
) -> bool:
    """Consume the session's pending state and compare it to *returned*.

    Uses constant-time comparison.
    """
    if session_id is None:
        logger.warning("State check failed: no session cookie")
        return False

    pending = repo.pop(session_id)
    if pending is None:
        logger.warning("State check failed: no pending state for session")
        return False

    if not returned:
        logger.warning("State check failed: callback carried no state")
        return False

    if not hmac.compare_digest(pending.state.encode(), returned.encode()):
        logger.warning("State check failed: state mismatch")
        return False

    return True
