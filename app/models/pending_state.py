from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

# •	session_id: str   (sub of the session cookie)
# •	state: str        (value round-tripped through Memberful)
# •	created_at: int   (unix seconds)
# •	expires_at: int   (unix seconds)


@dataclass(frozen=True, slots=True)
class PendingState:
    session_id: str
    state: str
    created_at: int
    expires_at: int

    @staticmethod
    def new(*, session_id: str, state: str, ttl_seconds: int) -> PendingState:
        now = datetime.now(UTC)
        return PendingState(
            session_id=session_id,
            state=state,
            created_at=int(now.timestamp()),
            expires_at=int((now + timedelta(seconds=ttl_seconds)).timestamp()),
        )

    def is_expired(self, now_ts: int | None = None) -> bool:
        if now_ts is None:
            now_ts = int(datetime.now(UTC).timestamp())
        return now_ts > self.expires_at
