from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import Protocol

from app.models.pending_state import PendingState

# Upper bound on concurrently pending flows. Every cookieless hit on the
# initiator adds an entry, so the map must not grow with anonymous traffic.
MAX_PENDING_STATES = 10_000


class StateRepo(Protocol):
    def put(self, record: PendingState) -> None: ...
    def pop(self, session_id: str) -> PendingState | None: ...


class InMemoryStateRepo:
    """Pending anti-replay tokens keyed by browser session id.

    One entry per session: starting a new flow in the same session replaces
    the previous token. When full, the oldest pending flow is dropped.
    Sync route handlers run on the threadpool, hence the lock.
    """

    def __init__(self, max_entries: int = MAX_PENDING_STATES) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self._by_session_id: dict[str, PendingState] = {}
        self._max_entries = max_entries
        self._lock = threading.Lock()

    def put(self, record: PendingState) -> None:
        with self._lock:
            self._purge_expired()
            # Re-insert so a replaced entry moves to the newest position
            self._by_session_id.pop(record.session_id, None)
            while len(self._by_session_id) >= self._max_entries:
                oldest = next(iter(self._by_session_id))
                del self._by_session_id[oldest]
            self._by_session_id[record.session_id] = record

    def pop(self, session_id: str) -> PendingState | None:
        """Remove and return the session's pending state.

        Returns None if there is none or it has expired. The entry is gone
        either way, so a state value can be checked at most once.
        """
        with self._lock:
            record = self._by_session_id.pop(session_id, None)
        if record is None or record.is_expired():
            return None
        return record

    def _purge_expired(self) -> None:
        now_ts = int(datetime.now(UTC).timestamp())
        expired = [
            sid for sid, rec in self._by_session_id.items() if rec.is_expired(now_ts)
        ]
        for sid in expired:
            del self._by_session_id[sid]
