"""
In-memory session registry - Implements SessionStore protocol.

Claim sessions are short-lived workflow state, not accounts; they live
in process memory and vanish after ``ttl_seconds``. A session is only
registered once saved, and at most ``max_sessions`` are kept: the
oldest is dropped to make room for a new one.
"""

import logging
import secrets
import threading
import time
from collections.abc import Callable

from claimgate.domain.models import ClaimSession

logger = logging.getLogger(__name__)


class InMemorySessionStore:
    """
    Implements SessionStore protocol with a lock-protected dict.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        ttl_seconds: float = 900,
        max_sessions: int = 10_000,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._ttl_seconds = ttl_seconds
        self._max_sessions = max_sessions
        self._clock = clock
        # Insertion order is creation order, oldest first
        self._sessions: dict[str, ClaimSession] = {}
        self._lock = threading.Lock()

    def create(self) -> ClaimSession:
        """New session at VERIFY with an unguessable id; registered by save()."""
        return ClaimSession(session_id=secrets.token_urlsafe(24), created_at=self._clock())

    def get(self, session_id: str) -> ClaimSession | None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if self._is_expired(session):
                del self._sessions[session_id]
                return None
            return session

    def save(self, session: ClaimSession) -> None:
        with self._lock:
            if session.session_id not in self._sessions:
                self._evict_expired()
                while len(self._sessions) >= self._max_sessions:
                    oldest = next(iter(self._sessions))
                    del self._sessions[oldest]
                    logger.warning("Session registry full, dropped oldest session")
            self._sessions[session.session_id] = session

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _is_expired(self, session: ClaimSession) -> bool:
        return session.created_at + self._ttl_seconds <= self._clock()

    def _evict_expired(self) -> None:
        # Caller holds the lock
        expired = [sid for sid, session in self._sessions.items() if self._is_expired(session)]
        for sid in expired:
            del self._sessions[sid]
