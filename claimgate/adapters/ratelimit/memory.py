"""
In-memory rate-limit store - Implements RateLimitStore protocol.

Counters live in a dict guarded by a single lock, so read-modify-write
of an entry is atomic across request threads of one process. Use the
PostgreSQL store when several workers must share counters.
"""

import threading

from claimgate.domain.models import RateLimitDecision, RateLimitEntry
from claimgate.domain.ports import RateLimitTransition


class InMemoryRateLimitStore:
    """
    Implements RateLimitStore protocol with a lock-protected dict.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Inject a fresh instance per test for isolation.
    """

    def __init__(self) -> None:
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    def apply(self, key: str, now: float, transition: RateLimitTransition) -> RateLimitDecision:
        with self._lock:
            self._evict_expired(now)
            entry, decision = transition(self._entries.get(key))
            self._entries[key] = entry
            return decision

    def get(self, key: str) -> RateLimitEntry | None:
        with self._lock:
            return self._entries.get(key)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _evict_expired(self, now: float) -> None:
        # Caller holds the lock
        expired = [key for key, entry in self._entries.items() if entry.expired(now)]
        for key in expired:
            del self._entries[key]
