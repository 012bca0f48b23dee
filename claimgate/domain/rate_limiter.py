"""
Rate limiter - Fixed-window attempt counter per client.

Rule (applied atomically per key by the store):

    no entry, or entry expired  -> fresh entry (count=1, new expiry), ALLOWED
    count < max_attempts        -> count + 1, ALLOWED
    otherwise                   -> unchanged, DENIED

The window is fixed, not sliding: the expiry set when an entry is
created is never pushed back by later attempts.

Store outages fail open by default; ``fail_open=False`` denies instead.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from .exceptions import RateLimitStoreUnavailable
from .models import RateLimitDecision, RateLimitEntry
from .ports import RateLimitStore

logger = logging.getLogger(__name__)


def next_entry(
    entry: RateLimitEntry | None, now: float, window_seconds: float, max_attempts: int
) -> tuple[RateLimitEntry, RateLimitDecision]:
    """Apply the fixed-window rule to a single entry."""
    if entry is None or entry.expired(now):
        return RateLimitEntry(count=1, expires_at=now + window_seconds), RateLimitDecision.ALLOWED
    if entry.count < max_attempts:
        return RateLimitEntry(count=entry.count + 1, expires_at=entry.expires_at), RateLimitDecision.ALLOWED
    return entry, RateLimitDecision.DENIED


@dataclass
class RateLimiter:
    """Gates verification attempts per client key."""

    store: RateLimitStore
    max_attempts: int = 5
    window_seconds: float = 60
    fail_open: bool = True
    clock: Callable[[], float] = field(default=time.time)

    def check_and_record(self, client_key: str) -> RateLimitDecision:
        """
        Record an attempt for ``client_key`` and decide whether it may proceed.

        Args:
            client_key: Opaque client identifier (e.g. network address)

        Returns:
            ALLOWED or DENIED

        Raises:
            ValueError: If client_key is empty
        """
        if not client_key:
            raise ValueError("client_key must be non-empty")

        now = self.clock()

        def transition(entry: RateLimitEntry | None) -> tuple[RateLimitEntry, RateLimitDecision]:
            return next_entry(entry, now, self.window_seconds, self.max_attempts)

        try:
            decision = self.store.apply(client_key, now, transition)
        except RateLimitStoreUnavailable as e:
            if self.fail_open:
                logger.warning("Rate-limit store unavailable, allowing %s: %s", client_key, e)
                return RateLimitDecision.ALLOWED
            logger.error("Rate-limit store unavailable, denying %s: %s", client_key, e)
            return RateLimitDecision.DENIED

        if decision == RateLimitDecision.DENIED:
            logger.info("Rate limit exceeded for %s", client_key)
        return decision
