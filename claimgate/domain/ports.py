"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure. Adapters implement these protocols.
"""

from collections.abc import Callable
from typing import Protocol

from .models import ClaimRecord, ClaimSession, OrderRecord, PlatformUser, RateLimitDecision, RateLimitEntry

# Pure rule applied by a store: current entry (or None) -> (entry to store, decision)
RateLimitTransition = Callable[[RateLimitEntry | None], tuple[RateLimitEntry, RateLimitDecision]]


class CommerceOracle(Protocol):
    """Port interface for the order system of record."""

    def find_orders(self, order_name: str) -> list[OrderRecord]:
        """
        Look up orders by their external name (e.g. "#1234").

        Args:
            order_name: Normalized order name

        Returns:
            Matching orders in oracle-defined order (possibly empty)

        Raises:
            CommerceLookupError: Oracle unreachable, timed out, or non-success
        """
        ...


class IdentityDirectory(Protocol):
    """Port interface for the game platform's user directory."""

    def find_user(self, handle: str) -> PlatformUser | None:
        """
        Resolve a public handle to a platform user.

        Returns:
            The user, or None when no account matches

        Raises:
            IdentityLookupError: Directory unreachable or non-success
        """
        ...

    def find_avatar_url(self, numeric_id: int) -> str | None:
        """
        Fetch the avatar image URL for a user.

        Returns:
            Image URL, or None when the platform has not rendered one

        Raises:
            IdentityLookupError: Directory unreachable or non-success
        """
        ...


class PresenceService(Protocol):
    """Port interface for delivery-agent presence."""

    def fetch_presence_type(self, agent_id: str) -> int | None:
        """
        Fetch the raw presence type for one agent.

        Returns:
            0 for offline, any other value for online, None if unreported

        Raises:
            PresenceLookupError: Service unreachable or non-success
        """
        ...


class NotificationSink(Protocol):
    """Port interface for claim notifications."""

    def send_claim(self, record: ClaimRecord) -> None:
        """
        Deliver a claim record for human follow-up.

        Raises:
            NotificationDeliveryError: The sink did not accept the message
        """
        ...


class RateLimitStore(Protocol):
    """Port interface for shared per-client attempt counters."""

    def apply(self, key: str, now: float, transition: RateLimitTransition) -> RateLimitDecision:
        """
        Atomically read, transform and write the entry for ``key``.

        Concurrent calls for the same key must not lose updates.

        Args:
            key: Client identifier
            now: Current epoch seconds (used for eviction)
            transition: Pure rule producing the new entry and decision

        Raises:
            RateLimitStoreUnavailable: Store could not be reached
        """
        ...


class SessionStore(Protocol):
    """Port interface for claim session registry."""

    def create(self) -> ClaimSession:
        """Create a new session at VERIFY; it is registered by save()."""
        ...

    def get(self, session_id: str) -> ClaimSession | None:
        """Return a live session, or None if unknown or expired."""
        ...

    def save(self, session: ClaimSession) -> None:
        """Persist changes to a session."""
        ...


class FriendRequestService(Protocol):
    """Port interface for the delivery agent account's friend requests."""

    def list_pending(self) -> list[PlatformUser]:
        """
        Incoming friend requests waiting for the agent.

        Raises:
            FriendRequestError: If the requests could not be fetched
        """
        ...

    def accept(self, numeric_id: int) -> None:
        """
        Accept one pending request.

        Raises:
            FriendRequestError: If the request was not accepted
        """
        ...
