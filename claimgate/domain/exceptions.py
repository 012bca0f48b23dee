"""
Domain exceptions - Semantic error types for the claim workflow.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.

Two families live here:
- ClaimError subclasses are raised by the workflow and surfaced to the
  caller. Each carries a stable machine-readable ``reason``.
- Lookup/delivery errors are raised by adapters when an external
  collaborator is unreachable or answers with a non-success response.
  The domain translates them into verdicts or ClaimErrors.
"""


class ClaimError(Exception):
    """Base class for claim workflow errors."""

    reason = "claim_error"

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or self.reason)
        self.detail = detail


class InputInvalid(ClaimError):
    """Missing or malformed claim fields."""

    reason = "input_invalid"


class RateLimited(ClaimError):
    """Client exceeded the attempt budget for the current window."""

    reason = "rate_limited"


class SessionBlocked(ClaimError):
    """Session exhausted its verification attempts."""

    reason = "blocked"


class OrderInvalid(ClaimError):
    """Order failed a business rule (not_found, not_paid, ...)."""

    def __init__(self, reason: str, detail: str = "") -> None:
        self.reason = reason
        super().__init__(detail or reason)


class IdentityNotFound(ClaimError):
    """No platform account matches the supplied handle."""

    reason = "identity_not_found"


class LookupFailed(ClaimError):
    """An external dependency failed; the attempt can be retried."""

    reason = "lookup_failed"


class NotificationFailed(ClaimError):
    """Claim record did not reach the notification sink."""

    reason = "notification_failed"


class InvalidTransition(ClaimError):
    """Requested step change is not allowed from the current step."""

    reason = "invalid_transition"


class SessionNotFound(ClaimError):
    """Unknown or expired session id."""

    reason = "session_not_found"


class SessionMismatch(ClaimError):
    """Confirmation payload does not match the verified claim."""

    reason = "session_mismatch"


class CommerceLookupError(Exception):
    """Commerce oracle unreachable, timed out, or returned non-success."""

    pass


class IdentityLookupError(Exception):
    """Identity directory unreachable, timed out, or returned non-success."""

    pass


class PresenceLookupError(Exception):
    """Presence service unreachable or returned non-success."""

    pass


class NotificationDeliveryError(Exception):
    """Notification sink rejected or never received the message."""

    pass


class RateLimitStoreUnavailable(Exception):
    """Rate-limit store could not be read or written."""

    pass


class FriendRequestError(Exception):
    """Friend requests of the delivery agent could not be listed or accepted."""

    pass
