"""
Domain layer - Pure business logic with zero framework imports.

This package contains the claim workflow and the components it
composes. It defines its own port interfaces for the external
collaborators (commerce, identity, presence, notifications, rate-limit
storage, friend requests) so adapters can be swapped without touching
business rules.
"""

from .exceptions import (
    ClaimError,
    FriendRequestError,
    IdentityNotFound,
    InputInvalid,
    InvalidTransition,
    LookupFailed,
    NotificationFailed,
    OrderInvalid,
    RateLimited,
    SessionBlocked,
    SessionMismatch,
    SessionNotFound,
)
from .friends import AcceptReport, FriendRequestAcceptor
from .identity import IdentityResolver
from .models import (
    ClaimRecord,
    ClaimRequest,
    ClaimSession,
    ClaimStep,
    Identity,
    OrderRecord,
    OrderRejection,
    OrderVerdict,
    RateLimitDecision,
    RateLimitEntry,
    ResolveStatus,
)
from .notifications import NotificationEmitter
from .orders import OrderValidator
from .presence import PresencePoller
from .rate_limiter import RateLimiter
from .workflow import ClaimWorkflow

__all__ = [
    "AcceptReport",
    "ClaimError",
    "ClaimRecord",
    "ClaimRequest",
    "ClaimSession",
    "ClaimStep",
    "ClaimWorkflow",
    "FriendRequestAcceptor",
    "FriendRequestError",
    "Identity",
    "IdentityNotFound",
    "IdentityResolver",
    "InputInvalid",
    "InvalidTransition",
    "LookupFailed",
    "NotificationEmitter",
    "NotificationFailed",
    "OrderInvalid",
    "OrderRecord",
    "OrderRejection",
    "OrderValidator",
    "OrderVerdict",
    "PresencePoller",
    "RateLimitDecision",
    "RateLimitEntry",
    "RateLimited",
    "RateLimiter",
    "ResolveStatus",
    "SessionBlocked",
    "SessionMismatch",
    "SessionNotFound",
]
