"""
Domain models - Value objects and workflow state for claims.

Pure dataclasses and enums. Nothing in here performs I/O.
"""

from __future__ import annotations

import re
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .exceptions import InputInvalid

# Basic address shape: something@something.tld, no whitespace.
_EMAIL_SHAPE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class ClaimStep(str, Enum):
    """
    Claim workflow steps.

    Transitions:
    - VERIFY -> CONFIRM (order valid and identity resolved)
    - CONFIRM -> VERIFY (user backtracks)
    - CONFIRM -> CLAIM (user confirms, claim record dispatched)

    CLAIM is terminal.
    """

    VERIFY = "VERIFY"
    CONFIRM = "CONFIRM"
    CLAIM = "CLAIM"


class RateLimitDecision(Enum):
    """Outcome of a rate-limit check."""

    ALLOWED = "allowed"
    DENIED = "denied"


class OrderRejection(str, Enum):
    """Reasons an order fails validation, in the order they are checked."""

    LOOKUP_FAILED = "lookup_failed"
    NOT_FOUND = "not_found"
    NOT_PAID = "not_paid"
    ALREADY_FULFILLED = "already_fulfilled"
    EMAIL_MISMATCH = "email_mismatch"


class ResolveStatus(Enum):
    """Non-success outcomes of identity resolution."""

    NOT_FOUND = "not_found"
    LOOKUP_FAILED = "lookup_failed"


@dataclass(frozen=True)
class Identity:
    """Platform account resolved from a public handle."""

    numeric_id: int
    avatar_ref: str
    display_name: str = ""


@dataclass(frozen=True)
class PlatformUser:
    """First leg of identity resolution: handle -> id."""

    numeric_id: int
    name: str
    display_name: str = ""


@dataclass(frozen=True)
class OrderRecord:
    """The fields of a commerce order the validator cares about."""

    financial_status: str | None
    fulfillment_status: str | None
    email: str | None


@dataclass(frozen=True)
class OrderVerdict:
    """Tagged validation result: valid, or invalid with a reason."""

    reason: OrderRejection | None = None

    @property
    def valid(self) -> bool:
        return self.reason is None

    @classmethod
    def ok(cls) -> OrderVerdict:
        return cls()

    @classmethod
    def invalid(cls, reason: OrderRejection) -> OrderVerdict:
        return cls(reason=reason)


@dataclass(frozen=True)
class RateLimitEntry:
    """Attempt counter for one client within a fixed window."""

    count: int
    expires_at: float

    def expired(self, now: float) -> bool:
        return self.expires_at <= now


@dataclass(frozen=True)
class ClaimRequest:
    """Client-supplied claim fields, trimmed."""

    order_number: str
    email: str
    handle: str

    @classmethod
    def parse(cls, order_number: str | None, email: str | None, handle: str | None) -> ClaimRequest:
        """
        Build a request from raw input.

        Raises:
            InputInvalid: If any field is blank or the email is malformed
        """
        order_number = (order_number or "").strip()
        email = (email or "").strip()
        handle = (handle or "").strip()

        missing = [
            name
            for name, value in (("orderNumber", order_number), ("email", email), ("handle", handle))
            if not value
        ]
        if missing:
            raise InputInvalid(f"Missing required field(s): {', '.join(missing)}")
        if not _EMAIL_SHAPE.match(email):
            raise InputInvalid("Email address is malformed")
        return cls(order_number=order_number, email=email, handle=handle)


@dataclass
class ClaimSession:
    """
    Transient workflow state for one claim interaction.

    ``resolved_identity`` is only set at CONFIRM or CLAIM. ``blocked``
    is sticky for the lifetime of the session. ``lock`` serializes step
    changes of concurrent requests on the same session.
    """

    session_id: str
    step: ClaimStep = ClaimStep.VERIFY
    order_number: str = ""
    email: str = ""
    handle: str = ""
    resolved_identity: Identity | None = None
    attempt_count: int = 0
    blocked: bool = False
    last_failure: str | None = None
    created_at: float = field(default_factory=time.time)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


@dataclass(frozen=True)
class ClaimRecord:
    """Structured claim handed to the notification sink for human follow-up."""

    order_number: str
    handle: str
    email: str
    identity: Identity
    submitted_at: datetime
