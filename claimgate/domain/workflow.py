"""
Claim workflow domain service - VERIFY -> CONFIRM -> CLAIM state machine.

This module contains the core business logic for self-service claims:
the buyer proves they own an order, confirms which game account should
receive the item, and the claim is handed to staff for fulfillment.

Claim State Machine
===================

States:
- VERIFY: Initial state, buyer submits order number, email and handle
- CONFIRM: Order valid and identity resolved, buyer checks the avatar
- CLAIM: Terminal state after the claim record reached the sink

Valid Transitions:
    VERIFY  -> CONFIRM  (rate limit allowed, input well-formed, order valid,
                         identity resolved)
    CONFIRM -> VERIFY   (buyer backtracks, identity discarded)
    CONFIRM -> CLAIM    (buyer confirms, exactly one notification sent)

Failure Handling:
    Every failed VERIFY attempt stays in VERIFY, records the reason and
    bumps attempt_count. At session_max_attempts the session is blocked
    for good; only a new session clears it.

    A failed notification leaves the session in CONFIRM so the buyer can
    retry; without it nobody would follow up on the claim.

Concurrency:
    Step changes hold the session's lock, so a double-submitted
    confirmation dispatches one record and the second sees CLAIM.
"""

from dataclasses import dataclass

from .exceptions import (
    ClaimError,
    IdentityNotFound,
    InvalidTransition,
    LookupFailed,
    OrderInvalid,
    RateLimited,
    SessionBlocked,
)
from .identity import IdentityResolver
from .models import (
    ClaimRecord,
    ClaimRequest,
    ClaimSession,
    ClaimStep,
    Identity,
    OrderRejection,
    RateLimitDecision,
    ResolveStatus,
)
from .notifications import NotificationEmitter
from .orders import OrderValidator
from .rate_limiter import RateLimiter

_ORDER_MESSAGES = {
    OrderRejection.NOT_FOUND: "Order does not exist",
    OrderRejection.NOT_PAID: "Order not paid yet",
    OrderRejection.ALREADY_FULFILLED: "Order already fulfilled",
    OrderRejection.EMAIL_MISMATCH: "Email does not match this order",
}


@dataclass
class ClaimWorkflow:
    """
    Domain service orchestrating a claim session.

    Owns every step change of a ClaimSession. External calls within a
    VERIFY attempt run in sequence: the order is checked before the
    identity, so an invalid order never costs an identity lookup.
    """

    rate_limiter: RateLimiter
    order_validator: OrderValidator
    identity_resolver: IdentityResolver
    notifier: NotificationEmitter
    max_attempts: int = 5

    def verify(
        self,
        session: ClaimSession,
        order_number: str | None,
        email: str | None,
        handle: str | None,
        client_key: str,
    ) -> Identity:
        """
        Attempt the VERIFY -> CONFIRM transition.

        Args:
            session: Session at VERIFY
            order_number: Raw order number
            email: Raw contact email
            handle: Raw platform handle
            client_key: Client identifier for rate limiting

        Returns:
            The resolved identity (session is now at CONFIRM)

        Raises:
            InvalidTransition: Session is not at VERIFY
            SessionBlocked: Session exhausted its attempts
            RateLimited, InputInvalid, OrderInvalid, IdentityNotFound,
            LookupFailed: Attempt failed and was counted
        """
        with session.lock:
            if session.step != ClaimStep.VERIFY:
                raise InvalidTransition(f"Cannot verify from {session.step.value}")
            if session.blocked:
                raise SessionBlocked("Too many failed attempts, start a new claim")

            try:
                request, identity = self._run_checks(order_number, email, handle, client_key)
            except ClaimError as e:
                self._record_failure(session, e)
                raise

            session.order_number = OrderValidator.normalize_order_number(request.order_number)
            session.email = request.email
            session.handle = request.handle
            session.resolved_identity = identity
            session.attempt_count = 0
            session.last_failure = None
            session.step = ClaimStep.CONFIRM
            return identity

    def back(self, session: ClaimSession) -> None:
        """CONFIRM -> VERIFY, discarding the resolved identity."""
        with session.lock:
            if session.step != ClaimStep.CONFIRM:
                raise InvalidTransition(f"Cannot go back from {session.step.value}")
            session.resolved_identity = None
            session.step = ClaimStep.VERIFY

    def confirm(self, session: ClaimSession) -> ClaimRecord:
        """
        CONFIRM -> CLAIM, dispatching the claim record.

        Raises:
            InvalidTransition: Session is not at CONFIRM
            NotificationFailed: Record not delivered; session stays at CONFIRM
        """
        with session.lock:
            if session.step != ClaimStep.CONFIRM:
                raise InvalidTransition(f"Cannot confirm from {session.step.value}")

            record = self.notifier.emit(session)
            session.step = ClaimStep.CLAIM
            return record

    def attempts_remaining(self, session: ClaimSession) -> int:
        return max(self.max_attempts - session.attempt_count, 0)

    def _run_checks(
        self, order_number: str | None, email: str | None, handle: str | None, client_key: str
    ) -> tuple[ClaimRequest, Identity]:
        if self.rate_limiter.check_and_record(client_key) == RateLimitDecision.DENIED:
            raise RateLimited("Too many attempts, wait a minute and try again")

        request = ClaimRequest.parse(order_number, email, handle)

        verdict = self.order_validator.validate(request.order_number, request.email)
        if verdict.reason == OrderRejection.LOOKUP_FAILED:
            raise LookupFailed("Order lookup failed, please try again")
        if verdict.reason is not None:
            raise OrderInvalid(verdict.reason.value, _ORDER_MESSAGES[verdict.reason])

        resolved = self.identity_resolver.resolve(request.handle)
        if resolved == ResolveStatus.NOT_FOUND:
            raise IdentityNotFound("Game account not found")
        if resolved == ResolveStatus.LOOKUP_FAILED:
            raise LookupFailed("Account lookup failed, please try again")
        return request, resolved

    def _record_failure(self, session: ClaimSession, error: ClaimError) -> None:
        session.attempt_count += 1
        session.last_failure = error.reason
        if session.attempt_count >= self.max_attempts:
            session.blocked = True
