"""Notification emitter - builds the claim record and hands it to the sink."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

from .exceptions import InvalidTransition, NotificationDeliveryError, NotificationFailed
from .models import ClaimRecord, ClaimSession
from .ports import NotificationSink

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class NotificationEmitter:
    """Dispatches one claim record per confirmed session."""

    sink: NotificationSink
    clock: Callable[[], datetime] = field(default=_utcnow)

    def emit(self, session: ClaimSession) -> ClaimRecord:
        """
        Send the claim record for a verified session.

        Raises:
            InvalidTransition: Session has no resolved identity
            NotificationFailed: Sink did not accept the record
        """
        if session.resolved_identity is None:
            raise InvalidTransition("Cannot notify a claim without a resolved identity")

        record = ClaimRecord(
            order_number=session.order_number,
            handle=session.handle,
            email=session.email,
            identity=session.resolved_identity,
            submitted_at=self.clock(),
        )

        try:
            self.sink.send_claim(record)
        except NotificationDeliveryError as e:
            logger.error("Claim notification failed for order %s: %s", record.order_number, e)
            raise NotificationFailed("Claim could not be submitted, please try again") from e

        logger.info("Claim submitted for order %s", record.order_number)
        return record
