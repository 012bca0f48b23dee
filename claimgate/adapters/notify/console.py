"""
Console notification adapter - Implements NotificationSink protocol.

This module provides a console-based implementation of the domain's
notification port, logging claim records to stdout for local runs
where no webhook is configured.
"""

import logging

from claimgate.domain.models import ClaimRecord

logger = logging.getLogger(__name__)


class ConsoleNotificationSink:
    """
    Implements NotificationSink protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    For demo/development purposes - prints claims to stdout.
    """

    def send_claim(self, record: ClaimRecord) -> None:
        """
        Log the claim record (simulates the staff notification).

        In production, this would be replaced with the webhook adapter.
        The claim is logged at INFO level to be visible in container logs.

        Args:
            record: Claim record built by the notification emitter
        """
        logger.info(
            "[CLAIM] Order: #%s Handle: %s UserId: %s Email: %s",
            record.order_number.lstrip("#"),
            record.handle,
            record.identity.numeric_id,
            record.email,
        )
