"""
Friend request acceptor - Lets buyers befriend the delivery agent.

The final claim step offers an add-friend link to the agent's profile.
Staff run the acceptor periodically so those requests do not pile up
unanswered. One refused request is logged and skipped; only a failure
to list the requests at all is raised.
"""

import logging
from dataclasses import dataclass, field

from .exceptions import FriendRequestError
from .models import PlatformUser
from .ports import FriendRequestService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AcceptReport:
    """Outcome of one acceptance pass."""

    accepted: list[PlatformUser] = field(default_factory=list)
    failed: list[PlatformUser] = field(default_factory=list)


@dataclass
class FriendRequestAcceptor:
    """Accepts every pending friend request of the delivery agent."""

    service: FriendRequestService

    def accept_all(self) -> AcceptReport:
        """
        Accept all pending requests.

        Returns:
            Which requesters were accepted and which failed

        Raises:
            FriendRequestError: If the pending requests could not be listed
        """
        pending = self.service.list_pending()
        report = AcceptReport()

        for user in pending:
            try:
                self.service.accept(user.numeric_id)
            except FriendRequestError as e:
                logger.warning("Could not accept friend request from %s: %s", user.name, e)
                report.failed.append(user)
                continue
            logger.info("Accepted friend request from %s", user.name)
            report.accepted.append(user)

        return report
