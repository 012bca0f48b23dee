"""
Presence poller - Is each delivery agent online?

Each agent is checked with its own call, concurrently. A failed call
only affects that agent and reads as offline. Polling never touches
claim sessions; it only decides which call-to-action is enabled in the
final step.
"""

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from .exceptions import PresenceLookupError
from .ports import PresenceService

logger = logging.getLogger(__name__)

OFFLINE = 0


@dataclass
class PresencePoller:
    """Fans out presence checks for a set of agents."""

    service: PresenceService
    max_workers: int = 4

    def poll(self, agent_ids: Iterable[str]) -> dict[str, bool]:
        """
        Check presence for every agent id.

        Args:
            agent_ids: Agent identifiers (duplicates collapse)

        Returns:
            Mapping of agent id -> online
        """
        unique_ids = list(dict.fromkeys(agent_ids))
        if not unique_ids:
            return {}

        workers = min(self.max_workers, len(unique_ids))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = executor.map(self.is_online, unique_ids)
            return dict(zip(unique_ids, results))

    def is_online(self, agent_id: str) -> bool:
        try:
            presence_type = self.service.fetch_presence_type(agent_id)
        except PresenceLookupError as e:
            logger.warning("Presence check failed for agent %s: %s", agent_id, e)
            return False
        return presence_type is not None and presence_type != OFFLINE
