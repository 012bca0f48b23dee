"""Roblox presence adapter - Implements PresenceService protocol."""

import logging

import httpx

from claimgate.domain.exceptions import PresenceLookupError

logger = logging.getLogger(__name__)


class RobloxPresenceService:
    """
    Implements PresenceService protocol via the Roblox presence API.

    One request per agent so a bad id or failed call stays isolated.
    """

    def __init__(self, client: httpx.Client, presence_url: str = "https://presence.roblox.com") -> None:
        self._client = client
        self._presence_url = presence_url.rstrip("/")

    def fetch_presence_type(self, agent_id: str) -> int | None:
        try:
            user_id = int(agent_id)
        except ValueError as e:
            raise PresenceLookupError(f"Agent id is not numeric: {agent_id!r}") from e

        try:
            response = self._client.post(
                f"{self._presence_url}/v1/presence/users",
                json={"userIds": [user_id]},
            )
        except httpx.HTTPError as e:
            raise PresenceLookupError(f"Presence request failed: {e}") from e

        if not response.is_success:
            raise PresenceLookupError(f"Presence service returned {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise PresenceLookupError("Presence service returned an undecodable body") from e

        if not isinstance(payload, dict):
            raise PresenceLookupError("Presence service returned an unexpected body")
        presences = payload.get("userPresences")
        if not presences:
            logger.info("No presence reported for agent %s", agent_id)
            return None
        if not isinstance(presences, list) or not isinstance(presences[0], dict):
            raise PresenceLookupError("Presence entry is malformed")

        presence_type = presences[0].get("userPresenceType")
        if presence_type is None:
            return None
        # bool is an int subclass
        if isinstance(presence_type, bool) or not isinstance(presence_type, int):
            raise PresenceLookupError(f"Presence type is not an integer: {presence_type!r}")
        return presence_type
