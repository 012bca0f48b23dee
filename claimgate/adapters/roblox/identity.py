"""
Roblox identity adapter - Implements IdentityDirectory protocol.

Two public endpoints back the two legs of identity resolution:
- users API: username -> {id, name, displayName}
- thumbnails API: user id -> avatar headshot URL
"""

import logging

import httpx

from claimgate.domain.exceptions import IdentityLookupError
from claimgate.domain.models import PlatformUser

logger = logging.getLogger(__name__)

PROFILE_URL = "https://www.roblox.com/users/{user_id}/profile"


def profile_url(user_id: int | str) -> str:
    """Public profile page for a platform user."""
    return PROFILE_URL.format(user_id=user_id)


class RobloxIdentityDirectory:
    """
    Implements IdentityDirectory protocol via Roblox public APIs.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        client: httpx.Client,
        users_url: str = "https://users.roblox.com",
        thumbnails_url: str = "https://thumbnails.roblox.com",
        avatar_size: str = "150x150",
    ) -> None:
        self._client = client
        self._users_url = users_url.rstrip("/")
        self._thumbnails_url = thumbnails_url.rstrip("/")
        self._avatar_size = avatar_size

    def find_user(self, handle: str) -> PlatformUser | None:
        """Look up a user by exact username."""
        payload = self._request(
            "POST",
            f"{self._users_url}/v1/usernames/users",
            json={"usernames": [handle], "excludeBannedUsers": True},
        )
        user = _first(payload)
        if user is None or user.get("id") is None:
            return None

        return PlatformUser(
            numeric_id=_user_id(user["id"]),
            name=user.get("name") or handle,
            display_name=user.get("displayName") or "",
        )

    def find_avatar_url(self, numeric_id: int) -> str | None:
        """Fetch the avatar headshot URL, or None while it is still rendering."""
        payload = self._request(
            "GET",
            f"{self._thumbnails_url}/v1/users/avatar-headshot",
            params={
                "userIds": str(numeric_id),
                "size": self._avatar_size,
                "format": "Png",
                "isCircular": "false",
            },
        )
        thumbnail = _first(payload)
        if thumbnail is None:
            return None
        image_url = thumbnail.get("imageUrl")
        if image_url is not None and not isinstance(image_url, str):
            raise IdentityLookupError("Avatar URL is not a string")
        return image_url or None

    def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise IdentityLookupError(f"Roblox request failed: {e}") from e

        if not response.is_success:
            logger.warning("Roblox %s %s returned %s", method, url, response.status_code)
            raise IdentityLookupError(f"Roblox returned {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise IdentityLookupError("Roblox returned an undecodable body") from e
        if not isinstance(payload, dict):
            raise IdentityLookupError("Roblox returned an unexpected body")
        return payload


def _first(payload: dict) -> dict | None:
    """First element of the ``data`` array Roblox wraps results in."""
    data = payload.get("data") or []
    if not isinstance(data, list):
        raise IdentityLookupError("Roblox data is not a list")
    if not data:
        return None
    if not isinstance(data[0], dict):
        raise IdentityLookupError("Roblox data entry is malformed")
    return data[0]


def _user_id(raw: object) -> int:
    """Numeric user id from an int or digit string."""
    if isinstance(raw, bool):
        raise IdentityLookupError(f"User id is not numeric: {raw!r}")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.isascii() and raw.isdigit():
        return int(raw)
    raise IdentityLookupError(f"User id is not numeric: {raw!r}")
