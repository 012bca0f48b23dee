"""
Roblox friend requests adapter - Implements FriendRequestService protocol.

Acts as the delivery agent account, authenticated by its .ROBLOSECURITY
cookie. State-changing calls need an X-CSRF-TOKEN: Roblox rejects the
first attempt with 403 and hands out the token in a response header,
after which the call is repeated once.
"""

import logging

import httpx

from claimgate.domain.exceptions import FriendRequestError
from claimgate.domain.models import PlatformUser

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
MAX_PAGES = 50
CSRF_HEADER = "x-csrf-token"


class RobloxFriendRequests:
    """
    Implements FriendRequestService protocol via the Roblox friends API.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, client: httpx.Client, cookie: str, friends_url: str = "https://friends.roblox.com") -> None:
        self._client = client
        self._friends_url = friends_url.rstrip("/")
        self._headers = {"Cookie": f".ROBLOSECURITY={cookie}"}
        self._csrf_token: str | None = None

    def list_pending(self) -> list[PlatformUser]:
        """All incoming requests, following nextPageCursor."""
        users: list[PlatformUser] = []
        cursor: str | None = None

        for _ in range(MAX_PAGES):
            params = {"limit": PAGE_SIZE, "sortOrder": "Asc"}
            if cursor:
                params["cursor"] = cursor
            payload = self._get_json(f"{self._friends_url}/v1/my/friends/requests", params)

            data = payload.get("data") or []
            if not isinstance(data, list):
                raise FriendRequestError("Friend requests data is not a list")
            users.extend(_requester(entry) for entry in data)

            cursor = payload.get("nextPageCursor")
            if not cursor:
                return users

        logger.warning("Stopped listing friend requests after %d pages", MAX_PAGES)
        return users

    def accept(self, numeric_id: int) -> None:
        url = f"{self._friends_url}/v1/users/{numeric_id}/accept-friend-request"
        response = self._post(url)

        if response.status_code == 403 and CSRF_HEADER in response.headers:
            self._csrf_token = response.headers[CSRF_HEADER]
            response = self._post(url)

        if not response.is_success:
            raise FriendRequestError(f"Accepting {numeric_id} returned {response.status_code}")

    def _get_json(self, url: str, params: dict) -> dict:
        try:
            response = self._client.get(url, params=params, headers=self._headers)
        except httpx.HTTPError as e:
            raise FriendRequestError(f"Friend requests request failed: {e}") from e

        if response.status_code == 401:
            raise FriendRequestError("Agent cookie was rejected, it may have expired")
        if not response.is_success:
            raise FriendRequestError(f"Friend requests returned {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise FriendRequestError("Friend requests returned an undecodable body") from e
        if not isinstance(payload, dict):
            raise FriendRequestError("Friend requests returned an unexpected body")
        return payload

    def _post(self, url: str) -> httpx.Response:
        headers = dict(self._headers)
        if self._csrf_token:
            headers["X-CSRF-TOKEN"] = self._csrf_token
        try:
            return self._client.post(url, headers=headers)
        except httpx.HTTPError as e:
            raise FriendRequestError(f"Accept request failed: {e}") from e


def _requester(entry: object) -> PlatformUser:
    if not isinstance(entry, dict):
        raise FriendRequestError("Friend request entry is malformed")
    user_id = entry.get("id")
    if isinstance(user_id, bool) or not isinstance(user_id, int):
        raise FriendRequestError(f"Requester id is not numeric: {user_id!r}")
    return PlatformUser(
        numeric_id=user_id,
        name=entry.get("name") or str(user_id),
        display_name=entry.get("displayName") or "",
    )
