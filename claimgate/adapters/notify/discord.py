"""
Discord webhook adapter - Implements NotificationSink protocol.

Posts each claim as a single embed to a staff channel. The embed is the
only contract with the channel; nothing in the response body is used
beyond the status code.
"""

import logging

import httpx

from claimgate.adapters.roblox.identity import profile_url
from claimgate.domain.exceptions import NotificationDeliveryError
from claimgate.domain.models import ClaimRecord

logger = logging.getLogger(__name__)

EMBED_COLOR = 0x6E40C9
EMBED_FOOTER = "New Claim Submitted"


def build_embed(record: ClaimRecord) -> dict:
    """Format a claim record as a Discord embed."""
    identity = record.identity
    display_name = identity.display_name or record.handle
    order_number = record.order_number.lstrip("#")
    return {
        "color": EMBED_COLOR,
        "title": display_name,
        "url": profile_url(identity.numeric_id),
        "description": "\n\n".join(
            [
                f"**Username:** {record.handle}",
                f"**Display Name:** {display_name}",
                f"**Order #:** #{order_number}",
                f"**Email:** {record.email}",
            ]
        ),
        "thumbnail": {"url": identity.avatar_ref},
        "footer": {"text": EMBED_FOOTER},
        "timestamp": record.submitted_at.isoformat(),
    }


class DiscordWebhookSink:
    """
    Implements NotificationSink protocol via a Discord incoming webhook.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, client: httpx.Client, webhook_url: str) -> None:
        self._client = client
        self._webhook_url = webhook_url

    def send_claim(self, record: ClaimRecord) -> None:
        try:
            response = self._client.post(
                self._webhook_url,
                json={"content": "", "embeds": [build_embed(record)]},
            )
        except httpx.HTTPError as e:
            raise NotificationDeliveryError(f"Webhook request failed: {e}") from e

        if not response.is_success:
            logger.error("Discord webhook failed: %s %s", response.status_code, response.text[:200])
            raise NotificationDeliveryError(f"Webhook returned {response.status_code}")
