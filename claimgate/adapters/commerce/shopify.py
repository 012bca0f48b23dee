"""
Shopify commerce adapter - Implements CommerceOracle protocol.

Looks up orders by name through the Admin REST API. Every transport
failure, timeout, non-2xx response or undecodable body is reported as
CommerceLookupError; the validator turns that into "lookup_failed".
"""

import logging

import httpx

from claimgate.domain.exceptions import CommerceLookupError
from claimgate.domain.models import OrderRecord

logger = logging.getLogger(__name__)


class ShopifyCommerceOracle:
    """
    Implements CommerceOracle protocol via the Shopify Admin API.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(
        self,
        client: httpx.Client,
        store_domain: str,
        access_token: str,
        api_version: str = "2025-01",
    ) -> None:
        """
        Initialize oracle with a shared HTTP client.

        Args:
            client: httpx client (owns timeouts and connection pooling)
            store_domain: Shop domain, e.g. "example.myshopify.com"
            access_token: Admin API access token
            api_version: Admin API version segment
        """
        self._client = client
        self._store_domain = store_domain
        self._access_token = access_token
        self._api_version = api_version

    @property
    def orders_url(self) -> str:
        return f"https://{self._store_domain}/admin/api/{self._api_version}/orders.json"

    def find_orders(self, order_name: str) -> list[OrderRecord]:
        """
        Fetch orders whose name equals ``order_name`` (e.g. "#1234").

        ``status=any`` includes closed and archived orders, which can still
        be unfulfilled digital claims.
        """
        try:
            response = self._client.get(
                self.orders_url,
                params={"name": order_name, "status": "any"},
                headers={
                    "Content-Type": "application/json",
                    "X-Shopify-Access-Token": self._access_token,
                },
            )
        except httpx.HTTPError as e:
            raise CommerceLookupError(f"Shopify request failed: {e}") from e

        if not response.is_success:
            logger.error("Shopify lookup failed: %s %s", response.status_code, response.text[:200])
            raise CommerceLookupError(f"Shopify returned {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            raise CommerceLookupError("Shopify returned an undecodable body") from e

        if not isinstance(payload, dict):
            raise CommerceLookupError("Shopify returned an unexpected body")

        orders = payload.get("orders") or []
        if not isinstance(orders, list):
            raise CommerceLookupError("Shopify orders field is not a list")
        return [
            OrderRecord(
                financial_status=order.get("financial_status"),
                fulfillment_status=order.get("fulfillment_status"),
                email=order.get("email") or order.get("contact_email"),
            )
            for order in orders
            if isinstance(order, dict)
        ]
