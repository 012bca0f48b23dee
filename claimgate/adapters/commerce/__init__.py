"""Commerce adapters - Order system of record."""

from .shopify import ShopifyCommerceOracle

__all__ = ["ShopifyCommerceOracle"]
