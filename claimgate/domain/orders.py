"""
Order validator - Business rules for claimable orders.

Rules are evaluated in a fixed precedence and short-circuit at the
first failure:

1. payment status must be "paid"            -> not_paid
2. fulfillment status must not be "fulfilled" -> already_fulfilled
3. order email must match (case-insensitive) -> email_mismatch

So an order that is both unpaid and fulfilled always reports not_paid.
Commerce state is looked up on every call and never cached, since
payment and fulfillment can change between attempts.
"""

import logging
from dataclasses import dataclass

from .exceptions import CommerceLookupError
from .models import OrderRecord, OrderRejection, OrderVerdict
from .ports import CommerceOracle

logger = logging.getLogger(__name__)

ORDER_NAME_PREFIX = "#"


@dataclass
class OrderValidator:
    """Validates an order number + email pair against the commerce oracle."""

    oracle: CommerceOracle

    def validate(self, order_number: str, email: str) -> OrderVerdict:
        """
        Check whether an order can be claimed by the holder of ``email``.

        Args:
            order_number: Order number as typed by the buyer ("1234" or "#1234")
            email: Contact email supplied by the buyer

        Returns:
            OrderVerdict.ok() or OrderVerdict.invalid(reason)
        """
        order_name = self.normalize_order_number(order_number)

        try:
            orders = self.oracle.find_orders(order_name)
        except CommerceLookupError as e:
            logger.warning("Order lookup failed for %s: %s", order_name, e)
            return OrderVerdict.invalid(OrderRejection.LOOKUP_FAILED)

        if not orders:
            return OrderVerdict.invalid(OrderRejection.NOT_FOUND)

        return self._apply_rules(orders[0], email)

    @staticmethod
    def normalize_order_number(order_number: str) -> str:
        """Strip whitespace and ensure the oracle's "#" name prefix."""
        order_number = order_number.strip()
        if order_number.startswith(ORDER_NAME_PREFIX):
            return order_number
        return f"{ORDER_NAME_PREFIX}{order_number}"

    def _apply_rules(self, order: OrderRecord, email: str) -> OrderVerdict:
        if order.financial_status != "paid":
            return OrderVerdict.invalid(OrderRejection.NOT_PAID)
        if order.fulfillment_status == "fulfilled":
            return OrderVerdict.invalid(OrderRejection.ALREADY_FULFILLED)
        if (order.email or "").strip().lower() != email.strip().lower():
            return OrderVerdict.invalid(OrderRejection.EMAIL_MISMATCH)
        return OrderVerdict.ok()
