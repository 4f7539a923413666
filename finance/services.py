"""
FINANCE App - Earning Services for PASAR

Courier earnings tied to order assignment.
"""

import logging
from decimal import Decimal, ROUND_DOWN
from typing import Optional

from django.conf import settings

from finance.models import CourierEarning, EarningStatus, EarningType

logger = logging.getLogger(__name__)


class EarningService:
    """Service class for the courier earnings ledger."""

    @staticmethod
    def courier_share(shipping_cost: Decimal, rate: Decimal = None) -> Decimal:
        """
        Courier's share of the shipping cost, rounded down to whole rupiah.

        Example: 15_999 IDR shipping at 80% -> 12_799 IDR.
        """
        if rate is None:
            rate = Decimal(str(settings.COURIER_EARNING_RATE))
        amount = Decimal(shipping_cost or 0) * rate
        return amount.quantize(Decimal('1'), rounding=ROUND_DOWN)

    @classmethod
    def record_pending_earning(cls, courier, order) -> Optional[CourierEarning]:
        """
        Append the PENDING delivery earning for an assigned order.

        Must run inside the claim transaction. Orders without a shipping
        cost produce no earning. Calling it twice for the same order
        returns the existing entry.
        """
        amount = cls.courier_share(order.shipping_cost)
        if amount <= 0:
            logger.info(f"[EARNING] Order {str(order.id)[:8]} has no shipping cost, no earning recorded")
            return None

        earning, created = CourierEarning.objects.get_or_create(
            order=order,
            type=EarningType.DELIVERY,
            defaults={
                'courier': courier,
                'amount': amount,
                'status': EarningStatus.PENDING,
            },
        )
        if created:
            logger.info(
                f"[EARNING] Pending {amount} IDR for courier {str(courier.id)[:8]} "
                f"on order {str(order.id)[:8]}"
            )
        return earning

    @staticmethod
    def cancel_pending_earnings(order) -> int:
        """Void PENDING earnings of a cancelled order. Returns rows changed."""
        cancelled = CourierEarning.objects.filter(
            order=order,
            status=EarningStatus.PENDING,
        ).update(status=EarningStatus.CANCELLED)
        if cancelled:
            logger.info(f"[EARNING] Cancelled {cancelled} pending earning(s) for order {str(order.id)[:8]}")
        return cancelled
