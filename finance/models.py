"""
FINANCE App - Courier Earnings Ledger for PASAR

Handles: pending courier earnings recorded when an order is assigned.
Payout on delivery completion is handled by the payment collaborator.
"""

import uuid
from django.db import models


class EarningType(models.TextChoices):
    """Earning type enumeration."""
    DELIVERY = 'DELIVERY', 'Ongkos antar'
    BONUS = 'BONUS', 'Bonus'


class EarningStatus(models.TextChoices):
    """Earning status enumeration."""
    PENDING = 'PENDING', 'Menunggu'
    PAID = 'PAID', 'Dibayar'
    CANCELLED = 'CANCELLED', 'Dibatalkan'


class CourierEarning(models.Model):
    """
    Courier earning record.

    Created as PENDING in the same database transaction as the
    order claim, so an assigned order always has its earning entry.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    courier = models.ForeignKey(
        'core.Courier',
        on_delete=models.PROTECT,
        related_name='earnings',
        verbose_name="Kurir"
    )
    order = models.ForeignKey(
        'logistics.Order',
        on_delete=models.PROTECT,
        related_name='courier_earnings',
        verbose_name="Pesanan"
    )

    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        verbose_name="Jumlah (IDR)"
    )
    type = models.CharField(
        max_length=20,
        choices=EarningType.choices,
        default=EarningType.DELIVERY,
        verbose_name="Tipe"
    )
    status = models.CharField(
        max_length=20,
        choices=EarningStatus.choices,
        default=EarningStatus.PENDING,
        verbose_name="Status"
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Pendapatan kurir"
        verbose_name_plural = "Pendapatan kurir"
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['order', 'type'],
                name='unique_earning_per_order_type',
            ),
        ]
        indexes = [
            models.Index(fields=['courier', 'status'], name='earning_courier_status_idx'),
        ]

    def __str__(self):
        return f"{self.courier} | {self.amount} IDR | {self.status}"
