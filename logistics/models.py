"""
LOGISTICS App - Orders & Delivery Lifecycle for PASAR

Handles: Orders and their courier assignment state.
"""

import uuid
from decimal import Decimal
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models


class OrderStatus(models.TextChoices):
    """Order lifecycle, in order."""
    CREATED = 'CREATED', 'Dibuat'
    ASSIGNED = 'ASSIGNED', 'Kurir ditugaskan'
    PICKED_UP = 'PICKED_UP', 'Diambil kurir'
    ON_DELIVERY = 'ON_DELIVERY', 'Dalam pengiriman'
    DELIVERED = 'DELIVERED', 'Terkirim'
    CANCELLED = 'CANCELLED', 'Dibatalkan'


# Statuses that count towards a courier's load
ACTIVE_ORDER_STATUSES = (
    OrderStatus.ASSIGNED,
    OrderStatus.PICKED_UP,
    OrderStatus.ON_DELIVERY,
)

# Transitions allowed after the claim. CREATED -> ASSIGNED is absent:
# it only happens through AssignmentTransaction.
ORDER_TRANSITIONS = {
    OrderStatus.CREATED: (OrderStatus.CANCELLED,),
    OrderStatus.ASSIGNED: (OrderStatus.PICKED_UP, OrderStatus.CANCELLED),
    OrderStatus.PICKED_UP: (OrderStatus.ON_DELIVERY, OrderStatus.CANCELLED),
    OrderStatus.ON_DELIVERY: (OrderStatus.DELIVERED, OrderStatus.CANCELLED),
    OrderStatus.DELIVERED: (),
    OrderStatus.CANCELLED: (),
}


class Order(models.Model):
    """
    Marketplace order as seen by dispatch.

    courier is null until the atomic claim sets it together with
    status=ASSIGNED and assigned_at. Nothing else writes courier.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # Actors
    merchant = models.ForeignKey(
        'core.Merchant',
        on_delete=models.PROTECT,
        related_name='orders',
        verbose_name="Merchant"
    )
    buyer = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='orders',
        verbose_name="Pembeli"
    )
    courier = models.ForeignKey(
        'core.Courier',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='orders',
        verbose_name="Kurir"
    )

    status = models.CharField(
        max_length=20,
        choices=OrderStatus.choices,
        default=OrderStatus.CREATED,
        verbose_name="Status"
    )

    # Delivery
    delivery_address = models.CharField(max_length=255, blank=True, verbose_name="Alamat kirim")
    delivery_lat = models.FloatField(null=True, blank=True)
    delivery_lng = models.FloatField(null=True, blank=True)

    # Amounts (IDR)
    subtotal = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        verbose_name="Subtotal"
    )
    shipping_cost = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        verbose_name="Ongkos kirim"
    )
    total = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0.00'),
        verbose_name="Total"
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    assigned_at = models.DateTimeField(null=True, blank=True)
    picked_up_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = "Pesanan"
        verbose_name_plural = "Pesanan"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', 'created_at'], name='order_status_created_idx'),
            models.Index(fields=['courier', 'status'], name='order_courier_status_idx'),
        ]

    def __str__(self):
        return f"Pesanan {str(self.id)[:8]} - {self.status}"

    def clean(self):
        if self.status in ACTIVE_ORDER_STATUSES and self.courier_id is None:
            raise ValidationError("Pesanan aktif wajib memiliki kurir")
        if self.status == OrderStatus.CREATED and self.courier_id is not None:
            raise ValidationError("Pesanan baru tidak boleh memiliki kurir")

    def can_transition_to(self, new_status: str) -> bool:
        return new_status in ORDER_TRANSITIONS.get(self.status, ())
