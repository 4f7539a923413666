"""
LOGISTICS App - Django Signals

Queue automatic dispatch for newly created orders.
"""

import logging
from django.conf import settings
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from logistics.models import Order, OrderStatus

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Order)
def on_order_created(sender, instance, created, **kwargs):
    """
    Queue auto-dispatch for a new, unassigned order.

    Enabled with AUTO_DISPATCH_ON_CREATE. The task is queued after commit
    so the worker always sees the order row.
    """
    if not created or not settings.AUTO_DISPATCH_ON_CREATE:
        return
    if instance.status != OrderStatus.CREATED or instance.courier_id is not None:
        return

    from logistics.tasks import auto_assign_order

    order_id = str(instance.id)
    transaction.on_commit(lambda: auto_assign_order.delay(order_id))
    logger.info(f"[DISPATCH] Auto-dispatch queued for order {order_id[:8]}")
