"""
CORE App - In-app Notification Service

Fire-and-forget notification sink. Each message is stored as a
Notification row and pushed to the user's WebSocket group
(`user_<id>`) when a channel layer is configured.

A failed notification is logged and swallowed: it must never roll back
or fail the business operation that triggered it.
"""

import logging
from typing import Optional

from django.db import DatabaseError

from core.models import Notification, NotificationType

logger = logging.getLogger(__name__)


# ===========================================
# NOTIFICATION TEMPLATES
# ===========================================

class NotificationTemplates:
    """Message templates shown in the courier/merchant portals."""

    ORDER_ASSIGNED_TITLE = "Pesanan Baru Ditugaskan"
    ORDER_ASSIGNED = (
        "Anda mendapat pesanan baru #{order_ref}. Segera ambil pesanan."
    )

    COURIER_ASSIGNED_TITLE = "Kurir Ditugaskan"
    COURIER_ASSIGNED = (
        "Pesanan #{order_ref} akan diambil oleh {courier_name} ({vehicle})."
    )


def order_reference(order_id) -> str:
    """Short human-facing order reference (first 8 hex chars, upper case)."""
    return str(order_id)[:8].upper()


class NotificationService:
    """Writes in-app notifications and pushes them in real time."""

    @staticmethod
    def notify(
        user,
        title: str,
        message: str,
        notification_type: str = NotificationType.SYSTEM,
        link: str = '',
    ) -> Optional[Notification]:
        """
        Store and push a notification. Returns None when it could not be stored.
        """
        try:
            notification = Notification.objects.create(
                user=user,
                title=title,
                message=message,
                type=notification_type,
                link=link,
            )
        except DatabaseError as e:
            logger.warning(f"[NOTIFY] Could not store notification for {user.pk}: {e}")
            return None

        from logistics.events import push_user_notification

        push_user_notification(str(user.pk), {
            'id': str(notification.id),
            'title': notification.title,
            'message': notification.message,
            'notification_type': notification.type,
            'link': notification.link,
            'created_at': notification.created_at.isoformat(),
        })

        logger.info(f"[NOTIFY] {notification.type} notification sent to user {str(user.pk)[:8]}")
        return notification

    @classmethod
    def notify_courier_assigned(cls, courier, order) -> Optional[Notification]:
        """Tell the courier a new order is theirs."""
        return cls.notify(
            courier.user,
            NotificationTemplates.ORDER_ASSIGNED_TITLE,
            NotificationTemplates.ORDER_ASSIGNED.format(order_ref=order_reference(order.id)),
            notification_type=NotificationType.ORDER,
            link='/courier',
        )

    @classmethod
    def notify_merchant_courier_assigned(cls, courier, order) -> Optional[Notification]:
        """Tell the merchant which courier will pick the order up."""
        return cls.notify(
            order.merchant.user,
            NotificationTemplates.COURIER_ASSIGNED_TITLE,
            NotificationTemplates.COURIER_ASSIGNED.format(
                order_ref=order_reference(order.id),
                courier_name=courier.name,
                vehicle=courier.get_vehicle_type_display(),
            ),
            notification_type=NotificationType.ORDER,
            link=f'/merchant/orders/{order.id}',
        )

    @staticmethod
    def mark_read(notification: Notification) -> Notification:
        if not notification.is_read:
            notification.is_read = True
            notification.save(update_fields=['is_read'])
        return notification
