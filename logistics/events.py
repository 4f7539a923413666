"""
LOGISTICS App - Real-time Event Broadcasting

Fire-and-forget pushes through Django Channels groups.
Nothing sent here is persisted and dispatch never reads it back.

Groups:
- courier_<courier_id>       the courier's own device
- courier_<courier_id>_live  map viewers following that courier
- user_<user_id>             in-app notifications for one user
"""

import logging
from typing import Optional

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.utils import timezone

logger = logging.getLogger(__name__)


def courier_group(courier_id: str) -> str:
    return f'courier_{courier_id}'


def courier_live_group(courier_id: str) -> str:
    return f'courier_{courier_id}_live'


def user_group(user_id: str) -> str:
    return f'user_{user_id}'


def _send_group_event(group_name: str, event: dict) -> bool:
    """Send event to a channel group."""
    channel_layer = get_channel_layer()
    if not channel_layer:
        logger.warning(f"[EVENTS] No channel layer configured, dropped event for {group_name}")
        return False

    try:
        async_to_sync(channel_layer.group_send)(group_name, event)
        return True
    except Exception as e:
        logger.error(f"[EVENTS] Failed to send to group {group_name}: {e}")
        return False


# ============================================
# COURIER EVENTS
# ============================================

def courier_location_event(
    courier_id: str,
    latitude: float,
    longitude: float,
    timestamp: Optional[str] = None,
) -> dict:
    """Group message carrying a live position to map viewers."""
    return {
        'type': 'courier_location_update',
        'courier_id': str(courier_id),
        'latitude': float(latitude),
        'longitude': float(longitude),
        'timestamp': timestamp or timezone.now().isoformat(),
    }


def broadcast_courier_location(
    courier_id: str,
    latitude: float,
    longitude: float,
    timestamp: Optional[str] = None,
) -> bool:
    """
    Live position for map viewers, from synchronous code.

    Ephemeral channel: the stored courier position is only changed by a
    checkpoint, never by this broadcast.
    """
    sent = _send_group_event(
        courier_live_group(courier_id),
        courier_location_event(courier_id, latitude, longitude, timestamp),
    )
    logger.debug(
        f"[EVENTS] Broadcasted courier location: {str(courier_id)[:8]} "
        f"({latitude:.5f}, {longitude:.5f})"
    )
    return sent


def broadcast_order_assigned(courier_id: str, order_id: str, order_info: dict = None) -> bool:
    """Tell the courier's device it has a new order."""
    return _send_group_event(
        courier_group(courier_id),
        {
            'type': 'order_assigned',
            'order_id': str(order_id),
            'order': order_info or {},
            'timestamp': timezone.now().isoformat(),
        }
    )


def broadcast_order_status(order_id: str, new_status: str, courier_id: Optional[str] = None) -> bool:
    """Status change of an order, sent to its courier if it has one."""
    if not courier_id:
        return False
    sent = _send_group_event(
        courier_group(courier_id),
        {
            'type': 'order_status_update',
            'order_id': str(order_id),
            'status': new_status,
            'timestamp': timezone.now().isoformat(),
        }
    )
    logger.debug(f"[EVENTS] Broadcasted status change: {str(order_id)[:8]} -> {new_status}")
    return sent


# ============================================
# NOTIFICATIONS
# ============================================

def push_user_notification(user_id: str, notification: dict) -> bool:
    """Push an in-app notification to every open socket of a user."""
    return _send_group_event(
        user_group(user_id),
        {
            'type': 'user_notification',
            'notification': notification,
        }
    )
