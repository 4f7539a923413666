"""
LOGISTICS App - WebSocket Consumers for Courier Tracking

Two separate position channels:
- location_ping: high-frequency, broadcast to live viewers, never stored
- checkpoint:    periodic (~30 s), persisted as the courier's dispatch position
"""

import logging
from typing import Any, Dict, Optional

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer
from django.conf import settings

from logistics.events import (
    courier_group, courier_live_group, courier_location_event, user_group,
)
from logistics.utils import is_valid_coordinate

logger = logging.getLogger(__name__)


class CourierTrackingConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for the courier's own device.

    Clients connect to: ws://host/ws/couriers/<courier_id>/tracking/

    Events sent by courier:
    - location_ping: live GPS position (broadcast only)
    - checkpoint:    GPS position to persist for dispatch
    - ping

    Events received by courier:
    - order_assigned: they were assigned an order
    - order_status_update: an order of theirs changed status
    - notification: in-app notification
    """

    courier_id = None
    user_id = None

    async def connect(self):
        self.courier_id = self.scope['url_route']['kwargs']['courier_id']
        user = self.scope.get('user')

        if not user or user.is_anonymous:
            logger.warning(f"[WS] Anonymous tracking connection refused for courier {self.courier_id[:8]}")
            await self.close(code=4001)
            return

        if not await self.owns_courier(user):
            logger.warning(f"[WS] User {str(user.pk)[:8]} may not publish for courier {self.courier_id[:8]}")
            await self.close(code=4003)
            return

        self.user_id = str(user.pk)
        await self.channel_layer.group_add(courier_group(self.courier_id), self.channel_name)
        await self.channel_layer.group_add(user_group(self.user_id), self.channel_name)

        await self.accept()

        await self.send_json({
            'type': 'connection_established',
            'courier_id': self.courier_id,
            'checkpoint_interval': settings.LOCATION_CHECKPOINT_SECONDS,
        })

        logger.info(f"[WS] Courier {self.courier_id[:8]} connected")

    async def disconnect(self, close_code):
        if self.user_id:
            await self.channel_layer.group_discard(courier_group(self.courier_id), self.channel_name)
            await self.channel_layer.group_discard(user_group(self.user_id), self.channel_name)
            logger.info(f"[WS] Courier {self.courier_id[:8]} disconnected")

    async def receive_json(self, content):
        """Handle incoming messages from courier app."""
        message_type = content.get('type')

        if message_type == 'ping':
            await self.send_json({'type': 'pong'})

        elif message_type == 'location_ping':
            await self.handle_location_ping(content)

        elif message_type == 'checkpoint':
            await self.handle_checkpoint(content)

        else:
            await self.send_json({
                'type': 'error',
                'message': f"Tipe pesan tidak dikenal: {message_type}",
            })

    async def handle_location_ping(self, content: Dict[str, Any]):
        lat, lng = content.get('latitude'), content.get('longitude')
        if not is_valid_coordinate(lat, lng):
            await self.send_json({'type': 'error', 'message': 'Koordinat tidak valid'})
            return

        await self.channel_layer.group_send(
            courier_live_group(self.courier_id),
            courier_location_event(self.courier_id, lat, lng, content.get('timestamp')),
        )

    async def handle_checkpoint(self, content: Dict[str, Any]):
        lat, lng = content.get('latitude'), content.get('longitude')
        if not is_valid_coordinate(lat, lng):
            await self.send_json({'type': 'error', 'message': 'Koordinat tidak valid'})
            return

        saved = await self.record_checkpoint(float(lat), float(lng))
        await self.send_json({
            'type': 'checkpoint_ack',
            'saved': saved,
        })

    # ============================================
    # Event Handlers (called via channel_layer.group_send)
    # ============================================

    async def order_assigned(self, event):
        await self.send_json({
            'type': 'order_assigned',
            'order_id': event['order_id'],
            'order': event.get('order', {}),
            'timestamp': event['timestamp'],
        })

    async def order_status_update(self, event):
        await self.send_json({
            'type': 'order_status_update',
            'order_id': event['order_id'],
            'status': event['status'],
            'timestamp': event['timestamp'],
        })

    async def user_notification(self, event):
        await self.send_json({
            'type': 'notification',
            'notification': event['notification'],
        })

    # ============================================
    # Database helpers
    # ============================================

    @database_sync_to_async
    def owns_courier(self, user) -> bool:
        from core.models import Courier
        from logistics.services.dispatch import parse_id
        if parse_id(self.courier_id) is None:
            return False
        return Courier.objects.filter(pk=self.courier_id, user=user).exists()

    @database_sync_to_async
    def record_checkpoint(self, lat: float, lng: float) -> bool:
        from logistics.services.location import CourierLocationStore
        return CourierLocationStore().record_checkpoint(self.courier_id, lat, lng)


class CourierLiveConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for map viewers following one courier.

    Clients connect to: ws://host/ws/couriers/<courier_id>/live/
    Open to admins, the courier, and merchants with an open order on the courier.

    Events received:
    - last_checkpoint: stored position at connect time
    - location_update: live position from the courier's pings
    """

    courier_id = None
    group_name = None

    async def connect(self):
        self.courier_id = self.scope['url_route']['kwargs']['courier_id']
        user = self.scope.get('user')

        if not user or user.is_anonymous:
            await self.close(code=4001)
            return

        position = await self.get_last_checkpoint()
        if position is False:
            await self.close(code=4004)
            return

        if not await self.may_follow(user):
            logger.warning(f"[WS] User {str(user.pk)[:8]} may not follow courier {self.courier_id[:8]}")
            await self.close(code=4003)
            return

        self.group_name = courier_live_group(self.courier_id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)

        await self.accept()

        await self.send_json({
            'type': 'last_checkpoint',
            'courier_id': self.courier_id,
            'position': position,
        })

        logger.info(f"[WS] Viewer connected to courier {self.courier_id[:8]}")

    async def disconnect(self, close_code):
        if self.group_name:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def receive_json(self, content):
        if content.get('type') == 'ping':
            await self.send_json({'type': 'pong'})

    async def courier_location_update(self, event):
        await self.send_json({
            'type': 'location_update',
            'latitude': event['latitude'],
            'longitude': event['longitude'],
            'timestamp': event['timestamp'],
        })

    @database_sync_to_async
    def may_follow(self, user) -> bool:
        """Admins, the courier themselves, and merchants with an open order on this courier."""
        from core.models import Courier
        from logistics.models import ACTIVE_ORDER_STATUSES, Order

        if user.is_admin:
            return True
        if Courier.objects.filter(pk=self.courier_id, user=user).exists():
            return True
        return Order.objects.filter(
            courier_id=self.courier_id,
            merchant__user=user,
            status__in=ACTIVE_ORDER_STATUSES,
        ).exists()

    @database_sync_to_async
    def get_last_checkpoint(self) -> Optional[dict]:
        """Stored position, None before first fix, False for an unknown courier."""
        from core.models import Courier
        from logistics.services.dispatch import parse_id
        from logistics.services.location import CourierLocationStore

        if parse_id(self.courier_id) is None:
            return False
        if not Courier.objects.filter(pk=self.courier_id).exists():
            return False

        position = CourierLocationStore().get_position(self.courier_id)
        if position is None:
            return None
        return {
            'latitude': position['lat'],
            'longitude': position['lng'],
            'updated_at': position['updated_at'].isoformat() if position['updated_at'] else None,
        }
