"""
LOGISTICS App - WebSocket Routing Configuration

Maps WebSocket URLs to consumers for courier tracking.
"""

from django.urls import re_path
from . import consumers


websocket_urlpatterns = [
    # Courier device: live pings and persisted checkpoints
    # ws://localhost:8000/ws/couriers/<uuid>/tracking/
    re_path(
        r'ws/couriers/(?P<courier_id>[0-9a-f-]+)/tracking/$',
        consumers.CourierTrackingConsumer.as_asgi()
    ),

    # Map viewers following a courier
    # ws://localhost:8000/ws/couriers/<uuid>/live/
    re_path(
        r'ws/couriers/(?P<courier_id>[0-9a-f-]+)/live/$',
        consumers.CourierLiveConsumer.as_asgi()
    ),
]
