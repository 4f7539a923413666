"""
Core App Views - Current user & Notifications API
"""

from rest_framework import viewsets, permissions
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Notification
from .notifications import NotificationService
from .serializers import UserSerializer, NotificationSerializer


class MeView(APIView):
    """
    GET /api/me/
    Returns the authenticated user.
    """

    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)


class NotificationViewSet(viewsets.ReadOnlyModelViewSet):
    """
    In-app notifications of the authenticated user.

    GET  /api/notifications/
    POST /api/notifications/{id}/read/
    """

    serializer_class = NotificationSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ['is_read', 'type']

    def get_queryset(self):
        return Notification.objects.filter(user=self.request.user)

    @action(detail=True, methods=['post'])
    def read(self, request, pk=None):
        notification = NotificationService.mark_read(self.get_object())
        return Response(self.get_serializer(notification).data)

    @action(detail=False, methods=['get'], url_path='unread-count')
    def unread_count(self, request):
        return Response({'unread': self.get_queryset().filter(is_read=False).count()})
