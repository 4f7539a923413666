"""
Core App Serializers - Users, Couriers & Notifications
"""

from rest_framework import serializers

from .models import User, Courier, Notification


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User model (read operations)."""

    class Meta:
        model = User
        fields = ['id', 'phone_number', 'full_name', 'role', 'is_active', 'date_joined']
        read_only_fields = fields


class CourierSerializer(serializers.ModelSerializer):
    """Courier profile as seen by the courier app."""

    class Meta:
        model = Courier
        fields = [
            'id', 'name', 'phone', 'vehicle_type',
            'current_lat', 'current_lng', 'last_location_update',
            'is_available', 'status', 'registration_status',
        ]
        read_only_fields = fields


class NotificationSerializer(serializers.ModelSerializer):

    class Meta:
        model = Notification
        fields = ['id', 'title', 'message', 'type', 'link', 'is_read', 'created_at']
        read_only_fields = fields
