"""
Logistics App Serializers - Orders, Dispatch & Courier Location
"""

from rest_framework import serializers

from .models import Order, OrderStatus


class OrderSerializer(serializers.ModelSerializer):
    """Full serializer for Order model."""

    merchant_name = serializers.CharField(source='merchant.name', read_only=True)
    courier_name = serializers.CharField(source='courier.name', read_only=True, default=None)
    courier_phone = serializers.CharField(source='courier.phone', read_only=True, default=None)

    class Meta:
        model = Order
        fields = [
            'id', 'merchant', 'merchant_name', 'buyer',
            'courier', 'courier_name', 'courier_phone',
            'status', 'delivery_address', 'delivery_lat', 'delivery_lng',
            'subtotal', 'shipping_cost', 'total',
            'created_at', 'assigned_at', 'picked_up_at', 'delivered_at', 'cancelled_at',
        ]
        read_only_fields = fields


class AutoAssignSerializer(serializers.Serializer):
    """Optional overrides for automatic dispatch."""

    merchant_lat = serializers.FloatField(required=False, allow_null=True, min_value=-90, max_value=90)
    merchant_lng = serializers.FloatField(required=False, allow_null=True, min_value=-180, max_value=180)
    max_distance_km = serializers.FloatField(required=False, allow_null=True, min_value=0.1, max_value=100)

    def validate(self, data):
        has_lat = data.get('merchant_lat') is not None
        has_lng = data.get('merchant_lng') is not None
        if has_lat != has_lng:
            raise serializers.ValidationError(
                "merchant_lat dan merchant_lng harus dikirim bersamaan."
            )
        return data


class ManualAssignSerializer(serializers.Serializer):
    """Operator-chosen courier for an order."""

    courier_id = serializers.UUIDField()


class OrderStatusUpdateSerializer(serializers.Serializer):
    """Lifecycle transition after assignment."""

    status = serializers.ChoiceField(choices=[
        OrderStatus.PICKED_UP,
        OrderStatus.ON_DELIVERY,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
    ])


class LocationCheckpointSerializer(serializers.Serializer):
    """GPS checkpoint sent by the courier app."""

    lat = serializers.FloatField(min_value=-90, max_value=90)
    lng = serializers.FloatField(min_value=-180, max_value=180)


class AvailabilitySerializer(serializers.Serializer):

    is_available = serializers.BooleanField()


class AvailableCouriersQuerySerializer(serializers.Serializer):
    """Query string of the available-courier listing."""

    order_id = serializers.UUIDField(required=False)
    lat = serializers.FloatField(required=False, min_value=-90, max_value=90)
    lng = serializers.FloatField(required=False, min_value=-180, max_value=180)
    max_distance_km = serializers.FloatField(required=False, min_value=0.1, max_value=100)

    def validate(self, data):
        has_point = 'lat' in data and 'lng' in data
        if ('lat' in data) != ('lng' in data):
            raise serializers.ValidationError("lat dan lng harus dikirim bersamaan.")
        if not has_point and 'order_id' not in data:
            raise serializers.ValidationError("Kirim lat/lng atau order_id.")
        return data
