"""
Logistics App Views - Orders, Dispatch & Courier Location API
"""

from django.conf import settings
from rest_framework import viewsets, status, permissions
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from core.models import Courier, UserRole
from core.serializers import CourierSerializer
from .events import broadcast_courier_location
from .models import Order, OrderStatus
from .serializers import (
    OrderSerializer, AutoAssignSerializer, ManualAssignSerializer,
    OrderStatusUpdateSerializer, LocationCheckpointSerializer,
    AvailabilitySerializer, AvailableCouriersQuerySerializer,
)
from .services.dispatch import (
    DispatchOutcome, DispatchResult, manual_assign_courier, parse_id, update_order_status,
)
from .services.location import CourierLocationStore
from .services.smart_dispatch import (
    auto_assign_courier, rank_available_couriers, resolve_pickup_point,
)


class IsAdminRole(permissions.BasePermission):
    """Platform administrators only."""

    def has_permission(self, request, view):
        return request.user.is_authenticated and request.user.is_admin


class IsMerchantOrAdmin(permissions.BasePermission):
    """Permission for merchant or admin users."""

    def has_permission(self, request, view):
        if not request.user.is_authenticated:
            return False
        return request.user.is_admin or request.user.role == UserRole.MERCHANT


class IsCourier(permissions.BasePermission):
    """Authenticated user with a courier profile."""

    message = 'Hanya kurir yang dapat mengakses sumber ini.'

    def has_permission(self, request, view):
        if not request.user.is_authenticated or request.user.role != UserRole.COURIER:
            return False
        view.courier = Courier.objects.filter(user=request.user).first()
        return view.courier is not None


class OrderViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Orders and their dispatch.

    GET   /api/orders/
    POST  /api/orders/{id}/auto-assign/
    POST  /api/orders/{id}/assign/
    PATCH /api/orders/{id}/status/
    """

    serializer_class = OrderSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ['status', 'courier']
    ordering_fields = ['created_at', 'assigned_at']

    def get_queryset(self):
        user = self.request.user
        orders = Order.objects.select_related('merchant', 'courier')

        if user.is_admin:
            return orders
        elif user.role == UserRole.MERCHANT:
            return orders.filter(merchant__user=user)
        elif user.role == UserRole.COURIER:
            return orders.filter(courier__user=user)
        return orders.filter(buyer=user)

    def _dispatch_target(self, pk):
        """Order visible to the caller, or the failed DispatchResult to answer with."""
        order_id = parse_id(pk)
        if order_id is None:
            return None, DispatchResult(DispatchOutcome.INVALID_REQUEST, order_id=pk)
        order = self.get_queryset().filter(pk=order_id).first()
        if order is None:
            return None, DispatchResult(DispatchOutcome.ORDER_NOT_FOUND, order_id=order_id)
        return order, None

    @action(detail=True, methods=['post'], url_path='auto-assign')
    def auto_assign(self, request, pk=None):
        """Pick and claim the best courier for the order."""
        order, failure = self._dispatch_target(pk)
        if failure:
            return Response(failure.to_dict(), status=failure.http_status)
        if not (request.user.is_admin or order.merchant.user_id == request.user.pk):
            return Response(
                {'success': False, 'error': 'FORBIDDEN', 'message': 'Bukan pesanan Anda.'},
                status=status.HTTP_403_FORBIDDEN
            )

        serializer = AutoAssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = auto_assign_courier(
            order.id,
            pickup_lat=data.get('merchant_lat'),
            pickup_lng=data.get('merchant_lng'),
            max_distance_km=data.get('max_distance_km'),
        )
        return Response(result.to_dict(), status=result.http_status)

    @action(detail=True, methods=['post'], permission_classes=[IsAdminRole])
    def assign(self, request, pk=None):
        """Assign an operator-chosen courier."""
        order, failure = self._dispatch_target(pk)
        if failure:
            return Response(failure.to_dict(), status=failure.http_status)
        serializer = ManualAssignSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = manual_assign_courier(order.id, serializer.validated_data['courier_id'])
        return Response(result.to_dict(), status=result.http_status)

    @action(detail=True, methods=['patch'], url_path='status')
    def update_status(self, request, pk=None):
        """Move an assigned order through pickup, delivery or cancellation."""
        order = self.get_object()
        serializer = OrderStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        new_status = serializer.validated_data['status']

        user = request.user
        is_assigned_courier = order.courier_id is not None and order.courier.user_id == user.pk
        is_owning_merchant = order.merchant.user_id == user.pk
        allowed = (
            user.is_admin
            or is_assigned_courier
            or (is_owning_merchant and new_status == OrderStatus.CANCELLED)
        )
        if not allowed:
            return Response(
                {'error': 'Anda tidak dapat mengubah status pesanan ini.'},
                status=status.HTTP_403_FORBIDDEN
            )

        try:
            order = update_order_status(order.id, new_status)
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_409_CONFLICT)

        return Response(OrderSerializer(order).data)


class AvailableCouriersView(APIView):
    """
    Eligible couriers around a pickup point, best first.

    GET /api/couriers/available/?order_id=<uuid>
    GET /api/couriers/available/?lat=-6.91&lng=107.61&max_distance_km=5
    """

    permission_classes = [IsMerchantOrAdmin]

    def get(self, request):
        serializer = AvailableCouriersQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        lat, lng, source = data.get('lat'), data.get('lng'), 'request'
        if 'order_id' in data:
            orders = Order.objects.select_related('merchant')
            if not request.user.is_admin:
                orders = orders.filter(merchant__user=request.user)
            order = orders.filter(pk=data['order_id']).first()
            if order is None:
                return Response(
                    {'error': 'Pesanan tidak ditemukan.'},
                    status=status.HTTP_404_NOT_FOUND
                )
            lat, lng, source = resolve_pickup_point(order, lat, lng)

        max_distance_km = data.get('max_distance_km', settings.DISPATCH_MAX_DISTANCE_KM)
        candidates = rank_available_couriers(lat, lng, max_distance_km)

        return Response({
            'pickup': {'lat': lat, 'lng': lng, 'source': source},
            'max_distance_km': max_distance_km,
            'count': len(candidates),
            'couriers': [c.to_dict() for c in candidates],
        })


class CourierLocationView(APIView):
    """
    API endpoint for courier GPS checkpoints.

    POST /api/courier/location/

    Request body:
    {
        "lat": -6.9175,
        "lng": 107.6191
    }
    """

    permission_classes = [IsCourier]

    def post(self, request):
        """Persist the courier's checkpoint and show it to live viewers."""
        serializer = LocationCheckpointSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        lat = serializer.validated_data['lat']
        lng = serializer.validated_data['lng']

        try:
            saved = CourierLocationStore().record_checkpoint(self.courier.id, lat, lng)
        except ValueError as e:
            return Response({'error': str(e)}, status=status.HTTP_400_BAD_REQUEST)

        if not saved:
            return Response(
                {'status': 'not_saved', 'message': 'Posisi belum tersimpan, coba lagi.'},
                status=status.HTTP_503_SERVICE_UNAVAILABLE
            )

        position = CourierLocationStore().get_position(self.courier.id)
        broadcast_courier_location(self.courier.id, position['lat'], position['lng'])
        return Response({
            'status': 'ok',
            'message': 'Posisi diperbarui.',
            'location': {
                'lat': position['lat'],
                'lng': position['lng'],
                'updated_at': position['updated_at'].isoformat(),
            }
        })

    def get(self, request):
        """Get courier's last checkpoint."""
        position = CourierLocationStore().get_position(self.courier.id)
        if position is None:
            return Response({
                'status': 'no_location',
                'message': 'Belum ada posisi tersimpan.'
            })

        return Response({
            'status': 'ok',
            'location': {
                'lat': position['lat'],
                'lng': position['lng'],
                'updated_at': position['updated_at'].isoformat() if position['updated_at'] else None,
            }
        })


class CourierAvailabilityView(APIView):
    """
    POST /api/courier/availability/
    Toggle whether the courier accepts new orders.
    """

    permission_classes = [IsCourier]

    def post(self, request):
        serializer = AvailabilitySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        courier = CourierLocationStore().set_availability(
            self.courier.id,
            serializer.validated_data['is_available'],
        )
        return Response(CourierSerializer(courier).data)
