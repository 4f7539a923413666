"""
Logistics App URLs
"""

from django.urls import path, include
from rest_framework.routers import DefaultRouter

from .views import (
    OrderViewSet, AvailableCouriersView,
    CourierLocationView, CourierAvailabilityView,
)

router = DefaultRouter()
router.register(r'orders', OrderViewSet, basename='order')

urlpatterns = [
    # Dispatch helpers
    path('couriers/available/', AvailableCouriersView.as_view(), name='couriers-available'),

    # Courier app
    path('courier/location/', CourierLocationView.as_view(), name='courier-location'),
    path('courier/availability/', CourierAvailabilityView.as_view(), name='courier-availability'),

    # Router URLs
    path('', include(router.urls)),
]
