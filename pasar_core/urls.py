"""
PASAR Main URL Configuration
"""

from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework.decorators import api_view
from rest_framework.response import Response

from core.health import health_check, readiness_check, dispatch_health


# ===========================================
# ADMIN SITE CUSTOMIZATION
# ===========================================
admin.site.site_header = "PASAR Dispatch"
admin.site.site_title = "PASAR Admin"
admin.site.index_title = "Pengawasan Operasional"


@api_view(['GET'])
def api_root(request):
    """API Root endpoint with available routes."""
    return Response({
        'name': 'PASAR Dispatch API',
        'version': '1.0.0',
        'endpoints': {
            'auth': {
                'token': '/api/auth/token/',
                'refresh': '/api/auth/token/refresh/',
            },
            'me': '/api/me/',
            'orders': '/api/orders/',
            'couriers_available': '/api/couriers/available/',
            'courier': {
                'location': '/api/courier/location/',
                'availability': '/api/courier/availability/',
            },
            'notifications': '/api/notifications/',
            'schema': '/api/schema/',
        }
    })


urlpatterns = [
    # Admin
    path('admin/', admin.site.urls),

    # Health
    path('health/', health_check, name='health'),
    path('health/ready/', readiness_check, name='health-ready'),
    path('health/dispatch/', dispatch_health, name='health-dispatch'),

    # API Root
    path('api/', api_root, name='api-root'),

    # API documentation
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),

    # App URLs
    path('api/', include('core.urls')),
    path('api/', include('logistics.urls')),
]
