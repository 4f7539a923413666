"""
Django Admin configuration for LOGISTICS app.
"""

from django.contrib import admin, messages

from .models import Order, OrderStatus
from .services.smart_dispatch import auto_assign_courier


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    """
    Orders with dispatch shortcuts.

    courier and status are read-only here: assignment only happens through
    the dispatch actions.
    """

    list_display = (
        'short_id',
        'merchant',
        'status',
        'courier',
        'shipping_cost',
        'created_at',
        'assigned_at',
    )
    list_filter = ('status', 'created_at')
    search_fields = ('id', 'merchant__name', 'courier__name', 'delivery_address')
    raw_id_fields = ('merchant', 'buyer')
    readonly_fields = (
        'courier', 'status',
        'created_at', 'assigned_at', 'picked_up_at', 'delivered_at', 'cancelled_at',
    )
    date_hierarchy = 'created_at'
    actions = ['auto_assign_selected']

    @admin.display(description='ID')
    def short_id(self, obj):
        return str(obj.id)[:8].upper()

    @admin.action(description='Tugaskan kurir otomatis')
    def auto_assign_selected(self, request, queryset):
        assigned = 0
        for order in queryset.filter(status=OrderStatus.CREATED, courier__isnull=True):
            result = auto_assign_courier(order.id)
            if result.success:
                assigned += 1
            else:
                self.message_user(
                    request,
                    f"Pesanan {str(order.id)[:8]}: {result.message}",
                    messages.WARNING,
                )
        self.message_user(request, f"{assigned} pesanan berhasil ditugaskan.", messages.SUCCESS)
