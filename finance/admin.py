"""
Django Admin configuration for FINANCE app.
"""

from django.contrib import admin

from .models import CourierEarning


@admin.register(CourierEarning)
class CourierEarningAdmin(admin.ModelAdmin):
    """Read-only view of the courier earnings ledger."""

    list_display = ('courier', 'order', 'amount', 'type', 'status', 'created_at')
    list_filter = ('status', 'type', 'created_at')
    search_fields = ('courier__name', 'order__id')
    readonly_fields = ('courier', 'order', 'amount', 'type', 'created_at', 'updated_at')
