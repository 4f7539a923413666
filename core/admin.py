"""
Django Admin configuration for CORE app.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from logistics.services.location import CourierLocationStore
from .models import User, Merchant, Courier, Notification, RegistrationStatus, CourierStatus


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Custom admin for User model with phone-based auth."""

    list_display = ('phone_number', 'full_name', 'role', 'is_active', 'date_joined')
    list_filter = ('role', 'is_active', 'is_staff')
    search_fields = ('phone_number', 'full_name')
    ordering = ('-date_joined',)

    fieldsets = (
        (None, {
            'fields': ('phone_number', 'password')
        }),
        ('Profil', {
            'fields': ('full_name', 'role')
        }),
        ('Permissions', {
            'fields': ('is_active', 'is_staff', 'is_superuser', 'groups', 'user_permissions'),
            'classes': ('collapse',)
        }),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('phone_number', 'full_name', 'role', 'password1', 'password2'),
        }),
    )


@admin.register(Merchant)
class MerchantAdmin(admin.ModelAdmin):
    list_display = ('name', 'user', 'city', 'latitude', 'longitude', 'created_at')
    search_fields = ('name', 'user__phone_number', 'city')


@admin.register(Courier)
class CourierAdmin(admin.ModelAdmin):
    """Courier supervision: availability, status, derived load."""

    list_display = (
        'name',
        'vehicle_type',
        'status',
        'registration_status',
        'is_available',
        'active_orders',
        'current_lat',
        'current_lng',
        'last_location_update',
    )
    list_filter = ('status', 'registration_status', 'is_available', 'vehicle_type')
    search_fields = ('name', 'phone', 'user__phone_number')
    readonly_fields = ('current_lat', 'current_lng', 'last_location_update')
    actions = ['approve_registration', 'suspend_couriers']

    @admin.display(description="Order aktif")
    def active_orders(self, obj):
        return CourierLocationStore().active_order_count(obj.pk)

    @admin.action(description="Setujui registrasi kurir terpilih")
    def approve_registration(self, request, queryset):
        updated = queryset.update(registration_status=RegistrationStatus.APPROVED)
        self.message_user(request, f"{updated} kurir disetujui.")

    @admin.action(description="Tangguhkan kurir terpilih")
    def suspend_couriers(self, request, queryset):
        updated = queryset.update(status=CourierStatus.SUSPENDED, is_available=False)
        self.message_user(request, f"{updated} kurir ditangguhkan.")


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ('title', 'user', 'type', 'is_read', 'created_at')
    list_filter = ('type', 'is_read')
    search_fields = ('title', 'user__phone_number')
