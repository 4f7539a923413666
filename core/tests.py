"""
PASAR Core Tests
=================

Tests for:
1. Custom User Model (creation, roles)
2. Courier & Merchant profiles
3. In-app notifications (service, API)
4. Health endpoints
"""

from unittest.mock import patch

from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.test import TestCase
from rest_framework.test import APIClient

from core.models import (
    User, UserRole, Merchant, Courier, Notification, NotificationType,
    CourierStatus, RegistrationStatus,
)
from core.notifications import NotificationService, order_reference


class TestUserModel(TestCase):
    """Tests for the custom User model."""

    def test_create_user_with_phone(self):
        user = User.objects.create_user(
            phone_number='+6281234567890',
            password='rahasia123',
            full_name='Siti Aminah',
        )
        self.assertEqual(user.role, UserRole.BUYER)
        self.assertTrue(user.check_password('rahasia123'))
        self.assertFalse(user.is_staff)

    def test_create_user_without_password_is_unusable(self):
        user = User.objects.create_user(phone_number='+6281234567891')
        self.assertFalse(user.has_usable_password())

    def test_phone_required(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(phone_number='')

    def test_phone_format_validated(self):
        user = User(phone_number='081234567890')
        with self.assertRaises(ValidationError):
            user.full_clean()

    def test_superuser_is_admin(self):
        admin = User.objects.create_superuser(phone_number='+6281234567892', password='x')
        self.assertTrue(admin.is_admin)
        self.assertEqual(admin.role, UserRole.ADMIN)

    def test_role_properties(self):
        courier = User.objects.create_user(phone_number='+6281234567893', role=UserRole.COURIER)
        merchant = User.objects.create_user(phone_number='+6281234567894', role=UserRole.MERCHANT)
        self.assertTrue(courier.is_courier)
        self.assertFalse(courier.is_admin)
        self.assertTrue(merchant.is_merchant)


class TestProfiles(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(phone_number='+6281234500001', role=UserRole.COURIER)

    def test_new_courier_defaults(self):
        courier = Courier.objects.create(user=self.user, name='Budi')

        self.assertFalse(courier.has_position)
        self.assertFalse(courier.is_available)
        self.assertEqual(courier.registration_status, RegistrationStatus.PENDING)
        self.assertFalse(courier.is_dispatchable)

    def test_dispatchable_needs_all_flags(self):
        courier = Courier.objects.create(
            user=self.user,
            name='Budi',
            is_available=True,
            registration_status=RegistrationStatus.APPROVED,
        )
        self.assertTrue(courier.is_dispatchable)

        courier.status = CourierStatus.SUSPENDED
        self.assertFalse(courier.is_dispatchable)

    def test_merchant_location(self):
        owner = User.objects.create_user(phone_number='+6281234500002', role=UserRole.MERCHANT)
        merchant = Merchant.objects.create(user=owner, name='Toko Sari')
        self.assertFalse(merchant.has_location)

        merchant.latitude, merchant.longitude = -6.9, 107.6
        self.assertTrue(merchant.has_location)


class TestNotificationService(TestCase):

    def setUp(self):
        self.user = User.objects.create_user(phone_number='+6281234500003')

    def test_notify_stores_and_pushes(self):
        with patch('logistics.events.push_user_notification') as push:
            notification = NotificationService.notify(
                self.user, 'Judul', 'Isi pesan', NotificationType.ORDER, '/courier'
            )

        self.assertEqual(Notification.objects.get(), notification)
        push.assert_called_once()
        user_id, payload = push.call_args[0]
        self.assertEqual(user_id, str(self.user.pk))
        self.assertEqual(payload['title'], 'Judul')

    def test_store_failure_is_swallowed(self):
        with patch.object(Notification.objects, 'create', side_effect=DatabaseError('down')):
            with self.assertLogs('core.notifications', level='WARNING'):
                self.assertIsNone(NotificationService.notify(self.user, 'a', 'b'))

    def test_order_reference(self):
        self.assertEqual(order_reference('3f2a9c1e-0000-0000-0000-000000000000'), '3F2A9C1E')


class TestNotificationAPI(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(phone_number='+6281234500004')
        self.other = User.objects.create_user(phone_number='+6281234500005')
        self.mine = Notification.objects.create(user=self.user, title='a', message='b')
        Notification.objects.create(user=self.other, title='c', message='d')
        self.client.force_authenticate(self.user)

    def test_list_only_own(self):
        response = self.client.get('/api/notifications/')
        self.assertEqual(response.data['count'], 1)

    def test_mark_read(self):
        response = self.client.post(f'/api/notifications/{self.mine.id}/read/')

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['is_read'])
        response = self.client.get('/api/notifications/unread-count/')
        self.assertEqual(response.data['unread'], 0)

    def test_cannot_read_others(self):
        theirs = Notification.objects.get(user=self.other)
        response = self.client.post(f'/api/notifications/{theirs.id}/read/')
        self.assertEqual(response.status_code, 404)


class TestHealthEndpoints(TestCase):

    def test_health_endpoint_accessible(self):
        """Health check should be accessible without auth."""
        response = self.client.get('/health/')
        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data['status'], 'ok')
        self.assertEqual(data['service'], 'pasar-dispatch')

    @patch('pasar_core.celery.app.control.inspect')
    def test_readiness_with_celery_down_is_degraded(self, inspect):
        inspect.return_value.ping.return_value = None

        response = self.client.get('/health/ready/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['checks']['celery']['status'], 'degraded')

    def test_dispatch_health_requires_staff(self):
        response = self.client.get('/health/dispatch/')
        self.assertEqual(response.status_code, 403)
