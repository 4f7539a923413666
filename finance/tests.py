"""
PASAR Finance Tests
====================

Tests for:
1. Courier share of the shipping cost (rate, rounding)
2. Pending earning on assignment (idempotent, zero cost)
3. Voiding pending earnings on cancellation
"""

from decimal import Decimal

from django.test import TestCase, override_settings

from core.models import User, UserRole, Merchant, Courier
from finance.models import CourierEarning, EarningStatus
from finance.services import EarningService
from logistics.models import Order


class TestCourierShare(TestCase):

    def test_default_rate_is_eighty_percent(self):
        self.assertEqual(EarningService.courier_share(Decimal('15000')), Decimal('12000'))

    def test_rounds_down_to_whole_rupiah(self):
        self.assertEqual(EarningService.courier_share(Decimal('15999')), Decimal('12799'))
        self.assertEqual(EarningService.courier_share(Decimal('1.99')), Decimal('1'))

    def test_explicit_rate(self):
        self.assertEqual(
            EarningService.courier_share(Decimal('10000'), rate=Decimal('0.75')),
            Decimal('7500'),
        )

    @override_settings(COURIER_EARNING_RATE=Decimal('0.70'))
    def test_rate_from_settings(self):
        self.assertEqual(EarningService.courier_share(Decimal('10000')), Decimal('7000'))

    def test_missing_cost(self):
        self.assertEqual(EarningService.courier_share(None), Decimal('0'))


class TestEarningLedger(TestCase):

    def setUp(self):
        owner = User.objects.create_user(phone_number='+6281200000001', role=UserRole.MERCHANT)
        rider = User.objects.create_user(phone_number='+6281200000002', role=UserRole.COURIER)
        self.merchant = Merchant.objects.create(user=owner, name='Toko')
        self.courier = Courier.objects.create(user=rider, name='Rudi')
        self.order = Order.objects.create(merchant=self.merchant, shipping_cost=Decimal('20000'))

    def test_record_pending_earning(self):
        earning = EarningService.record_pending_earning(self.courier, self.order)

        self.assertEqual(earning.amount, Decimal('16000'))
        self.assertEqual(earning.status, EarningStatus.PENDING)
        self.assertEqual(earning.courier, self.courier)

    def test_recording_twice_keeps_one_entry(self):
        first = EarningService.record_pending_earning(self.courier, self.order)
        second = EarningService.record_pending_earning(self.courier, self.order)

        self.assertEqual(first.pk, second.pk)
        self.assertEqual(CourierEarning.objects.count(), 1)

    def test_free_shipping_records_nothing(self):
        free = Order.objects.create(merchant=self.merchant, shipping_cost=Decimal('0'))
        self.assertIsNone(EarningService.record_pending_earning(self.courier, free))
        self.assertFalse(CourierEarning.objects.exists())

    def test_cancel_voids_only_pending(self):
        earning = EarningService.record_pending_earning(self.courier, self.order)

        self.assertEqual(EarningService.cancel_pending_earnings(self.order), 1)
        earning.refresh_from_db()
        self.assertEqual(earning.status, EarningStatus.CANCELLED)

        self.assertEqual(EarningService.cancel_pending_earnings(self.order), 0)
