"""
PASAR Logistics Tests - Assignment transaction

Tests for:
1. The atomic claim (single winner, no overwrite, cap under lock)
2. Manual assignment re-validation
3. Persistence failures and post-commit side effects
4. Order lifecycle after assignment
"""

import threading
import unittest
import uuid
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from unittest.mock import patch

from django.db import DatabaseError, connection
from django.test import TestCase, TransactionTestCase

from core.models import Courier, CourierStatus, Notification, RegistrationStatus
from finance.models import CourierEarning, EarningStatus
from logistics.models import Order, OrderStatus
from logistics.services.dispatch import (
    AssignmentTransaction, DispatchOutcome, ErrorKind,
    manual_assign_courier, update_order_status,
)
from logistics.services.location import CourierLocationStore
from logistics.tests.helpers import make_courier, make_merchant, make_order, give_active_orders


class TestClaim(TestCase):

    def setUp(self):
        self.merchant = make_merchant()
        self.order = make_order(self.merchant)
        self.a = make_courier('A')
        self.b = make_courier('B')

    def test_claim_sets_courier_status_and_timestamp(self):
        result = AssignmentTransaction().claim(self.order.id, self.a.id)

        self.assertTrue(result.success)
        self.order.refresh_from_db()
        self.assertEqual(self.order.courier, self.a)
        self.assertEqual(self.order.status, OrderStatus.ASSIGNED)
        self.assertIsNotNone(self.order.assigned_at)

    def test_second_claim_never_overwrites(self):
        AssignmentTransaction().claim(self.order.id, self.a.id)
        result = AssignmentTransaction().claim(self.order.id, self.b.id)

        self.assertEqual(result.outcome, DispatchOutcome.ALREADY_ASSIGNED)
        self.assertEqual(result.kind, ErrorKind.CONFLICT)
        self.order.refresh_from_db()
        self.assertEqual(self.order.courier, self.a)
        self.assertEqual(CourierEarning.objects.filter(order=self.order).count(), 1)

    def test_interleaved_claims_single_winner(self):
        """Claim B loses the race after passing its own checks."""
        real_check = AssignmentTransaction.courier_ineligibility
        interleaved = []
        results = []

        def check_then_let_a_win(claimer, courier):
            reason = real_check(claimer, courier)
            if not interleaved:
                interleaved.append(True)
                results.append(AssignmentTransaction().claim(self.order.id, self.a.id))
            return reason

        with patch.object(
            AssignmentTransaction, 'courier_ineligibility',
            autospec=True, side_effect=check_then_let_a_win,
        ):
            results.append(AssignmentTransaction().claim(self.order.id, self.b.id))

        a_result, b_result = results
        self.assertTrue(a_result.success)
        self.assertEqual(b_result.outcome, DispatchOutcome.ALREADY_ASSIGNED)

        self.order.refresh_from_db()
        self.assertEqual(self.order.courier, self.a)
        self.assertEqual(Order.objects.filter(courier__isnull=False).count(), 1)

    def test_claim_rechecks_cap(self):
        give_active_orders(self.a, self.merchant, 3)

        result = AssignmentTransaction().claim(self.order.id, self.a.id)

        self.assertEqual(result.outcome, DispatchOutcome.COURIER_NOT_ELIGIBLE)
        self.order.refresh_from_db()
        self.assertIsNone(self.order.courier)

    def test_claim_on_delivered_order(self):
        Order.objects.filter(pk=self.order.pk).update(status=OrderStatus.DELIVERED)

        result = AssignmentTransaction().claim(self.order.id, self.a.id)

        self.assertEqual(result.outcome, DispatchOutcome.ORDER_NOT_DISPATCHABLE)

    def test_claim_unknown_order(self):
        result = AssignmentTransaction().claim(uuid.uuid4(), self.a.id)
        self.assertEqual(result.outcome, DispatchOutcome.ORDER_NOT_FOUND)

    # ==========================================
    # Persistence & side effects
    # ==========================================

    def test_earning_failure_rolls_back_claim(self):
        with patch(
            'finance.services.EarningService.record_pending_earning',
            side_effect=DatabaseError('connection lost'),
        ):
            with self.assertLogs('logistics.services.dispatch', level='ERROR'):
                result = AssignmentTransaction().claim(self.order.id, self.a.id)

        self.assertEqual(result.outcome, DispatchOutcome.PERSISTENCE_FAILURE)
        self.assertEqual(result.http_status, 503)
        self.order.refresh_from_db()
        self.assertIsNone(self.order.courier)
        self.assertEqual(self.order.status, OrderStatus.CREATED)

    def test_notifications_sent_after_commit(self):
        with patch('logistics.events.broadcast_order_assigned') as broadcast:
            with self.captureOnCommitCallbacks(execute=True) as callbacks:
                AssignmentTransaction().claim(self.order.id, self.a.id)

        self.assertEqual(len(callbacks), 1)
        courier_note = Notification.objects.get(user=self.a.user)
        self.assertEqual(courier_note.title, 'Pesanan Baru Ditugaskan')
        self.assertIn(str(self.order.id)[:8].upper(), courier_note.message)
        self.assertEqual(courier_note.link, '/courier')
        self.assertTrue(Notification.objects.filter(user=self.merchant.user).exists())
        broadcast.assert_called_once()
        self.assertEqual(broadcast.call_args[0][:2], (str(self.a.id), str(self.order.id)))

    def test_notification_failure_keeps_claim(self):
        with patch(
            'core.notifications.NotificationService.notify_courier_assigned',
            side_effect=RuntimeError('push down'),
        ):
            with self.assertLogs('logistics.services.dispatch', level='WARNING'):
                with self.captureOnCommitCallbacks(execute=True):
                    result = AssignmentTransaction().claim(self.order.id, self.a.id)

        self.assertTrue(result.success)
        self.order.refresh_from_db()
        self.assertEqual(self.order.courier, self.a)

    def test_no_earning_without_shipping_cost(self):
        free = make_order(self.merchant, shipping_cost=Decimal('0'))

        result = AssignmentTransaction().claim(free.id, self.a.id)

        self.assertTrue(result.success)
        self.assertFalse(CourierEarning.objects.filter(order=free).exists())


class TestManualAssign(TestCase):

    def setUp(self):
        self.merchant = make_merchant()
        self.order = make_order(self.merchant)

    def test_manual_success(self):
        courier = make_courier('Pilihan', km_from_pickup=50)

        result = manual_assign_courier(str(self.order.id), str(courier.id))

        self.assertTrue(result.success)
        self.order.refresh_from_db()
        self.assertEqual(self.order.courier, courier)

    def test_manual_does_not_need_position(self):
        courier = make_courier('NoFix', positioned=False)
        self.assertTrue(manual_assign_courier(self.order.id, courier.id).success)

    def test_manual_rejects_courier_at_cap(self):
        courier = make_courier('Busy')
        give_active_orders(courier, self.merchant, 3)

        result = manual_assign_courier(self.order.id, courier.id)

        self.assertEqual(result.outcome, DispatchOutcome.COURIER_NOT_ELIGIBLE)
        self.assertEqual(result.http_status, 409)
        self.assertEqual(CourierLocationStore().active_order_count(courier.id), 3)

    def test_manual_rejects_unavailable_suspended_or_unapproved(self):
        offline = make_courier('Offline', available=False)
        suspended = make_courier('Suspended', status=CourierStatus.SUSPENDED)
        pending = make_courier('Pending', registration_status=RegistrationStatus.PENDING)

        for courier in (offline, suspended, pending):
            result = manual_assign_courier(self.order.id, courier.id)
            self.assertEqual(result.outcome, DispatchOutcome.COURIER_NOT_ELIGIBLE)

        self.order.refresh_from_db()
        self.assertIsNone(self.order.courier)

    def test_manual_unknown_courier(self):
        result = manual_assign_courier(self.order.id, uuid.uuid4())
        self.assertEqual(result.outcome, DispatchOutcome.COURIER_NOT_FOUND)
        self.assertEqual(result.http_status, 404)

    def test_manual_on_assigned_order(self):
        first = make_courier('First')
        second = make_courier('Second')
        manual_assign_courier(self.order.id, first.id)

        result = manual_assign_courier(self.order.id, second.id)

        self.assertEqual(result.outcome, DispatchOutcome.ALREADY_ASSIGNED)
        self.order.refresh_from_db()
        self.assertEqual(self.order.courier, first)

    def test_manual_malformed_ids(self):
        result = manual_assign_courier('', 'x')
        self.assertEqual(result.outcome, DispatchOutcome.INVALID_REQUEST)
        self.assertEqual(result.to_dict()['error'], 'INVALID_REQUEST')


class TestOrderLifecycle(TestCase):

    def setUp(self):
        self.merchant = make_merchant()
        self.order = make_order(self.merchant)
        self.courier = make_courier('A')
        manual_assign_courier(self.order.id, self.courier.id)
        self.store = CourierLocationStore()

    def test_delivery_drains_active_count(self):
        self.assertEqual(self.store.active_order_count(self.courier.id), 1)

        order = update_order_status(self.order.id, OrderStatus.PICKED_UP)
        self.assertIsNotNone(order.picked_up_at)
        update_order_status(self.order.id, OrderStatus.ON_DELIVERY)
        order = update_order_status(self.order.id, OrderStatus.DELIVERED)

        self.assertIsNotNone(order.delivered_at)
        self.assertEqual(order.courier, self.courier)
        self.assertEqual(self.store.active_order_count(self.courier.id), 0)

    def test_invalid_transition(self):
        with self.assertRaises(ValueError):
            update_order_status(self.order.id, OrderStatus.DELIVERED)

    def test_assigned_only_through_claim(self):
        other = make_order(self.merchant)
        with self.assertRaises(ValueError):
            update_order_status(other.id, OrderStatus.ASSIGNED)

    def test_cancel_voids_pending_earning(self):
        update_order_status(self.order.id, OrderStatus.CANCELLED)

        earning = CourierEarning.objects.get(order=self.order)
        self.assertEqual(earning.status, EarningStatus.CANCELLED)
        self.assertEqual(self.store.active_order_count(self.courier.id), 0)

    def test_unknown_order(self):
        with self.assertRaises(Order.DoesNotExist):
            update_order_status(uuid.uuid4(), OrderStatus.CANCELLED)


@unittest.skipUnless(
    connection.vendor == 'postgresql',
    'row locks and concurrent writers need PostgreSQL (TEST_DB_ENGINE=postgresql)',
)
class TestConcurrentClaims(TransactionTestCase):
    """
    Real threads racing for one order and for one courier.

    SQLite has no row locks and rejects a second writer with "database is
    locked", so these run in the PostgreSQL CI job (.github/workflows/tests.yml).
    """

    def setUp(self):
        self.merchant = make_merchant()

    def _race(self, jobs):
        barrier = threading.Barrier(len(jobs))

        def run(job):
            try:
                barrier.wait()
                return job()
            finally:
                connection.close()

        with ThreadPoolExecutor(max_workers=len(jobs)) as pool:
            return list(pool.map(run, jobs))

    def test_same_order_single_winner(self):
        order = make_order(self.merchant)
        couriers = [make_courier(f'K{i}') for i in range(5)]

        results = self._race([
            (lambda c=c: AssignmentTransaction().claim(order.id, c.id)) for c in couriers
        ])

        winners = [r for r in results if r.success]
        self.assertEqual(len(winners), 1)
        self.assertTrue(all(
            r.outcome == DispatchOutcome.ALREADY_ASSIGNED for r in results if not r.success
        ))
        order.refresh_from_db()
        self.assertEqual(order.courier, winners[0].courier)

    def test_same_courier_cap_holds(self):
        courier = make_courier('Popular')
        give_active_orders(courier, self.merchant, 2)
        orders = [make_order(self.merchant) for _ in range(4)]

        results = self._race([
            (lambda o=o: AssignmentTransaction().claim(o.id, courier.id)) for o in orders
        ])

        self.assertEqual(sum(r.success for r in results), 1)
        self.assertEqual(CourierLocationStore().active_order_count(courier.id), 3)
