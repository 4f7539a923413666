"""
PASAR Logistics Tests - REST API
"""

import uuid
from decimal import Decimal
from unittest.mock import patch

from django.test import TestCase
from rest_framework.test import APIClient

from core.models import UserRole, Courier
from logistics.models import OrderStatus
from logistics.tests.helpers import (
    PICKUP_LAT, PICKUP_LNG, make_user, make_courier, make_merchant, make_order, give_active_orders,
)


class DispatchAPITestBase(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.admin = make_user(UserRole.ADMIN)
        self.merchant = make_merchant()
        self.order = make_order(self.merchant, shipping_cost=Decimal('10000'))

    def auto_assign_url(self, order=None):
        return f'/api/orders/{(order or self.order).id}/auto-assign/'


class TestAutoAssignAPI(DispatchAPITestBase):

    def test_owning_merchant_can_auto_assign(self):
        courier = make_courier('A', km_from_pickup=1)
        self.client.force_authenticate(self.merchant.user)

        response = self.client.post(self.auto_assign_url(), {}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['courier']['id'], str(courier.id))
        self.assertEqual(response.data['courier']['distance_km'], 1.0)
        self.assertEqual(response.data['candidates_count'], 1)

    def test_no_candidates_is_200_with_success_false(self):
        make_courier('Far', km_from_pickup=20)
        self.client.force_authenticate(self.admin)

        response = self.client.post(self.auto_assign_url(), {'max_distance_km': 5}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['error'], 'NO_ELIGIBLE_COURIER')
        self.assertEqual(response.data['candidates_count'], 1)

    def test_already_assigned_is_409(self):
        make_courier('A')
        self.client.force_authenticate(self.admin)
        self.client.post(self.auto_assign_url(), {}, format='json')

        response = self.client.post(self.auto_assign_url(), {}, format='json')

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data['error'], 'ALREADY_ASSIGNED')

    def test_request_coordinates_override_merchant(self):
        # Courier near Jakarta, merchant registered in Bandung
        courier = make_courier('Jakarta')
        Courier.objects.filter(pk=courier.pk).update(current_lat=-6.2088, current_lng=106.8456)
        self.client.force_authenticate(self.admin)

        response = self.client.post(
            self.auto_assign_url(),
            {'merchant_lat': -6.2090, 'merchant_lng': 106.8450},
            format='json',
        )

        self.assertTrue(response.data['success'])

    def test_half_coordinates_rejected(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(self.auto_assign_url(), {'merchant_lat': -6.9}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_other_merchant_cannot_see_order(self):
        other = make_merchant(name='Toko Lain')
        self.client.force_authenticate(other.user)

        response = self.client.post(self.auto_assign_url(), {}, format='json')

        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.data['success'])
        self.assertEqual(response.data['error'], 'ORDER_NOT_FOUND')
        self.assertEqual(response.data['error_kind'], 'NOT_FOUND')
        self.order.refresh_from_db()
        self.assertEqual(self.order.status, OrderStatus.CREATED)

    def test_anonymous_rejected(self):
        response = self.client.post(self.auto_assign_url(), {}, format='json')
        self.assertEqual(response.status_code, 401)


class TestManualAssignAPI(DispatchAPITestBase):

    def url(self):
        return f'/api/orders/{self.order.id}/assign/'

    def test_admin_assigns(self):
        courier = make_courier('A')
        self.client.force_authenticate(self.admin)

        response = self.client.post(self.url(), {'courier_id': str(courier.id)}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['success'])

    def test_merchant_may_not_assign(self):
        courier = make_courier('A')
        self.client.force_authenticate(self.merchant.user)

        response = self.client.post(self.url(), {'courier_id': str(courier.id)}, format='json')

        self.assertEqual(response.status_code, 403)

    def test_courier_over_cap_is_409(self):
        courier = make_courier('Busy')
        give_active_orders(courier, self.merchant, 3)
        self.client.force_authenticate(self.admin)

        response = self.client.post(self.url(), {'courier_id': str(courier.id)}, format='json')

        self.assertEqual(response.status_code, 409)
        self.assertEqual(response.data['error'], 'COURIER_NOT_ELIGIBLE')

    def test_unknown_courier_is_404(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(self.url(), {'courier_id': str(uuid.uuid4())}, format='json')
        self.assertEqual(response.status_code, 404)

    def test_missing_courier_id_is_400(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(self.url(), {}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_unknown_order_is_structured_404(self):
        courier = make_courier('A')
        self.client.force_authenticate(self.admin)

        response = self.client.post(
            f'/api/orders/{uuid.uuid4()}/assign/', {'courier_id': str(courier.id)}, format='json'
        )

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.data['error'], 'ORDER_NOT_FOUND')


class TestOrderStatusAPI(DispatchAPITestBase):

    def setUp(self):
        super().setUp()
        self.courier = make_courier('A')
        self.client.force_authenticate(self.admin)
        self.client.post(f'/api/orders/{self.order.id}/assign/', {'courier_id': str(self.courier.id)}, format='json')

    def url(self):
        return f'/api/orders/{self.order.id}/status/'

    def test_assigned_courier_picks_up(self):
        self.client.force_authenticate(self.courier.user)

        response = self.client.patch(self.url(), {'status': 'PICKED_UP'}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['status'], OrderStatus.PICKED_UP)

    def test_invalid_transition_is_409(self):
        self.client.force_authenticate(self.courier.user)
        response = self.client.patch(self.url(), {'status': 'DELIVERED'}, format='json')
        self.assertEqual(response.status_code, 409)

    def test_assigned_is_not_a_valid_target(self):
        response = self.client.patch(self.url(), {'status': 'ASSIGNED'}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_merchant_may_only_cancel(self):
        self.client.force_authenticate(self.merchant.user)

        response = self.client.patch(self.url(), {'status': 'PICKED_UP'}, format='json')
        self.assertEqual(response.status_code, 403)

        response = self.client.patch(self.url(), {'status': 'CANCELLED'}, format='json')
        self.assertEqual(response.status_code, 200)


class TestOrderListAPI(DispatchAPITestBase):

    def test_scoped_by_role_and_filterable(self):
        courier = make_courier('A')
        give_active_orders(courier, self.merchant, 2)
        make_order(make_merchant(name='Toko Lain'))

        self.client.force_authenticate(self.merchant.user)
        response = self.client.get('/api/orders/')
        self.assertEqual(response.data['count'], 3)

        response = self.client.get('/api/orders/', {'status': 'CREATED'})
        self.assertEqual(response.data['count'], 1)

        self.client.force_authenticate(courier.user)
        response = self.client.get('/api/orders/')
        self.assertEqual(response.data['count'], 2)

        self.client.force_authenticate(self.admin)
        response = self.client.get('/api/orders/', {'courier': str(courier.id)})
        self.assertEqual(response.data['count'], 2)


class TestAvailableCouriersAPI(DispatchAPITestBase):

    def test_ranked_listing_for_order(self):
        near = make_courier('Near', km_from_pickup=1)
        loaded = make_courier('Loaded', km_from_pickup=0)
        give_active_orders(loaded, self.merchant, 1)
        full = make_courier('Full', km_from_pickup=0.5)
        give_active_orders(full, self.merchant, 3)
        self.client.force_authenticate(self.merchant.user)

        response = self.client.get('/api/couriers/available/', {'order_id': str(self.order.id)})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['pickup']['source'], 'merchant')
        self.assertEqual([c['name'] for c in response.data['couriers']], ['Near', 'Loaded'])
        self.assertEqual(response.data['couriers'][0]['id'], str(near.id))
        self.assertEqual(response.data['couriers'][1]['active_orders'], 1)

    def test_listing_by_point(self):
        make_courier('Near', km_from_pickup=1)
        self.client.force_authenticate(self.admin)

        response = self.client.get(
            '/api/couriers/available/',
            {'lat': PICKUP_LAT, 'lng': PICKUP_LNG, 'max_distance_km': 0.5},
        )

        self.assertEqual(response.data['count'], 0)

    def test_requires_point_or_order(self):
        self.client.force_authenticate(self.admin)
        response = self.client.get('/api/couriers/available/')
        self.assertEqual(response.status_code, 400)

    def test_courier_cannot_list(self):
        courier = make_courier('A')
        self.client.force_authenticate(courier.user)
        response = self.client.get('/api/couriers/available/', {'lat': PICKUP_LAT, 'lng': PICKUP_LNG})
        self.assertEqual(response.status_code, 403)


class TestCourierSelfServiceAPI(TestCase):

    def setUp(self):
        self.client = APIClient()
        self.courier = make_courier('A', positioned=False, available=False)
        self.client.force_authenticate(self.courier.user)

    def test_checkpoint_and_read_back(self):
        response = self.client.get('/api/courier/location/')
        self.assertEqual(response.data['status'], 'no_location')

        response = self.client.post('/api/courier/location/', {'lat': -6.91, 'lng': 107.61}, format='json')
        self.assertEqual(response.status_code, 200)

        response = self.client.get('/api/courier/location/')
        self.assertEqual(response.data['location']['lat'], -6.91)

    def test_saved_checkpoint_reaches_live_viewers(self):
        with patch('logistics.views.broadcast_courier_location') as broadcast:
            self.client.post('/api/courier/location/', {'lat': -6.91, 'lng': 107.61}, format='json')
            self.client.post('/api/courier/location/', {'lat': 95, 'lng': 107.61}, format='json')

        broadcast.assert_called_once_with(self.courier.id, -6.91, 107.61)

    def test_out_of_range_checkpoint(self):
        response = self.client.post('/api/courier/location/', {'lat': 95, 'lng': 107.61}, format='json')
        self.assertEqual(response.status_code, 400)

    def test_toggle_availability(self):
        response = self.client.post('/api/courier/availability/', {'is_available': True}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['is_available'])
        self.courier.refresh_from_db()
        self.assertTrue(self.courier.is_available)

    def test_non_courier_forbidden(self):
        self.client.force_authenticate(make_user(UserRole.BUYER))
        response = self.client.post('/api/courier/availability/', {'is_available': True}, format='json')
        self.assertEqual(response.status_code, 403)
