"""
LOGISTICS App - Courier Location Store for PASAR

Authoritative courier state for dispatch:
- the last persisted GPS checkpoint (never the live broadcast stream)
- availability flag and operational/registration status
- active-order counts, derived from open orders on every read

Nothing here is cached: each dispatch attempt sees the current rows.
"""

import logging
from typing import Dict, Iterable, List, Optional

from django.db import DatabaseError
from django.db.models import Count
from django.utils import timezone

from core.models import Courier, CourierStatus, RegistrationStatus
from logistics.models import Order, ACTIVE_ORDER_STATUSES
from logistics.utils import bounding_box, is_valid_coordinate

logger = logging.getLogger(__name__)


class CourierLocationStore:
    """
    Read/write access to courier position, availability and load.

    Usage:
        store = CourierLocationStore()
        store.record_checkpoint(courier_id, -6.91, 107.61)
        pool = store.snapshot_available(-6.91, 107.61, max_distance_km=10)
    """

    def record_checkpoint(self, courier_id, lat: float, lng: float) -> bool:
        """
        Persist a periodic GPS checkpoint.

        Checkpoints are frequent and best-effort: a storage failure is
        logged and reported as False instead of raised.

        Raises:
            ValueError: If the coordinates are out of range
        """
        if not is_valid_coordinate(lat, lng):
            raise ValueError(f"Koordinat di luar jangkauan: ({lat}, {lng})")

        try:
            updated = Courier.objects.filter(pk=courier_id).update(
                current_lat=float(lat),
                current_lng=float(lng),
                last_location_update=timezone.now(),
            )
        except DatabaseError as e:
            logger.error(f"[LOCATION] Checkpoint write failed for courier {str(courier_id)[:8]}: {e}")
            return False

        if not updated:
            logger.warning(f"[LOCATION] Checkpoint for unknown courier {courier_id}")
            return False

        logger.debug(
            f"[LOCATION] Checkpoint courier {str(courier_id)[:8]} "
            f"({float(lat):.5f}, {float(lng):.5f})"
        )
        return True

    def set_availability(self, courier_id, available: bool) -> Courier:
        """
        Toggle whether the courier accepts new orders.

        Takes effect for the very next snapshot; there is no cache to expire.

        Raises:
            Courier.DoesNotExist: If the courier is unknown
        """
        updated = Courier.objects.filter(pk=courier_id).update(is_available=bool(available))
        if not updated:
            raise Courier.DoesNotExist(f"Kurir {courier_id} tidak ditemukan")

        logger.info(
            f"[LOCATION] Courier {str(courier_id)[:8]} is now "
            f"{'available' if available else 'unavailable'}"
        )
        return Courier.objects.get(pk=courier_id)

    def get_position(self, courier_id) -> Optional[dict]:
        """Last checkpointed position, or None before the first fix."""
        courier = Courier.objects.filter(pk=courier_id).only(
            'current_lat', 'current_lng', 'last_location_update'
        ).first()
        if courier is None or not courier.has_position:
            return None
        return {
            'lat': courier.current_lat,
            'lng': courier.current_lng,
            'updated_at': courier.last_location_update,
        }

    def snapshot_available(
        self,
        pickup_lat: Optional[float] = None,
        pickup_lng: Optional[float] = None,
        max_distance_km: Optional[float] = None,
    ) -> List[Courier]:
        """
        Couriers that could take an order right now.

        Filters:
        - has a checkpointed position
        - is_available = True
        - status ACTIVE, registration APPROVED
        - inside the bounding box of max_distance_km around the pickup
          point (only when all three are given; a coarse pre-filter,
          CandidateFilter applies the exact distance)
        """
        couriers = self._available().select_related('user')

        if pickup_lat is not None and pickup_lng is not None and max_distance_km is not None:
            min_lat, max_lat, min_lng, max_lng = bounding_box(pickup_lat, pickup_lng, max_distance_km)
            couriers = couriers.filter(
                current_lat__gte=min_lat,
                current_lat__lte=max_lat,
                current_lng__gte=min_lng,
                current_lng__lte=max_lng,
            )

        return list(couriers.order_by('id'))

    def count_available(self) -> int:
        """Size of the whole available pool, regardless of distance."""
        return self._available().count()

    @staticmethod
    def _available():
        return Courier.objects.filter(
            is_available=True,
            status=CourierStatus.ACTIVE,
            registration_status=RegistrationStatus.APPROVED,
            current_lat__isnull=False,
            current_lng__isnull=False,
        )

    def active_order_counts(self, courier_ids: Iterable) -> Dict:
        """
        Number of open (assigned, picked up, on delivery) orders per courier.

        Couriers with no open order are present with 0.
        """
        courier_ids = list(courier_ids)
        counts = {courier_id: 0 for courier_id in courier_ids}
        if not courier_ids:
            return counts

        rows = (
            Order.objects
            .filter(courier_id__in=courier_ids, status__in=ACTIVE_ORDER_STATUSES)
            .values('courier_id')
            .annotate(open_orders=Count('id'))
        )
        for row in rows:
            counts[row['courier_id']] = row['open_orders']
        return counts

    def active_order_count(self, courier_id) -> int:
        return Order.objects.filter(
            courier_id=courier_id,
            status__in=ACTIVE_ORDER_STATUSES,
        ).count()
