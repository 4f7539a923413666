"""
LOGISTICS App - Smart Dispatch Service for PASAR

Automatic courier selection for a new order.

PIPELINE:
  1. Snapshot   : available couriers near the pickup (CourierLocationStore)
  2. Filter     : exact distance, eligibility flags, active-order cap
  3. Score      : cost = distance_km + active_orders × load penalty
  4. Claim      : AssignmentTransaction, next candidate on lost eligibility

A loaded courier costs the equivalent of 2 km per open order, so idle
couriers are preferred over piling onto busy ones. Ties are broken by
courier id so the same input always picks the same winner.
"""

import logging
import math
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Tuple, Any

from django.conf import settings

from core.models import Courier
from logistics.models import Order, OrderStatus
from logistics.services.dispatch import (
    AssignmentTransaction,
    DispatchOutcome,
    DispatchResult,
    log_result,
    parse_id,
)
from logistics.services.location import CourierLocationStore
from logistics.utils import haversine_distance, is_valid_coordinate

logger = logging.getLogger(__name__)


# Outcomes after which the next ranked candidate may still be claimed
_RETRY_NEXT_CANDIDATE = (
    DispatchOutcome.COURIER_NOT_ELIGIBLE,
    DispatchOutcome.COURIER_NOT_FOUND,
)


# ============================================
# CANDIDATES
# ============================================

@dataclass(frozen=True)
class DispatchCandidate:
    """A courier that passed every filter for one dispatch attempt."""
    courier: Courier
    distance_km: float
    active_orders: int
    cost: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': str(self.courier.id),
            'name': self.courier.name,
            'phone': self.courier.phone,
            'vehicle_type': self.courier.vehicle_type,
            'distance_km': round(self.distance_km, 1),
            'active_orders': self.active_orders,
            'cost': round(self.cost, 2),
        }


class CandidateFilter:
    """
    Reduce a courier snapshot to the couriers allowed to take the order.

    A courier passes only if ALL hold:
    - has a checkpointed position
    - is available, ACTIVE and APPROVED
    - is within max_distance_km of the pickup point (Haversine)
    - has fewer than max_active_orders open orders
    """

    def __init__(
        self,
        max_distance_km: float = None,
        max_active_orders: int = None,
        store: CourierLocationStore = None,
    ):
        self.max_distance_km = (
            float(max_distance_km) if max_distance_km is not None
            else settings.DISPATCH_MAX_DISTANCE_KM
        )
        self.max_active_orders = (
            max_active_orders if max_active_orders is not None
            else settings.DISPATCH_MAX_ACTIVE_ORDERS
        )
        self.store = store or CourierLocationStore()

    def filter(
        self,
        pickup_lat: float,
        pickup_lng: float,
        couriers: Iterable[Courier],
        active_counts: Dict = None,
    ) -> List[DispatchCandidate]:
        couriers = list(couriers)
        if active_counts is None:
            active_counts = self.store.active_order_counts(c.pk for c in couriers)

        candidates = []
        for courier in couriers:
            if not courier.has_position:
                continue
            if not courier.is_dispatchable:
                continue

            distance = haversine_distance(
                pickup_lat, pickup_lng, courier.current_lat, courier.current_lng
            )
            if distance > self.max_distance_km:
                continue

            active = active_counts.get(courier.pk, 0)
            if active >= self.max_active_orders:
                logger.debug(f"[DISPATCH] Courier {str(courier.id)[:8]} at cap ({active} open orders)")
                continue

            candidates.append(DispatchCandidate(
                courier=courier,
                distance_km=distance,
                active_orders=active,
            ))

        return candidates


class DispatchScorer:
    """
    Rank candidates by cost, lowest first.

    Usage:
        scorer = DispatchScorer()
        winner = scorer.best(candidates)   # None when nobody qualifies
    """

    def __init__(self, load_penalty_km: float = None):
        self.load_penalty_km = (
            float(load_penalty_km) if load_penalty_km is not None
            else settings.DISPATCH_LOAD_PENALTY_KM
        )

    def cost(self, candidate: DispatchCandidate) -> float:
        return candidate.distance_km + candidate.active_orders * self.load_penalty_km

    def rank(self, candidates: Iterable[DispatchCandidate]) -> List[DispatchCandidate]:
        scored = [replace(c, cost=self.cost(c)) for c in candidates]
        return sorted(scored, key=lambda c: (c.cost, str(c.courier.id)))

    def best(self, candidates: Iterable[DispatchCandidate]) -> Optional[DispatchCandidate]:
        ranked = self.rank(candidates)
        return ranked[0] if ranked else None


# ============================================
# PICKUP POINT
# ============================================

def resolve_pickup_point(
    order: Order,
    pickup_lat: float = None,
    pickup_lng: float = None,
) -> Tuple[float, float, str]:
    """
    Pickup coordinates for an order as (lat, lng, source).

    Falls back from the request's coordinates, to the merchant's registered
    location, to the configured default coordinate. The default is an
    approximation and is logged as such.
    """
    if is_valid_coordinate(pickup_lat, pickup_lng):
        return float(pickup_lat), float(pickup_lng), 'request'

    merchant = order.merchant
    if merchant.has_location:
        return merchant.latitude, merchant.longitude, 'merchant'

    lat = settings.DISPATCH_DEFAULT_PICKUP_LAT
    lng = settings.DISPATCH_DEFAULT_PICKUP_LNG
    logger.warning(
        f"[DISPATCH] Merchant {merchant.name} has no location, "
        f"using default pickup point ({lat}, {lng}) for order {str(order.id)[:8]}"
    )
    return lat, lng, 'default'


def _parse_distance(value) -> Optional[float]:
    """Positive finite radius in km, or None when malformed."""
    try:
        distance = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(distance) or math.isinf(distance) or distance <= 0:
        return None
    return distance


# ============================================
# AUTO ASSIGNMENT
# ============================================

def rank_available_couriers(
    pickup_lat: float,
    pickup_lng: float,
    max_distance_km: float = None,
    store: CourierLocationStore = None,
) -> List[DispatchCandidate]:
    """Eligible couriers around a pickup point, best first."""
    store = store or CourierLocationStore()
    candidate_filter = CandidateFilter(max_distance_km=max_distance_km, store=store)
    pool = store.snapshot_available(pickup_lat, pickup_lng, candidate_filter.max_distance_km)
    return DispatchScorer().rank(candidate_filter.filter(pickup_lat, pickup_lng, pool))


def auto_assign_courier(
    order_id,
    pickup_lat: float = None,
    pickup_lng: float = None,
    max_distance_km: float = None,
) -> DispatchResult:
    """
    Pick and claim the best courier for an order.

    Returns a DispatchResult; business outcomes (no courier, already
    assigned) are results, never exceptions.
    """
    parsed_id = parse_id(order_id)
    if parsed_id is None:
        result = DispatchResult(
            DispatchOutcome.INVALID_REQUEST,
            detail="order_id wajib berupa UUID",
        )
        log_result(result, 'auto')
        return result

    if max_distance_km is None:
        radius = settings.DISPATCH_MAX_DISTANCE_KM
    else:
        radius = _parse_distance(max_distance_km)
        if radius is None:
            result = DispatchResult(
                DispatchOutcome.INVALID_REQUEST,
                order_id=str(parsed_id),
                detail="max_distance_km harus bilangan positif",
            )
            log_result(result, 'auto')
            return result

    if (pickup_lat is not None or pickup_lng is not None) and not is_valid_coordinate(pickup_lat, pickup_lng):
        result = DispatchResult(
            DispatchOutcome.INVALID_REQUEST,
            order_id=str(parsed_id),
            detail=f"Koordinat pickup tidak valid: ({pickup_lat}, {pickup_lng})",
        )
        log_result(result, 'auto')
        return result

    order = Order.objects.select_related('merchant').filter(pk=parsed_id).first()
    if order is None:
        result = DispatchResult(DispatchOutcome.ORDER_NOT_FOUND, order_id=str(parsed_id))
        log_result(result, 'auto')
        return result

    # Short-circuit before touching couriers
    if order.courier_id is not None:
        result = DispatchResult(DispatchOutcome.ALREADY_ASSIGNED, order_id=str(order.id))
        log_result(result, 'auto')
        return result
    if order.status != OrderStatus.CREATED:
        result = DispatchResult(
            DispatchOutcome.ORDER_NOT_DISPATCHABLE,
            order_id=str(order.id),
            detail=f"Status pesanan {order.status}",
        )
        log_result(result, 'auto')
        return result

    lat, lng, source = resolve_pickup_point(order, pickup_lat, pickup_lng)

    store = CourierLocationStore()
    candidates = rank_available_couriers(lat, lng, radius, store=store)

    logger.info(
        f"[DISPATCH] Order {str(order.id)[:8]}: {len(candidates)} candidate(s) "
        f"within {radius} km of {source} pickup ({lat:.5f}, {lng:.5f})"
    )

    if not candidates:
        # Whole available pool, so operators can tell "nobody online" from "nobody near"
        result = DispatchResult(
            DispatchOutcome.NO_ELIGIBLE_COURIER,
            order_id=str(order.id),
            candidates_count=store.count_available(),
            max_distance_km=radius,
        )
        log_result(result, 'auto')
        return result

    claimer = AssignmentTransaction(store=store)
    for candidate in candidates:
        result = claimer.claim(order.id, candidate.courier.id, distance_km=candidate.distance_km)
        if result.outcome in _RETRY_NEXT_CANDIDATE:
            logger.info(
                f"[DISPATCH] Courier {str(candidate.courier.id)[:8]} no longer eligible "
                f"({result.detail}), trying next candidate"
            )
            continue

        result.candidates_count = len(candidates)
        log_result(result, 'auto')
        return result

    result = DispatchResult(
        DispatchOutcome.NO_ELIGIBLE_COURIER,
        order_id=str(order.id),
        candidates_count=len(candidates),
        max_distance_km=radius,
        detail="Semua kandidat berubah status sebelum penugasan",
    )
    log_result(result, 'auto')
    return result
