"""
LOGISTICS App - Assignment Service for PASAR

Claims an order for a courier exactly once.

The claim is a single conditional UPDATE:

    UPDATE order SET courier_id=X, status='ASSIGNED', assigned_at=now
    WHERE id=Y AND courier_id IS NULL AND status='CREATED'

The database's atomic row update decides the winner; a zero row count
means someone else got there first and is reported as ALREADY_ASSIGNED,
never overwritten. The courier row is locked for the duration of the
claim so the concurrency cap cannot be exceeded by two orders racing
for the same courier.
"""

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from django.conf import settings
from django.db import DatabaseError, transaction
from django.utils import timezone

from core.models import Courier
from logistics.models import Order, OrderStatus
from logistics.services.location import CourierLocationStore

logger = logging.getLogger(__name__)


# ============================================
# OUTCOMES
# ============================================

class ErrorKind(str, Enum):
    """Coarse failure category, drives logging level and HTTP status."""
    VALIDATION = 'VALIDATION'
    NOT_FOUND = 'NOT_FOUND'
    CONFLICT = 'CONFLICT'
    NO_CANDIDATES = 'NO_CANDIDATES'
    PERSISTENCE = 'PERSISTENCE'


class DispatchOutcome(str, Enum):
    """Exact result of a dispatch attempt."""
    ASSIGNED = 'ASSIGNED'
    INVALID_REQUEST = 'INVALID_REQUEST'
    ORDER_NOT_FOUND = 'ORDER_NOT_FOUND'
    COURIER_NOT_FOUND = 'COURIER_NOT_FOUND'
    ALREADY_ASSIGNED = 'ALREADY_ASSIGNED'
    ORDER_NOT_DISPATCHABLE = 'ORDER_NOT_DISPATCHABLE'
    NO_ELIGIBLE_COURIER = 'NO_ELIGIBLE_COURIER'
    COURIER_NOT_ELIGIBLE = 'COURIER_NOT_ELIGIBLE'
    PERSISTENCE_FAILURE = 'PERSISTENCE_FAILURE'

    @property
    def kind(self) -> Optional[ErrorKind]:
        return _OUTCOME_KINDS.get(self)


_OUTCOME_KINDS = {
    DispatchOutcome.INVALID_REQUEST: ErrorKind.VALIDATION,
    DispatchOutcome.ORDER_NOT_FOUND: ErrorKind.NOT_FOUND,
    DispatchOutcome.COURIER_NOT_FOUND: ErrorKind.NOT_FOUND,
    DispatchOutcome.ALREADY_ASSIGNED: ErrorKind.CONFLICT,
    DispatchOutcome.ORDER_NOT_DISPATCHABLE: ErrorKind.CONFLICT,
    DispatchOutcome.COURIER_NOT_ELIGIBLE: ErrorKind.CONFLICT,
    DispatchOutcome.NO_ELIGIBLE_COURIER: ErrorKind.NO_CANDIDATES,
    DispatchOutcome.PERSISTENCE_FAILURE: ErrorKind.PERSISTENCE,
}

_KIND_HTTP_STATUS = {
    None: 200,
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    # An empty market is a normal business state, not a failure
    ErrorKind.NO_CANDIDATES: 200,
    ErrorKind.PERSISTENCE: 503,
}


class PersistenceError(Exception):
    """Raised by background dispatch so Celery retries a failed write."""

    kind = ErrorKind.PERSISTENCE

    def __init__(self, detail_or_result=None):
        # args must stay (detail,) so pickle and the result backend can rebuild it
        self.result = None
        detail = detail_or_result
        if isinstance(detail_or_result, DispatchResult):
            self.result = detail_or_result
            detail = detail_or_result.detail
        super().__init__(detail or "Persistence failure")


_OUTCOME_MESSAGES = {
    DispatchOutcome.ASSIGNED: "Kurir berhasil ditugaskan",
    DispatchOutcome.INVALID_REQUEST: "Permintaan tidak valid",
    DispatchOutcome.ORDER_NOT_FOUND: "Pesanan tidak ditemukan",
    DispatchOutcome.COURIER_NOT_FOUND: "Kurir tidak ditemukan",
    DispatchOutcome.ALREADY_ASSIGNED: "Pesanan sudah memiliki kurir",
    DispatchOutcome.ORDER_NOT_DISPATCHABLE: "Pesanan tidak dapat ditugaskan pada status ini",
    DispatchOutcome.NO_ELIGIBLE_COURIER: "Tidak ada kurir yang memenuhi syarat dalam jangkauan",
    DispatchOutcome.COURIER_NOT_ELIGIBLE: "Kurir tidak memenuhi syarat",
    DispatchOutcome.PERSISTENCE_FAILURE: "Gagal menyimpan penugasan, silakan coba lagi",
}


@dataclass
class DispatchResult:
    """Outcome of an auto or manual dispatch attempt."""
    outcome: DispatchOutcome
    order_id: Optional[str] = None
    courier: Optional[Courier] = None
    distance_km: Optional[float] = None
    candidates_count: Optional[int] = None
    max_distance_km: Optional[float] = None
    detail: str = ''

    @property
    def success(self) -> bool:
        return self.outcome == DispatchOutcome.ASSIGNED

    @property
    def kind(self) -> Optional[ErrorKind]:
        return self.outcome.kind

    @property
    def http_status(self) -> int:
        return _KIND_HTTP_STATUS[self.kind]

    @property
    def message(self) -> str:
        return self.detail or _OUTCOME_MESSAGES[self.outcome]

    def to_dict(self) -> Dict[str, Any]:
        data = {'success': self.success}

        if self.success:
            data['courier'] = {
                'id': str(self.courier.id),
                'name': self.courier.name,
                'distance_km': round(self.distance_km, 1) if self.distance_km is not None else None,
                'vehicle_type': self.courier.vehicle_type,
            }
        else:
            data['error'] = self.outcome.value
            data['error_kind'] = self.kind.value
            data['message'] = self.message

        if self.candidates_count is not None:
            data['candidates_count'] = self.candidates_count
        if self.max_distance_km is not None and not self.success:
            data['max_distance_km'] = self.max_distance_km
        return data


def parse_id(value) -> Optional[uuid.UUID]:
    """UUID from a request value, or None when malformed/missing."""
    if isinstance(value, uuid.UUID):
        return value
    if not value:
        return None
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def log_result(result: DispatchResult, path: str):
    """Log a dispatch outcome at the level its kind deserves."""
    order_ref = str(result.order_id)[:8] if result.order_id else '?'
    if result.success:
        logger.info(
            f"[DISPATCH] {path} order {order_ref} -> courier {str(result.courier.id)[:8]}"
        )
    elif result.kind == ErrorKind.PERSISTENCE:
        logger.error(f"[DISPATCH] {path} order {order_ref}: {result.outcome.value} {result.detail}")
    elif result.kind in (ErrorKind.CONFLICT, ErrorKind.NO_CANDIDATES):
        logger.info(f"[DISPATCH] {path} order {order_ref}: {result.outcome.value}")
    else:
        logger.warning(f"[DISPATCH] {path} order {order_ref}: {result.outcome.value} {result.detail}")


# ============================================
# ASSIGNMENT TRANSACTION
# ============================================

class AssignmentTransaction:
    """
    The only code path that sets Order.courier.

    Usage:
        result = AssignmentTransaction().claim(order_id, courier_id)
        if result.success: ...
    """

    def __init__(self, store: CourierLocationStore = None, max_active_orders: int = None):
        self.store = store or CourierLocationStore()
        self.max_active_orders = (
            max_active_orders if max_active_orders is not None
            else settings.DISPATCH_MAX_ACTIVE_ORDERS
        )

    def courier_ineligibility(self, courier: Courier) -> Optional[str]:
        """Reason the courier cannot take another order now, or None."""
        if not courier.is_dispatchable:
            return (
                f"Kurir tidak dapat menerima pesanan "
                f"(tersedia={courier.is_available}, status={courier.status}, "
                f"registrasi={courier.registration_status})"
            )
        active = self.store.active_order_count(courier.pk)
        if active >= self.max_active_orders:
            return f"Kurir sudah menangani {active} pesanan aktif (maks {self.max_active_orders})"
        return None

    def claim(self, order_id, courier_id, distance_km: float = None) -> DispatchResult:
        """
        Atomically assign the order to the courier.

        Within one database transaction:
        1. lock the courier row and re-check availability, status and load
        2. conditional update of the order (only if still unassigned)
        3. record the pending courier earning
        Notifications go out after commit and never undo the claim.
        """
        try:
            with transaction.atomic():
                courier = (
                    Courier.objects.select_for_update()
                    .select_related('user')
                    .filter(pk=courier_id)
                    .first()
                )
                if courier is None:
                    return DispatchResult(DispatchOutcome.COURIER_NOT_FOUND, order_id=str(order_id))

                reason = self.courier_ineligibility(courier)
                if reason:
                    return DispatchResult(
                        DispatchOutcome.COURIER_NOT_ELIGIBLE,
                        order_id=str(order_id),
                        courier=courier,
                        detail=reason,
                    )

                claimed = Order.objects.filter(
                    pk=order_id,
                    courier__isnull=True,
                    status=OrderStatus.CREATED,
                ).update(
                    courier=courier,
                    status=OrderStatus.ASSIGNED,
                    assigned_at=timezone.now(),
                )

                if not claimed:
                    return self._lost_claim(order_id)

                order = Order.objects.select_related('merchant__user').get(pk=order_id)

                from finance.services import EarningService
                EarningService.record_pending_earning(courier, order)

                transaction.on_commit(lambda: self._after_commit(courier, order))

        except DatabaseError as e:
            logger.error(f"[CLAIM] Write failed for order {str(order_id)[:8]}: {e}")
            return DispatchResult(
                DispatchOutcome.PERSISTENCE_FAILURE,
                order_id=str(order_id),
                detail=str(e),
            )

        logger.info(
            f"[CLAIM] Order {str(order_id)[:8]} claimed by courier {courier.name} "
            f"({str(courier.id)[:8]})"
        )
        return DispatchResult(
            DispatchOutcome.ASSIGNED,
            order_id=str(order_id),
            courier=courier,
            distance_km=distance_km,
        )

    def _lost_claim(self, order_id) -> DispatchResult:
        """Explain why the conditional update matched no row."""
        order = Order.objects.filter(pk=order_id).only('courier', 'status').first()
        if order is None:
            return DispatchResult(DispatchOutcome.ORDER_NOT_FOUND, order_id=str(order_id))
        if order.courier_id is not None:
            return DispatchResult(DispatchOutcome.ALREADY_ASSIGNED, order_id=str(order_id))
        return DispatchResult(
            DispatchOutcome.ORDER_NOT_DISPATCHABLE,
            order_id=str(order_id),
            detail=f"Status pesanan {order.status}",
        )

    @staticmethod
    def _after_commit(courier: Courier, order: Order):
        """Side effects of a committed claim; failures are only logged."""
        from core.notifications import NotificationService
        from logistics.events import broadcast_order_assigned

        try:
            NotificationService.notify_courier_assigned(courier, order)
            NotificationService.notify_merchant_courier_assigned(courier, order)
        except Exception as e:
            logger.warning(f"[CLAIM] Notification failed for order {str(order.id)[:8]}: {e}")

        try:
            broadcast_order_assigned(str(courier.id), str(order.id), {
                'merchant': order.merchant.name,
                'delivery_address': order.delivery_address,
                'shipping_cost': str(order.shipping_cost),
            })
        except Exception as e:
            logger.warning(f"[CLAIM] Broadcast failed for order {str(order.id)[:8]}: {e}")


# ============================================
# MANUAL ASSIGNMENT
# ============================================

def manual_assign_courier(order_id, courier_id) -> DispatchResult:
    """
    Assign an operator-chosen courier.

    Skips candidate filtering and scoring, but the courier must still be
    available, active, approved and under the active-order cap.
    """
    parsed_order_id = parse_id(order_id)
    parsed_courier_id = parse_id(courier_id)
    if parsed_order_id is None or parsed_courier_id is None:
        result = DispatchResult(
            DispatchOutcome.INVALID_REQUEST,
            order_id=str(order_id) if order_id else None,
            detail="order_id dan courier_id wajib berupa UUID",
        )
        log_result(result, 'manual')
        return result

    order = Order.objects.filter(pk=parsed_order_id).only('courier', 'status').first()
    if order is None:
        result = DispatchResult(DispatchOutcome.ORDER_NOT_FOUND, order_id=str(parsed_order_id))
    elif order.courier_id is not None:
        result = DispatchResult(DispatchOutcome.ALREADY_ASSIGNED, order_id=str(parsed_order_id))
    else:
        result = AssignmentTransaction().claim(parsed_order_id, parsed_courier_id)

    log_result(result, 'manual')
    return result


# ============================================
# LIFECYCLE AFTER ASSIGNMENT
# ============================================

_STATUS_TIMESTAMPS = {
    OrderStatus.PICKED_UP: 'picked_up_at',
    OrderStatus.DELIVERED: 'delivered_at',
    OrderStatus.CANCELLED: 'cancelled_at',
}


def update_order_status(order_id, new_status: str) -> Order:
    """
    Move an order along its lifecycle (pickup, delivery, cancellation).

    Uses a conditional update on the current status so two concurrent
    updates cannot both apply. The courier column is never touched here.

    Raises:
        Order.DoesNotExist: If the order is unknown
        ValueError: If the transition is not allowed or lost a race
    """
    if new_status == OrderStatus.ASSIGNED:
        raise ValueError("Status ASSIGNED hanya dapat dicapai melalui penugasan kurir")

    order = Order.objects.get(pk=order_id)
    if not order.can_transition_to(new_status):
        raise ValueError(f"Transisi {order.status} -> {new_status} tidak diizinkan")

    fields = {'status': new_status}
    timestamp_field = _STATUS_TIMESTAMPS.get(new_status)
    if timestamp_field:
        fields[timestamp_field] = timezone.now()

    with transaction.atomic():
        updated = Order.objects.filter(pk=order.pk, status=order.status).update(**fields)
        if not updated:
            raise ValueError("Status pesanan berubah, silakan muat ulang")

        if new_status == OrderStatus.CANCELLED:
            from finance.services import EarningService
            EarningService.cancel_pending_earnings(order)

    order.refresh_from_db()
    logger.info(f"[DISPATCH] Order {str(order.id)[:8]} status -> {new_status}")

    from logistics.events import broadcast_order_status
    courier_id = str(order.courier_id) if order.courier_id else None
    transaction.on_commit(lambda: broadcast_order_status(str(order.id), new_status, courier_id))
    return order
