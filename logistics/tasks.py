"""
LOGISTICS App - Celery Tasks

Background dispatch of new orders.
"""

import logging

from celery import shared_task
from django.conf import settings

from logistics.services.dispatch import DispatchOutcome, PersistenceError

logger = logging.getLogger(__name__)


# ===========================================
# DISPATCH TASKS
# ===========================================

@shared_task(
    bind=True,
    name='logistics.tasks.auto_assign_order',
    max_retries=1,
    default_retry_delay=5,
    autoretry_for=(PersistenceError,),
    retry_backoff=True,
    soft_time_limit=settings.DISPATCH_TASK_TIME_LIMIT,
)
def auto_assign_order(
    self,
    order_id: str,
    pickup_lat: float = None,
    pickup_lng: float = None,
    max_distance_km: float = None,
):
    """
    Auto-assign a courier to an order (async).

    Retried once on a persistence failure. A retry after a slow first
    attempt that did commit reports ALREADY_ASSIGNED, never a second claim.

    Returns:
        The dispatch result as a dict
    """
    from logistics.services.smart_dispatch import auto_assign_courier

    result = auto_assign_courier(
        order_id,
        pickup_lat=pickup_lat,
        pickup_lng=pickup_lng,
        max_distance_km=max_distance_km,
    )

    if result.outcome == DispatchOutcome.PERSISTENCE_FAILURE:
        logger.warning(
            f"[TASK] Dispatch of order {str(order_id)[:8]} failed to persist "
            f"(attempt {self.request.retries + 1})"
        )
        raise PersistenceError(result)

    logger.info(f"[TASK] Dispatch of order {str(order_id)[:8]}: {result.outcome.value}")
    return result.to_dict()
