"""
Admin API routes for scheduled maintenance.
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends

from api.dependencies import SubscriptionServiceDep, require_admin
from api.schemas.subscription import SweepResponse
from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"], dependencies=[Depends(require_admin)])


@router.post("/subscriptions/expire", response_model=SweepResponse)
async def expire_lapsed_subscriptions(service: SubscriptionServiceDep):
    """
    Persist expiry for lapsed subscriptions and start queued plans.

    Intended for a cron job; running it twice in a row is harmless.
    """
    now = datetime.now(UTC)
    updated = await service.expire_lapsed_subscriptions(
        now=now, batch_size=settings.expiry_sweep_batch_size
    )
    logger.info("Expiry sweep triggered via API: %d updated", updated)
    return SweepResponse(updated=updated, ran_at=now)
