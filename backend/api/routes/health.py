"""Health check endpoints."""

import asyncio
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.plans import PLAN_TABLE_VERSION
from infrastructure.config import get_settings
from infrastructure.database import get_db
from infrastructure.database.models import SubscriptionRecord

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health")
settings = get_settings()

DB_CHECK_TIMEOUT_SECONDS = 5.0


def _payment_mode() -> str:
    if settings.payment_test_mode:
        return "test"
    if settings.razorpay_key_id and settings.razorpay_key_secret:
        return "live"
    return "unconfigured"


@router.get("")
async def health_check():
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "plan_table_version": PLAN_TABLE_VERSION,
        "payments": _payment_mode(),
    }


@router.get("/db")
async def health_check_db(db: AsyncSession = Depends(get_db)):
    """Reads from the subscriptions table so a missing schema shows as degraded."""
    query = select(func.count()).select_from(SubscriptionRecord)
    try:
        result = await asyncio.wait_for(db.execute(query), timeout=DB_CHECK_TIMEOUT_SECONDS)
        subscriptions = result.scalar_one()
    except TimeoutError:
        logger.error("Health check DB timeout")
        return {"status": "degraded", "database": "timeout"}
    except Exception as e:
        logger.error("Health check DB error: %s", e)
        return {"status": "degraded", "database": "unavailable"}

    return {"status": "healthy", "database": "connected", "subscriptions": subscriptions}


@router.get("/live")
async def liveness_check():
    return {"alive": True}
