"""
API dependencies for seller identification and service wiring.
"""

import hmac
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from adapters.payments import RazorpayAdapter, create_razorpay_adapter
from core.interfaces.services import PaymentService
from infrastructure.config.settings import settings
from infrastructure.database import (
    SqlPaymentRepository,
    SqlSellerRepository,
    SqlSubscriptionRepository,
)
from infrastructure.database.connection import get_db
from services.subscription_service import SubscriptionService

SELLER_ID_MAX_LENGTH = 36


async def get_current_seller_id(
    x_seller_id: Annotated[str | None, Header()] = None,
) -> str:
    """
    Identify the acting seller.

    Authentication happens upstream; the gateway forwards the seller id in
    the ``X-Seller-ID`` header.
    """
    seller_id = (x_seller_id or "").strip()
    if not seller_id or len(seller_id) > SELLER_ID_MAX_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing or invalid X-Seller-ID header",
        )
    return seller_id


async def require_admin(
    x_admin_key: Annotated[str | None, Header()] = None,
) -> None:
    """Guard admin endpoints with the shared admin key when one is configured."""
    expected = settings.admin_api_key
    if not expected:
        return
    if not x_admin_key or not hmac.compare_digest(x_admin_key, expected):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )


@lru_cache
def get_payment_service() -> PaymentService:
    """Get singleton Razorpay adapter instance."""
    adapter: RazorpayAdapter = create_razorpay_adapter()
    return adapter


async def get_subscription_service(
    db: Annotated[AsyncSession, Depends(get_db)],
    payments: Annotated[PaymentService, Depends(get_payment_service)],
) -> SubscriptionService:
    """Build a subscription service bound to the request's session."""
    return SubscriptionService(
        db=db,
        sellers=SqlSellerRepository(db),
        subscriptions=SqlSubscriptionRepository(db),
        ledger=SqlPaymentRepository(db),
        payments=payments,
    )


CurrentSellerId = Annotated[str, Depends(get_current_seller_id)]
SubscriptionServiceDep = Annotated[SubscriptionService, Depends(get_subscription_service)]
