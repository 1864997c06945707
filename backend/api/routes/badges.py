"""
Seller badge API routes.
"""

from fastapi import APIRouter

from api.dependencies import CurrentSellerId, SubscriptionServiceDep
from api.schemas.subscription import BadgeResponse, BadgesResponse

router = APIRouter(prefix="/badges", tags=["badges"])


@router.get("", response_model=BadgesResponse)
async def get_badges(seller_id: CurrentSellerId, service: SubscriptionServiceDep):
    """Get the seller's unexpired badges."""
    badges = await service.get_current_badges(seller_id)
    return BadgesResponse(badges=[BadgeResponse.from_domain(b) for b in badges])


@router.post("/refresh", response_model=BadgesResponse)
async def refresh_badges(seller_id: CurrentSellerId, service: SubscriptionServiceDep):
    """Re-check badge eligibility against current statistics and plan."""
    badges = await service.refresh_badges(seller_id)
    return BadgesResponse(badges=[BadgeResponse.from_domain(b) for b in badges])
