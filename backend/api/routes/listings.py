"""
Listing quota and promotion API routes.
"""

from fastapi import APIRouter

from api.dependencies import CurrentSellerId, SubscriptionServiceDep
from api.schemas.subscription import (
    ListingSlotResponse,
    MediaCheckRequest,
    MediaCheckResponse,
    PromotionRequest,
    PromotionResponse,
)
from core.tier_resolver import photo_limit_for, video_limit_for

router = APIRouter(prefix="/listings", tags=["listings"])


@router.post("/slots", response_model=ListingSlotResponse)
async def reserve_listing_slot(seller_id: CurrentSellerId, service: SubscriptionServiceDep):
    """Claim an active listing slot before publishing a horse."""
    count = await service.reserve_listing_slot(seller_id)
    subscription = await service.get_subscription(seller_id)
    return ListingSlotResponse(
        active_listings_count=count,
        max_listings=subscription.features.max_listings,
    )


@router.delete("/slots", response_model=ListingSlotResponse)
async def release_listing_slot(seller_id: CurrentSellerId, service: SubscriptionServiceDep):
    """Give a slot back when a listing is withdrawn, sold or expires."""
    count = await service.release_listing_slot(seller_id)
    return ListingSlotResponse(active_listings_count=count)


@router.post("/media-check", response_model=MediaCheckResponse)
async def check_listing_media(
    body: MediaCheckRequest,
    seller_id: CurrentSellerId,
    service: SubscriptionServiceDep,
):
    """Reject a listing whose photo or video count exceeds the plan."""
    await service.check_listing_media(seller_id, body.photos, body.videos)
    subscription = await service.get_subscription(seller_id)
    return MediaCheckResponse(
        allowed=True,
        max_photos_per_listing=photo_limit_for(subscription),
        max_videos_per_listing=video_limit_for(subscription),
    )


@router.post("/spotlight", response_model=PromotionResponse)
async def add_spotlight(
    body: PromotionRequest,
    seller_id: CurrentSellerId,
    service: SubscriptionServiceDep,
):
    promotion = await service.add_spotlight(seller_id, body.listing_id)
    return PromotionResponse(**vars(promotion))


@router.post("/boost", response_model=PromotionResponse)
async def boost_listing(
    body: PromotionRequest,
    seller_id: CurrentSellerId,
    service: SubscriptionServiceDep,
):
    promotion = await service.boost_listing(seller_id, body.listing_id)
    return PromotionResponse(**vars(promotion))
