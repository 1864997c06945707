"""
Subscription, listing quota and promotion request/response schemas.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from core.domain.seller import AwardedBadge
from core.domain.subscription import FeatureBundle, Payment, QueuedPlan, Subscription
from core.interfaces.services import PaymentOrder


class FeaturesResponse(BaseModel):
    """Feature snapshot attached to a plan or subscription."""

    max_listings: int
    max_photos_per_listing: int
    max_videos_per_listing: int
    listing_duration_days: int
    boost_duration_days: int
    boosts_per_month: int
    spotlight_duration_days: int
    spotlights_per_month: int
    verification_level: str
    search_placement: str
    priority_placement: bool
    featured_listings: bool
    virtual_tours: bool
    analytics: bool
    social_media_sharing: bool
    serious_buyer_access: bool
    badges: list[str]

    @classmethod
    def from_bundle(cls, bundle: FeatureBundle) -> "FeaturesResponse":
        return cls(**bundle.to_dict())


class PlanInfo(BaseModel):
    """A purchasable plan."""

    id: str = Field(..., description="Plan label (Free, Trot, Gallop, Royal Stallion)")
    price: int = Field(..., description="Price per period in paise")
    currency: str = Field(..., description="ISO currency code")
    duration_days: int = Field(..., description="Length of one period in days")
    description: str = Field("", description="Marketing blurb")
    features: FeaturesResponse


class PlansResponse(BaseModel):
    """Response containing all available plans."""

    plans: list[PlanInfo]
    version: int = Field(..., description="Plan table version")


class QueuedPlanResponse(BaseModel):
    """A plan bought in advance."""

    plan: str
    start_date: datetime
    end_date: datetime

    @classmethod
    def from_domain(cls, entry: QueuedPlan) -> "QueuedPlanResponse":
        return cls(plan=entry.plan.value, start_date=entry.start_date, end_date=entry.end_date)


class SubscriptionResponse(BaseModel):
    """A seller's subscription as of the request time."""

    seller_id: str
    plan: str | None = None
    status: str = Field(..., description="inactive, active, expired or cancelled")
    is_active: bool
    start_date: datetime | None = None
    end_date: datetime | None = None
    cancelled_at: datetime | None = None
    features: FeaturesResponse
    queued_plans: list[QueuedPlanResponse] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, subscription: Subscription, active: bool) -> "SubscriptionResponse":
        return cls(
            seller_id=subscription.seller_id,
            plan=subscription.plan.value if subscription.plan else None,
            status=subscription.status.value,
            is_active=active,
            start_date=subscription.start_date,
            end_date=subscription.end_date,
            cancelled_at=subscription.cancelled_at,
            features=FeaturesResponse.from_bundle(subscription.features),
            queued_plans=[QueuedPlanResponse.from_domain(q) for q in subscription.queued_plans],
        )


class SubscribeRequest(BaseModel):
    """Request to activate a plan that needs no payment."""

    plan: str = Field(..., description="Exact plan label")

    model_config = {"json_schema_extra": {"example": {"plan": "Free"}}}


class CreateOrderRequest(BaseModel):
    """Request to start checkout for a plan."""

    plan: str = Field(..., description="Exact plan label")

    model_config = {"json_schema_extra": {"example": {"plan": "Gallop"}}}


class CreateOrderResponse(BaseModel):
    """Checkout order, or the activated subscription for Free."""

    requires_payment: bool
    order_id: str | None = None
    amount: int = 0
    currency: str | None = None
    plan: str
    key_id: str | None = Field(None, description="Public Razorpay key for the checkout widget")
    subscription: SubscriptionResponse | None = None

    @classmethod
    def from_order(cls, order: PaymentOrder) -> "CreateOrderResponse":
        return cls(
            requires_payment=True,
            order_id=order.order_id,
            amount=order.amount,
            currency=order.currency,
            plan=order.plan.value,
            key_id=order.key_id,
        )


class VerifyPaymentRequest(BaseModel):
    """Checkout callback fields returned by the Razorpay widget."""

    plan: str
    razorpay_order_id: str = Field(..., min_length=1, max_length=64)
    razorpay_payment_id: str = Field(..., min_length=1, max_length=64)
    razorpay_signature: str = Field(..., min_length=1, max_length=128)
    queue: bool = Field(False, description="Start the plan when the current one ends")


class PaymentResponse(BaseModel):
    """One entry of the seller's payment history; amounts are in paise."""

    id: str | None = None
    plan: str
    amount: int
    currency: str
    method: str
    order_id: str | None = None
    payment_id: str | None = None
    paid_at: datetime

    @classmethod
    def from_domain(cls, payment: Payment) -> "PaymentResponse":
        return cls(
            id=payment.id,
            plan=payment.plan.value,
            amount=payment.amount,
            currency=payment.currency,
            method=payment.method.value,
            order_id=payment.order_id,
            payment_id=payment.payment_id,
            paid_at=payment.paid_at,
        )


class PaymentHistoryResponse(BaseModel):
    payments: list[PaymentResponse]


class ListingSlotResponse(BaseModel):
    """Active listing usage after a reserve or release."""

    active_listings_count: int
    max_listings: int | None = None


class MediaCheckRequest(BaseModel):
    """Media counts of a listing about to be submitted."""

    photos: int = Field(0, ge=0)
    videos: int = Field(0, ge=0)


class MediaCheckResponse(BaseModel):
    allowed: bool
    max_photos_per_listing: int
    max_videos_per_listing: int


class PromotionRequest(BaseModel):
    """Listing to spotlight or boost."""

    listing_id: str = Field(..., min_length=1, max_length=64)


class PromotionResponse(BaseModel):
    listing_id: str
    kind: str
    start_date: datetime
    end_date: datetime


class BadgeResponse(BaseModel):
    badge: str
    awarded_at: datetime
    expires_at: datetime

    @classmethod
    def from_domain(cls, badge: AwardedBadge) -> "BadgeResponse":
        return cls(badge=badge.badge.value, awarded_at=badge.awarded_at, expires_at=badge.expires_at)


class BadgesResponse(BaseModel):
    badges: list[BadgeResponse]


class SweepResponse(BaseModel):
    """Result of an expiry sweep."""

    updated: int
    ran_at: datetime
