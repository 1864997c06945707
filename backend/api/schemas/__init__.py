"""
API request and response schemas.
"""

from .subscription import (
    BadgeResponse,
    BadgesResponse,
    CreateOrderRequest,
    CreateOrderResponse,
    FeaturesResponse,
    ListingSlotResponse,
    MediaCheckRequest,
    MediaCheckResponse,
    PaymentHistoryResponse,
    PaymentResponse,
    PlanInfo,
    PlansResponse,
    PromotionRequest,
    PromotionResponse,
    QueuedPlanResponse,
    SubscribeRequest,
    SubscriptionResponse,
    SweepResponse,
    VerifyPaymentRequest,
)

__all__ = [
    "BadgeResponse",
    "BadgesResponse",
    "CreateOrderRequest",
    "CreateOrderResponse",
    "FeaturesResponse",
    "ListingSlotResponse",
    "MediaCheckRequest",
    "MediaCheckResponse",
    "PaymentHistoryResponse",
    "PaymentResponse",
    "PlanInfo",
    "PlansResponse",
    "PromotionRequest",
    "PromotionResponse",
    "QueuedPlanResponse",
    "SubscribeRequest",
    "SubscriptionResponse",
    "SweepResponse",
    "VerifyPaymentRequest",
]
