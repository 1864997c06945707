# Domain Entities
# Pure business objects with no external dependencies
from .seller import AwardedBadge, BadgeType, Seller, SellerStatistics, SellerVerification
from .subscription import (
    EMPTY_FEATURES,
    FeatureBundle,
    Payment,
    PaymentMethod,
    PaymentProof,
    Plan,
    QueuedPlan,
    SearchPlacement,
    Subscription,
    SubscriptionStatus,
    VerificationLevel,
)

__all__ = [
    "Plan",
    "FeatureBundle",
    "EMPTY_FEATURES",
    "Payment",
    "PaymentMethod",
    "PaymentProof",
    "QueuedPlan",
    "SearchPlacement",
    "Subscription",
    "SubscriptionStatus",
    "VerificationLevel",
    "Seller",
    "SellerStatistics",
    "SellerVerification",
    "AwardedBadge",
    "BadgeType",
]
