"""
SQLAlchemy database models.
"""

from .base import Base, TimestampMixin, UTCDateTime
from .payment import PaymentRecord
from .seller import Promotion, PromotionKind, SellerBadge, SellerRecord
from .subscription import SubscriptionRecord

__all__ = [
    "Base",
    "TimestampMixin",
    "UTCDateTime",
    "SellerRecord",
    "SellerBadge",
    "Promotion",
    "PromotionKind",
    "SubscriptionRecord",
    "PaymentRecord",
]
