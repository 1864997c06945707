"""
Service layer for business logic.
"""

from services.subscription_service import Promotion, SubscriptionService

__all__ = [
    "Promotion",
    "SubscriptionService",
]
