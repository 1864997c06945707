# Interfaces (Abstract Contracts)
# Adapters implement these interfaces
from .repositories import PaymentRepository, SellerRepository, SubscriptionRepository
from .services import PaymentOrder, PaymentService

__all__ = [
    "PaymentRepository",
    "SellerRepository",
    "SubscriptionRepository",
    "PaymentOrder",
    "PaymentService",
]
