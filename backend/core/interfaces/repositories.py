"""Repository interfaces for data access."""

from abc import ABC, abstractmethod
from datetime import datetime

from ..domain.seller import AwardedBadge, Seller
from ..domain.subscription import Payment, Subscription


class SellerRepository(ABC):
    """Abstract repository for Seller records and their usage counters."""

    @abstractmethod
    async def create_seller(self, seller: Seller) -> Seller:
        """Create a new seller."""
        ...

    @abstractmethod
    async def load_seller(self, seller_id: str, now: datetime | None = None) -> Seller | None:
        """Get a seller with usage counters for the month containing ``now``."""
        ...

    @abstractmethod
    async def atomic_increment_active_listings(
        self, seller_id: str, delta: int, ceiling: int | None
    ) -> int:
        """Add ``delta`` to the active listing count in one conditional write.

        Returns the new count. Raises QuotaExceededError when the result
        would exceed ``ceiling`` (None means no upper bound) or drop below
        zero, SellerNotFoundError for unknown sellers.
        """
        ...

    @abstractmethod
    async def count_spotlights_this_month(self, seller_id: str, now: datetime) -> int:
        """Count spotlights started in the calendar month containing ``now``."""
        ...

    @abstractmethod
    async def count_boosts_this_month(self, seller_id: str, now: datetime) -> int:
        """Count boosts started in the calendar month containing ``now``."""
        ...

    @abstractmethod
    async def record_promotion(
        self,
        seller_id: str,
        listing_id: str,
        kind: str,
        start_date: datetime,
        end_date: datetime,
        plan: str | None,
    ) -> None:
        """Store a spotlight or boost."""
        ...

    @abstractmethod
    async def save_badges(self, seller_id: str, badges: tuple[AwardedBadge, ...]) -> None:
        """Replace the seller's stored badges."""
        ...


class SubscriptionRepository(ABC):
    """Abstract repository for Subscription records."""

    @abstractmethod
    async def load_subscription(self, seller_id: str) -> Subscription | None:
        """Get the seller's subscription."""
        ...

    @abstractmethod
    async def save_subscription(self, subscription: Subscription) -> Subscription:
        """Insert or update the seller's subscription."""
        ...

    @abstractmethod
    async def list_lapsed(self, now: datetime, limit: int = 500) -> list[Subscription]:
        """Subscriptions stored as active whose end date has passed."""
        ...


class PaymentRepository(ABC):
    """Abstract repository for the subscription payment ledger."""

    @abstractmethod
    async def record_payment(self, payment: Payment) -> Payment:
        """
        Append a payment to the ledger.

        Raises:
            PaymentAlreadyUsedError: If its order or payment id is already recorded
        """
        ...

    @abstractmethod
    async def list_payments(self, seller_id: str) -> list[Payment]:
        """The seller's payments, newest first."""
        ...
