"""Subscription domain entities."""
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class Plan(StrEnum):
    """Purchasable seller plans.

    Values are the exact, case-sensitive labels stored and accepted on the
    wire (e.g. ``"Royal Stallion"``).
    """

    FREE = "Free"
    TROT = "Trot"
    GALLOP = "Gallop"
    ROYAL_STALLION = "Royal Stallion"


class SubscriptionStatus(StrEnum):
    """Stored subscription status."""

    INACTIVE = "inactive"
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class VerificationLevel(StrEnum):
    """Verification level a plan grants."""

    NONE = "none"
    BASIC = "basic"
    PREMIUM = "premium"


class SearchPlacement(StrEnum):
    """Search ranking tier a plan grants."""

    NONE = "none"
    BASIC = "basic"
    PREMIUM = "premium"


@dataclass(frozen=True)
class FeatureBundle:
    """Quotas and capabilities attached to a plan.

    Pure data. A subscription stores a copy taken at activation time, so
    later edits to the plan table never reach already-active subscriptions.
    """

    # Quotas
    max_listings: int = 0
    max_photos_per_listing: int = 0
    max_videos_per_listing: int = 0
    listing_duration_days: int = 0

    # Promotions
    boost_duration_days: int = 0
    boosts_per_month: int = 0
    spotlight_duration_days: int = 0
    spotlights_per_month: int = 0

    # Placement and trust
    verification_level: VerificationLevel = VerificationLevel.NONE
    search_placement: SearchPlacement = SearchPlacement.NONE
    priority_placement: bool = False

    # Feature flags
    featured_listings: bool = False
    virtual_tours: bool = False
    analytics: bool = False
    social_media_sharing: bool = False
    serious_buyer_access: bool = False

    badges: frozenset[str] = field(default_factory=frozenset)

    def to_dict(self) -> dict:
        """Convert the bundle to a JSON-friendly dictionary."""
        return {
            "max_listings": self.max_listings,
            "max_photos_per_listing": self.max_photos_per_listing,
            "max_videos_per_listing": self.max_videos_per_listing,
            "listing_duration_days": self.listing_duration_days,
            "boost_duration_days": self.boost_duration_days,
            "boosts_per_month": self.boosts_per_month,
            "spotlight_duration_days": self.spotlight_duration_days,
            "spotlights_per_month": self.spotlights_per_month,
            "verification_level": self.verification_level.value,
            "search_placement": self.search_placement.value,
            "priority_placement": self.priority_placement,
            "featured_listings": self.featured_listings,
            "virtual_tours": self.virtual_tours,
            "analytics": self.analytics,
            "social_media_sharing": self.social_media_sharing,
            "serious_buyer_access": self.serious_buyer_access,
            "badges": sorted(self.badges),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "FeatureBundle":
        """Rebuild a bundle from :meth:`to_dict` output."""
        return cls(
            max_listings=int(data.get("max_listings", 0)),
            max_photos_per_listing=int(data.get("max_photos_per_listing", 0)),
            max_videos_per_listing=int(data.get("max_videos_per_listing", 0)),
            listing_duration_days=int(data.get("listing_duration_days", 0)),
            boost_duration_days=int(data.get("boost_duration_days", 0)),
            boosts_per_month=int(data.get("boosts_per_month", 0)),
            spotlight_duration_days=int(data.get("spotlight_duration_days", 0)),
            spotlights_per_month=int(data.get("spotlights_per_month", 0)),
            verification_level=VerificationLevel(data.get("verification_level", "none")),
            search_placement=SearchPlacement(data.get("search_placement", "none")),
            priority_placement=bool(data.get("priority_placement", False)),
            featured_listings=bool(data.get("featured_listings", False)),
            virtual_tours=bool(data.get("virtual_tours", False)),
            analytics=bool(data.get("analytics", False)),
            social_media_sharing=bool(data.get("social_media_sharing", False)),
            serious_buyer_access=bool(data.get("serious_buyer_access", False)),
            badges=frozenset(data.get("badges", ())),
        )


# Snapshot held by a subscription with no plan
EMPTY_FEATURES = FeatureBundle()


class PaymentMethod(StrEnum):
    """How a subscription period was paid for."""

    FREE = "free"
    RAZORPAY = "razorpay"
    TEST = "test"


@dataclass(frozen=True)
class PaymentProof:
    """Outcome of an out-of-band payment flow, as reported by the gateway.

    ``plan``, ``amount`` and ``seller_id`` describe what the gateway order
    was created for, not what the caller asked to activate.
    """

    accepted: bool
    plan: Plan
    order_id: str | None = None
    payment_id: str | None = None
    amount: int = 0
    seller_id: str | None = None
    method: PaymentMethod = PaymentMethod.RAZORPAY


@dataclass(frozen=True)
class Payment:
    """Ledger entry for one subscription purchase, free ones included."""

    seller_id: str
    plan: Plan
    amount: int
    currency: str
    method: PaymentMethod
    paid_at: datetime
    order_id: str | None = None
    payment_id: str | None = None
    id: str | None = None


@dataclass(frozen=True)
class QueuedPlan:
    """A paid plan bought in advance, starting when the current one ends."""

    plan: Plan
    start_date: datetime
    end_date: datetime
    features: FeatureBundle
    payment_reference: str | None = None


@dataclass(frozen=True)
class Subscription:
    """A seller's subscription.

    Instances are snapshots; every transition in ``core.tier_resolver``
    returns a new value.
    """

    seller_id: str
    plan: Plan | None = None
    status: SubscriptionStatus = SubscriptionStatus.INACTIVE
    start_date: datetime | None = None
    end_date: datetime | None = None
    features: FeatureBundle = EMPTY_FEATURES
    cancelled_at: datetime | None = None
    payment_reference: str | None = None
    queued_plans: tuple[QueuedPlan, ...] = ()

    def __post_init__(self):
        if isinstance(self.plan, str) and not isinstance(self.plan, Plan):
            object.__setattr__(self, "plan", Plan(self.plan))
        if isinstance(self.status, str) and not isinstance(self.status, SubscriptionStatus):
            object.__setattr__(self, "status", SubscriptionStatus(self.status))
