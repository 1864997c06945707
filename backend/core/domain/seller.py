"""Seller domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import uuid4


class BadgeType(StrEnum):
    """Earned seller credentials."""

    TOP_SELLER = "Top Seller"
    PREMIUM_STABLE = "Premium Stable"
    VERIFIED_SELLER = "Verified Seller"


class SellerVerification(StrEnum):
    """Identity verification a seller has completed."""

    BASIC = "basic"
    PROFESSIONAL = "professional"


@dataclass(frozen=True)
class SellerStatistics:
    """Figures badge eligibility is computed from."""

    total_sales: int = 0
    total_listings: int = 0
    rating: float = 0.0
    verification_level: SellerVerification | None = None
    verification_expires_at: datetime | None = None


@dataclass(frozen=True)
class AwardedBadge:
    """A badge held by a seller until ``expires_at``."""

    badge: BadgeType
    awarded_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class Seller:
    """Seller usage snapshot consumed by the tier resolver."""

    id: str = field(default_factory=lambda: str(uuid4()))
    business_name: str = ""
    active_listings_count: int = 0
    spotlights_used_this_month: int = 0
    boosts_used_this_month: int = 0
    statistics: SellerStatistics = field(default_factory=SellerStatistics)
    badges: tuple[AwardedBadge, ...] = ()
