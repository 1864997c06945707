"""
Seller badge eligibility.

Badges are earned from seller statistics and, for Premium Stable, the
seller's plan. An awarded badge is valid for ``BADGE_VALIDITY``; expired
badges may stay in storage but never appear in the current view.
"""

from datetime import datetime, timedelta

from core.domain.seller import AwardedBadge, BadgeType, SellerStatistics, SellerVerification
from core.domain.subscription import Plan, Subscription

BADGE_VALIDITY = timedelta(days=90)

TOP_SELLER_MIN_SALES = 5
TOP_SELLER_MIN_RATING = 4.5
TOP_SELLER_MIN_LISTINGS = 10

PREMIUM_STABLE_MIN_RATING = 4.0
PREMIUM_STABLE_MIN_LISTINGS = 5


def effective_verification_level(
    stats: SellerStatistics, now: datetime
) -> SellerVerification | None:
    """Verification level, or None once the verification has expired."""
    if stats.verification_expires_at is not None and stats.verification_expires_at <= now:
        return None
    return stats.verification_level


def compute_eligible_badges(
    stats: SellerStatistics, subscription: Subscription | None
) -> frozenset[BadgeType]:
    """Return every badge the statistics qualify for."""
    eligible: set[BadgeType] = set()

    if (
        stats.total_sales >= TOP_SELLER_MIN_SALES
        and stats.rating >= TOP_SELLER_MIN_RATING
        and stats.total_listings >= TOP_SELLER_MIN_LISTINGS
    ):
        eligible.add(BadgeType.TOP_SELLER)

    plan = subscription.plan if subscription is not None else None
    if (
        plan is Plan.ROYAL_STALLION
        and stats.verification_level == SellerVerification.PROFESSIONAL
        and stats.rating >= PREMIUM_STABLE_MIN_RATING
        and stats.total_listings >= PREMIUM_STABLE_MIN_LISTINGS
    ):
        eligible.add(BadgeType.PREMIUM_STABLE)

    # Professional verification does not also grant this one
    if stats.verification_level == SellerVerification.BASIC:
        eligible.add(BadgeType.VERIFIED_SELLER)

    return frozenset(eligible)


def award_badges(
    existing: tuple[AwardedBadge, ...],
    eligible: frozenset[BadgeType],
    now: datetime,
) -> tuple[AwardedBadge, ...]:
    """Grant each eligible badge afresh, replacing any held badge of the same type."""
    kept = tuple(b for b in existing if b.badge not in eligible)
    granted = tuple(
        AwardedBadge(badge=badge, awarded_at=now, expires_at=now + BADGE_VALIDITY)
        for badge in sorted(eligible)
    )
    return kept + granted


def current_badges(badges: tuple[AwardedBadge, ...], now: datetime) -> tuple[AwardedBadge, ...]:
    """Badges that have not expired at ``now``."""
    return tuple(b for b in badges if b.expires_at > now)
